"""Celery application for queued and scheduled report mails."""
from __future__ import annotations

import os
from celery import Celery
from celery.schedules import crontab

BROKER_URL = os.getenv("CELERY_BROKER_URL", os.getenv("REDIS_URL", "redis://localhost:6379/0"))
RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", BROKER_URL)
MAIL_QUEUE = os.getenv("AUTOMAIL_QUEUE", "mail")


def report_schedule() -> crontab:
    """Daily report time, ``AUTOMAIL_REPORT_HOUR``:``AUTOMAIL_REPORT_MINUTE`` on ``AUTOMAIL_REPORT_DAYS``."""
    return crontab(
        hour=int(os.getenv("AUTOMAIL_REPORT_HOUR", "7")),
        minute=int(os.getenv("AUTOMAIL_REPORT_MINUTE", "0")),
        day_of_week=os.getenv("AUTOMAIL_REPORT_DAYS", "*"),
    )


def create_celery_app() -> Celery:
    mail_app = Celery("automail", broker=BROKER_URL, backend=RESULT_BACKEND, include=["automail.tasks"])

    mail_app.conf.update(
        task_serializer="json",
        result_serializer="json",
        accept_content=["json"],
        timezone=os.getenv("CELERY_TIMEZONE", "UTC"),
        enable_utc=True,
        # one delivery per dispatch; a lost worker must not resend
        task_acks_late=False,
        task_routes={"automail.tasks.*": {"queue": MAIL_QUEUE}},
        beat_schedule={
            "send-daily-reports": {
                "task": "automail.tasks.send_daily_reports",
                "schedule": report_schedule(),
            },
        },
    )
    return mail_app


celery_app = create_celery_app()
