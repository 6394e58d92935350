from __future__ import annotations

import asyncio
import logging
import os
from datetime import date
from functools import lru_cache
from typing import Dict, List, Optional

from celery import shared_task

from .models import DispatchRequest, DispatchResult
from .service import MailDispatcher, build_dispatcher

LOGGER = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_dispatcher() -> MailDispatcher:
    return build_dispatcher()


def _report_codes(dispatcher: MailDispatcher) -> List[str]:
    raw = os.getenv("AUTOMAIL_DAILY_CODES", "")
    codes = [c.strip().upper() for c in raw.split(",") if c.strip()]
    return codes or [entry.code for entry in dispatcher.catalog()]


async def _dispatch_all(dispatcher: MailDispatcher, requests: List[DispatchRequest]) -> List[DispatchResult]:
    return list(await asyncio.gather(*(dispatcher.dispatch(req) for req in requests)))


@shared_task(name="automail.tasks.send_mail")
def send_mail_task(code: str, date_iso: Optional[str] = None, additional_message: Optional[str] = None) -> Dict:
    target = date.fromisoformat(date_iso) if date_iso else date.today()
    request = DispatchRequest(code=code, date=target, additional_message=additional_message)
    result = asyncio.run(get_dispatcher().dispatch(request))
    if not result.success:
        LOGGER.error("Failed to send mail for code %s: %s", code, result.message)
    return result.to_dict()


@shared_task(name="automail.tasks.send_daily_reports")
def send_daily_reports() -> str:
    dispatcher = get_dispatcher()
    today = date.today()
    requests = [DispatchRequest(code=code, date=today) for code in _report_codes(dispatcher)]
    results = asyncio.run(_dispatch_all(dispatcher, requests))
    delivered = sum(1 for result in results if result.success)
    for req, result in zip(requests, results):
        if not result.success:
            LOGGER.error("Daily report for %s not sent: %s", req.code, result.message)
    LOGGER.info("Sent %d of %d daily reports", delivered, len(requests))
    return str(delivered)
