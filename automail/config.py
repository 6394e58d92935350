"""Shared configuration defaults for the mail pipeline."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional

DEFAULT_SENDER_EMAIL = "system@company.com"
DEFAULT_SENDER_NAME = "System Administrator"

DEFAULT_SMTP_SETTINGS = {
    "host": "smtp.gmail.com",
    "port": 587,
    "use_tls": True,
    "timeout": 10,
}

DATE_FORMAT = "%d %B %Y"
RESERVED_PLACEHOLDERS = ("RecipientName", "Date", "Department", "Role")
ADDENDUM_LABEL = "Additional Message:"
FALSE_VALUES = {"0", "false", "False", "no", "off"}


def _split_codes(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [c.strip().upper() for c in raw.split(",") if c.strip()]


@dataclass(slots=True)
class MailSettings:
    """Sender identity and SMTP transport settings."""

    sender_email: str = DEFAULT_SENDER_EMAIL
    sender_name: str = DEFAULT_SENDER_NAME
    smtp_host: str = DEFAULT_SMTP_SETTINGS["host"]
    smtp_port: int = DEFAULT_SMTP_SETTINGS["port"]
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = DEFAULT_SMTP_SETTINGS["use_tls"]
    smtp_timeout: int = DEFAULT_SMTP_SETTINGS["timeout"]
    data_url: Optional[str] = None
    remote_codes: List[str] = field(default_factory=list)
    catalog_path: Optional[str] = None

    @classmethod
    def from_env(cls) -> "MailSettings":
        return cls(
            sender_email=os.getenv("MAIL_SENDER_EMAIL") or DEFAULT_SENDER_EMAIL,
            sender_name=os.getenv("MAIL_SENDER_NAME") or DEFAULT_SENDER_NAME,
            smtp_host=os.getenv("SMTP_HOST") or DEFAULT_SMTP_SETTINGS["host"],
            smtp_port=int(os.getenv("SMTP_PORT", str(DEFAULT_SMTP_SETTINGS["port"]))),
            smtp_username=os.getenv("SMTP_USERNAME"),
            smtp_password=os.getenv("SMTP_PASSWORD"),
            smtp_use_tls=os.getenv("SMTP_USE_TLS", "1") not in FALSE_VALUES,
            data_url=os.getenv("AUTOMAIL_DATA_URL"),
            remote_codes=_split_codes(os.getenv("AUTOMAIL_REMOTE_CODES")),
            catalog_path=os.getenv("AUTOMAIL_CATALOG_PATH"),
        )
