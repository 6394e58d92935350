from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Optional, Tuple, Union

DataValue = Union[str, int, float, None]
DataSet = Dict[str, DataValue]


def normalize_code(code: object) -> str:
    if not isinstance(code, str):
        return ""
    return code.strip().upper()


@dataclass(frozen=True, slots=True)
class Recipient:
    """The person a code's report is addressed to."""

    code: str
    name: str
    email: str
    department: str
    role: str


@dataclass(frozen=True, slots=True)
class MailTemplate:
    """Subject/body patterns with ``{Placeholder}`` tokens for one code."""

    code: str
    subject: str
    body: str
    category: str = "General"
    required_data: Tuple[str, ...] = ()
    description: str = ""


@dataclass(slots=True)
class MailContent:
    """Fully rendered message handed to a delivery channel."""

    subject: str
    body: str
    recipient_email: str
    recipient_name: str
    sender_email: str
    sender_name: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "subject": self.subject,
            "body": self.body,
            "recipient": self.recipient_email,
            "recipientName": self.recipient_name,
            "senderEmail": self.sender_email,
            "senderName": self.sender_name,
        }


@dataclass(slots=True)
class DispatchRequest:
    code: str
    date: Optional[date]
    additional_message: Optional[str] = None


@dataclass(slots=True)
class DispatchResult:
    """Outcome of a dispatch; ``sent_at`` is only set on success."""

    success: bool
    message: str
    sent_at: Optional[datetime] = None
    recipient_email: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "success": self.success,
            "message": self.message,
            "sent_at": self.sent_at.isoformat() if self.sent_at else None,
            "recipient_email": self.recipient_email,
        }


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    code: str
    description: str
    department: str
    category: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "code": self.code,
            "description": self.description,
            "department": self.department,
            "category": self.category,
        }


@dataclass(slots=True)
class DataResponse:
    """Provider output surfaced to debugging callers."""

    success: bool
    data: DataSet = field(default_factory=dict)
    error: Optional[str] = None
