"""Flat ``{Name}`` placeholder substitution for mail templates.

Reserved placeholders (recipient and date fields) are always filled.
Data placeholders are best-effort: a token with no matching value is left
in the output verbatim rather than raising.
"""
from __future__ import annotations

import re
from datetime import date
from typing import List, Mapping, Tuple

from .config import DATE_FORMAT, RESERVED_PLACEHOLDERS
from .models import DataValue, MailTemplate, Recipient

PLACEHOLDER_RE = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def _as_text(value: DataValue) -> str:
    return "" if value is None else str(value)


def reserved_values(recipient: Recipient, target_date: date) -> List[Tuple[str, str]]:
    values = {
        "RecipientName": recipient.name,
        "Date": format_date(target_date),
        "Department": recipient.department,
        "Role": recipient.role,
    }
    return [(name, _as_text(values[name])) for name in RESERVED_PLACEHOLDERS]


def fill(pattern: str, data: Mapping[str, DataValue], target_date: date, recipient: Recipient) -> str:
    result = pattern
    for name, value in reserved_values(recipient, target_date):
        result = result.replace("{" + name + "}", value)
    for key, value in data.items():
        if key in RESERVED_PLACEHOLDERS:
            continue
        result = result.replace("{" + key + "}", _as_text(value))
    return result


def render(
    template: MailTemplate,
    data: Mapping[str, DataValue],
    target_date: date,
    recipient: Recipient,
) -> Tuple[str, str]:
    """Return the ``(subject, body)`` pair for ``template``."""
    subject = fill(template.subject, data, target_date, recipient)
    body = fill(template.body, data, target_date, recipient)
    return subject, body


def unresolved_placeholders(text: str) -> List[str]:
    """Names of ``{Placeholder}`` tokens still present in ``text``."""
    return PLACEHOLDER_RE.findall(text)


__all__ = ["format_date", "fill", "render", "reserved_values", "unresolved_placeholders"]
