"""Recipient directory and template registry.

Both are built once at start-up and never mutated afterwards; the
generator receives them by injection so tests can pass small fakes.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .errors import ConfigError, RecipientNotFound, TemplateNotFound
from .models import CatalogEntry, MailTemplate, Recipient, normalize_code

LOGGER = logging.getLogger(__name__)


DEFAULT_RECIPIENTS = [
    Recipient("PE", "John Smith", "john.smith@company.com", "Production", "Employee"),
    Recipient("PM", "Sarah Johnson", "sarah.johnson@company.com", "Production", "Manager"),
    Recipient("HR", "Mike Wilson", "mike.wilson@company.com", "Human Resources", "HR Specialist"),
    Recipient("FN", "Lisa Brown", "lisa.brown@company.com", "Finance", "Finance Manager"),
    Recipient("IT", "David Lee", "david.lee@company.com", "IT", "IT Administrator"),
]

DEFAULT_TEMPLATES = [
    MailTemplate(
        code="PE",
        subject="Production Report - {Date}",
        body="""Dear {RecipientName},

This is your automated production report for {Date}.

Production Summary:
- Units Produced: {UnitsProduced}
- Quality Score: {QualityScore}%
- Efficiency Rate: {EfficiencyRate}%
- Downtime: {Downtime} hours

Your performance target for this period was {Target} units.
{PerformanceMessage}

Best regards,
Production Management System""",
        category="Production",
        required_data=("UnitsProduced", "QualityScore", "EfficiencyRate", "Downtime", "Target", "PerformanceMessage"),
        description="Production Employee",
    ),
    MailTemplate(
        code="PM",
        subject="Daily Production Management Report - {Date}",
        body="""Dear {RecipientName},

Your daily production management summary for {Date}:

Overall Production Metrics:
- Total Units: {TotalUnits}
- Team Performance: {TeamPerformance}%
- Issues Reported: {IssuesCount}
- Resolved Issues: {ResolvedIssues}

Department Status: {DepartmentStatus}

Action items requiring your attention:
{ActionItems}

Best regards,
Management Information System""",
        category="Management",
        required_data=("TotalUnits", "TeamPerformance", "IssuesCount", "ResolvedIssues", "DepartmentStatus", "ActionItems"),
        description="Production Manager",
    ),
    MailTemplate(
        code="HR",
        subject="HR Daily Summary - {Date}",
        body="""Dear {RecipientName},

Human Resources daily summary for {Date}:

Attendance Summary:
- Present: {PresentCount}
- Absent: {AbsentCount}
- Late Arrivals: {LateCount}

New Requests:
- Leave Requests: {LeaveRequests}
- Training Requests: {TrainingRequests}

Pending Actions: {PendingActions}

Best regards,
HR Management System""",
        category="HR",
        required_data=("PresentCount", "AbsentCount", "LateCount", "LeaveRequests", "TrainingRequests", "PendingActions"),
        description="Human Resource",
    ),
    MailTemplate(
        code="FN",
        subject="Financial Summary - {Date}",
        body="""Dear {RecipientName},

Financial summary for {Date}:

Daily Figures:
- Revenue: ${Revenue}
- Expenses: ${Expenses}
- Net: ${NetAmount}

Budget Status: {BudgetStatus}
Outstanding Items: {OutstandingCount}

Requires Review: {ReviewItems}

Best regards,
Financial Management System""",
        category="Finance",
        required_data=("Revenue", "Expenses", "NetAmount", "BudgetStatus", "OutstandingCount", "ReviewItems"),
        description="Finance Department",
    ),
    MailTemplate(
        code="IT",
        subject="IT System Report - {Date}",
        body="""Dear {RecipientName},

IT systems status report for {Date}:

System Health:
- Server Uptime: {ServerUptime}%
- Network Status: {NetworkStatus}
- Backup Status: {BackupStatus}

Incidents:
- New Tickets: {NewTickets}
- Resolved: {ResolvedTickets}
- Pending: {PendingTickets}

Security Updates: {SecurityUpdates}

Best regards,
IT Management System""",
        category="IT",
        required_data=("ServerUptime", "NetworkStatus", "BackupStatus", "NewTickets", "ResolvedTickets", "PendingTickets", "SecurityUpdates"),
        description="IT Department",
    ),
]


class RecipientDirectory:
    """Read-only code -> recipient lookup."""

    def __init__(self, recipients: Iterable[Recipient]) -> None:
        entries: Dict[str, Recipient] = {}
        for recipient in recipients:
            entries[normalize_code(recipient.code)] = recipient
        self._entries: Mapping[str, Recipient] = MappingProxyType(entries)

    def resolve(self, code: str) -> Recipient:
        key = normalize_code(code)
        try:
            return self._entries[key]
        except KeyError:
            raise RecipientNotFound(key) from None

    def codes(self) -> List[str]:
        return list(self._entries)

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and normalize_code(code) in self._entries

    def __iter__(self) -> Iterator[Recipient]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


class TemplateRegistry:
    """Read-only code -> template lookup."""

    def __init__(self, templates: Iterable[MailTemplate]) -> None:
        entries: Dict[str, MailTemplate] = {}
        for template in templates:
            entries[normalize_code(template.code)] = template
        self._entries: Mapping[str, MailTemplate] = MappingProxyType(entries)

    def resolve(self, code: str) -> MailTemplate:
        key = normalize_code(code)
        try:
            return self._entries[key]
        except KeyError:
            raise TemplateNotFound(key) from None

    def codes(self) -> List[str]:
        return list(self._entries)

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and normalize_code(code) in self._entries

    def __iter__(self) -> Iterator[MailTemplate]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


def code_catalog(directory: RecipientDirectory, registry: TemplateRegistry) -> List[CatalogEntry]:
    """List every code known to both the registry and the directory."""
    entries: List[CatalogEntry] = []
    for template in registry:
        if template.code not in directory:
            continue
        recipient = directory.resolve(template.code)
        entries.append(
            CatalogEntry(
                code=normalize_code(template.code),
                description=template.description or template.category,
                department=recipient.department,
                category=template.category,
            )
        )
    return entries


def _read_catalog_file(path: Path) -> Mapping[str, object]:
    try:
        with path.open("r", encoding="utf-8") as fh:
            payload = json.load(fh)
    except FileNotFoundError as exc:
        raise ConfigError(f"Catalog file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Catalog file is invalid JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"Catalog file must contain a JSON object: {path}")
    return payload


def _recipient_from_dict(data: Mapping[str, object]) -> Recipient:
    try:
        return Recipient(
            code=normalize_code(str(data["code"])),
            name=str(data["name"]),
            email=str(data["email"]),
            department=str(data.get("department", "")),
            role=str(data.get("role", "")),
        )
    except KeyError as exc:
        raise ConfigError(f"Recipient entry is missing {exc.args[0]!r}") from exc


def _template_from_dict(data: Mapping[str, object]) -> MailTemplate:
    try:
        return MailTemplate(
            code=normalize_code(str(data["code"])),
            subject=str(data["subject"]),
            body=str(data["body"]),
            category=str(data.get("category", "General")),
            required_data=tuple(data.get("required_data") or ()),
            description=str(data.get("description", "")),
        )
    except KeyError as exc:
        raise ConfigError(f"Template entry is missing {exc.args[0]!r}") from exc


def load_catalog(path: Optional[str] = None) -> Tuple[RecipientDirectory, TemplateRegistry]:
    """Build the directory and registry, applying overrides from ``path``.

    The JSON file may hold ``recipients`` and ``templates`` lists; entries
    replace built-in ones with the same code and new codes are appended.
    """
    recipients = {r.code: r for r in DEFAULT_RECIPIENTS}
    templates = {t.code: t for t in DEFAULT_TEMPLATES}

    if path:
        payload = _read_catalog_file(Path(path))
        for raw in payload.get("recipients", []) or []:
            recipient = _recipient_from_dict(raw)
            recipients[recipient.code] = recipient
        for raw in payload.get("templates", []) or []:
            template = _template_from_dict(raw)
            templates[template.code] = template
        LOGGER.info("Loaded catalog overrides from %s", path)

    return RecipientDirectory(recipients.values()), TemplateRegistry(templates.values())


__all__ = [
    "DEFAULT_RECIPIENTS",
    "DEFAULT_TEMPLATES",
    "RecipientDirectory",
    "TemplateRegistry",
    "code_catalog",
    "load_catalog",
]
