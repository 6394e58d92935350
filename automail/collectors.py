from __future__ import annotations

import asyncio
import logging
import random
from datetime import date
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

import requests

from .config import MailSettings
from .errors import DataError
from .models import DataSet, normalize_code

LOGGER = logging.getLogger(__name__)

UNKNOWN_CODE = "unknown code"


class DataStrategy:
    """Produces the values one code's template needs for a given date.

    ``keys`` lists the names every returned data set carries; it must match
    the placeholders declared by the code's template.
    """

    keys: Tuple[str, ...] = ()

    async def fetch(self, target_date: date) -> DataSet:
        raise NotImplementedError


class _MockStrategy(DataStrategy):
    """Base for the built-in systems of record, which return sample figures."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()


class ProductionEmployeeStrategy(_MockStrategy):
    keys = ("UnitsProduced", "QualityScore", "EfficiencyRate", "Downtime", "Target", "PerformanceMessage")
    target = 100

    async def fetch(self, target_date: date) -> DataSet:
        produced = self.rng.randrange(80, 120)
        if produced >= self.target:
            message = "Excellent work! Target achieved."
        else:
            message = "Please focus on meeting production targets."
        return {
            "UnitsProduced": produced,
            "QualityScore": self.rng.randrange(85, 98),
            "EfficiencyRate": self.rng.randrange(80, 95),
            "Downtime": self.rng.randrange(0, 3),
            "Target": self.target,
            "PerformanceMessage": message,
        }


class ProductionManagerStrategy(_MockStrategy):
    keys = ("TotalUnits", "TeamPerformance", "IssuesCount", "ResolvedIssues", "DepartmentStatus", "ActionItems")

    async def fetch(self, target_date: date) -> DataSet:
        return {
            "TotalUnits": self.rng.randrange(800, 1200),
            "TeamPerformance": self.rng.randrange(85, 95),
            "IssuesCount": self.rng.randrange(2, 8),
            "ResolvedIssues": self.rng.randrange(1, 6),
            "DepartmentStatus": "Operational",
            "ActionItems": "Review quality metrics, Schedule maintenance for Line 2",
        }


class HumanResourcesStrategy(_MockStrategy):
    keys = ("PresentCount", "AbsentCount", "LateCount", "LeaveRequests", "TrainingRequests", "PendingActions")

    async def fetch(self, target_date: date) -> DataSet:
        return {
            "PresentCount": self.rng.randrange(45, 50),
            "AbsentCount": self.rng.randrange(0, 5),
            "LateCount": self.rng.randrange(0, 3),
            "LeaveRequests": self.rng.randrange(1, 5),
            "TrainingRequests": self.rng.randrange(0, 3),
            "PendingActions": "Performance reviews for Q1, Update employee handbook",
        }


class FinanceStrategy(_MockStrategy):
    keys = ("Revenue", "Expenses", "NetAmount", "BudgetStatus", "OutstandingCount", "ReviewItems")

    async def fetch(self, target_date: date) -> DataSet:
        revenue = self.rng.randrange(50000, 80000)
        expenses = self.rng.randrange(30000, 45000)
        # amounts are pre-formatted with thousands separators
        return {
            "Revenue": f"{revenue:,}",
            "Expenses": f"{expenses:,}",
            "NetAmount": f"{revenue - expenses:,}",
            "BudgetStatus": "On Track",
            "OutstandingCount": self.rng.randrange(5, 15),
            "ReviewItems": "Monthly reconciliation, Vendor payments approval",
        }


class ITStrategy(_MockStrategy):
    keys = (
        "ServerUptime",
        "NetworkStatus",
        "BackupStatus",
        "NewTickets",
        "ResolvedTickets",
        "PendingTickets",
        "SecurityUpdates",
    )

    async def fetch(self, target_date: date) -> DataSet:
        return {
            "ServerUptime": self.rng.randrange(95, 100),
            "NetworkStatus": "Stable",
            "BackupStatus": "Completed",
            "NewTickets": self.rng.randrange(3, 10),
            "ResolvedTickets": self.rng.randrange(5, 12),
            "PendingTickets": self.rng.randrange(2, 8),
            "SecurityUpdates": "All systems updated, No critical vulnerabilities",
        }


class RemoteDataStrategy(DataStrategy):
    """Fetches a code's data set as JSON from an external system of record.

    Issues ``GET {base_url}/{code}?date=YYYY-MM-DD`` and expects a JSON
    object, either the data set itself or wrapped in a ``data`` key. When
    ``keys`` is given, every key must be present in the response.
    """

    def __init__(self, code: str, base_url: str, *, keys: Tuple[str, ...] = (), timeout: float = 5) -> None:
        self.code = normalize_code(code)
        self.base_url = base_url.rstrip("/")
        self.keys = tuple(keys)
        self.timeout = timeout

    def _get(self, target_date: date) -> DataSet:
        url = f"{self.base_url}/{self.code}"
        try:
            resp = requests.get(url, params={"date": target_date.isoformat()}, timeout=self.timeout)
        except requests.RequestException as exc:
            raise DataError(f"request to {url} failed: {exc}") from exc
        if resp.status_code >= 400:
            raise DataError(f"{url} responded with {resp.status_code}: {resp.text[:120]}")
        try:
            payload = resp.json()
        except ValueError as exc:
            raise DataError(f"{url} returned invalid JSON") from exc
        if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
            payload = payload["data"]
        if not isinstance(payload, dict):
            raise DataError(f"{url} returned {type(payload).__name__}, expected an object")
        data = {str(key): value for key, value in payload.items()}
        missing = set(self.keys) - set(data)
        if missing:
            raise DataError(f"{url} response is missing {sorted(missing)}")
        return data

    async def fetch(self, target_date: date) -> DataSet:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._get, target_date)


class DataProvider:
    """Routes a (code, date) fetch to the strategy registered for the code."""

    def __init__(self, strategies: Mapping[str, DataStrategy]) -> None:
        self._strategies: Mapping[str, DataStrategy] = MappingProxyType(
            {normalize_code(code): strategy for code, strategy in strategies.items()}
        )

    def codes(self) -> List[str]:
        return list(self._strategies)

    def strategy_for(self, code: str) -> DataStrategy:
        try:
            return self._strategies[normalize_code(code)]
        except KeyError:
            raise DataError(UNKNOWN_CODE) from None

    async def fetch(self, code: str, target_date: date) -> DataSet:
        strategy = self.strategy_for(code)
        try:
            data = await strategy.fetch(target_date)
        except DataError:
            raise
        except Exception as exc:
            LOGGER.exception("Data strategy for %s failed", normalize_code(code))
            raise DataError(str(exc) or type(exc).__name__) from exc
        return dict(data)


def default_strategies(rng: Optional[random.Random] = None) -> Dict[str, DataStrategy]:
    rng = rng or random.Random()
    return {
        "PE": ProductionEmployeeStrategy(rng),
        "PM": ProductionManagerStrategy(rng),
        "HR": HumanResourcesStrategy(rng),
        "FN": FinanceStrategy(rng),
        "IT": ITStrategy(rng),
    }


def build_data_provider(settings: Optional[MailSettings] = None, rng: Optional[random.Random] = None) -> DataProvider:
    """Built-in strategies, with remote ones swapped in for configured codes."""
    strategies = default_strategies(rng)
    if settings and settings.data_url:
        for code in settings.remote_codes:
            keys = strategies[code].keys if code in strategies else ()
            strategies[code] = RemoteDataStrategy(code, settings.data_url, keys=keys)
            LOGGER.info("Using remote data source for %s", code)
    return DataProvider(strategies)


__all__ = [
    "DataProvider",
    "DataStrategy",
    "FinanceStrategy",
    "HumanResourcesStrategy",
    "ITStrategy",
    "ProductionEmployeeStrategy",
    "ProductionManagerStrategy",
    "RemoteDataStrategy",
    "UNKNOWN_CODE",
    "build_data_provider",
    "default_strategies",
]
