import asyncio
import random
from datetime import date

import pytest
import requests

from automail.collectors import (
    DataProvider,
    DataStrategy,
    ProductionEmployeeStrategy,
    RemoteDataStrategy,
    UNKNOWN_CODE,
    build_data_provider,
    default_strategies,
)
from automail.config import MailSettings
from automail.errors import DataError


REPORT_DATE = date(2024, 3, 5)


class FixedRandom:
    def __init__(self, value):
        self.value = value

    def randrange(self, start, stop=None, step=1):
        return self.value


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


@pytest.mark.parametrize("code", ["PE", "PM", "HR", "FN", "IT"])
def test_default_strategies_return_documented_keys(code):
    provider = DataProvider(default_strategies(random.Random(7)))
    data = asyncio.run(provider.fetch(code, REPORT_DATE))
    assert set(data) == set(provider.strategy_for(code).keys)
    assert all(value is not None for value in data.values())


def test_production_employee_message_when_target_met():
    data = asyncio.run(ProductionEmployeeStrategy(FixedRandom(110)).fetch(REPORT_DATE))
    assert data["UnitsProduced"] == 110
    assert data["Target"] == 100
    assert data["PerformanceMessage"] == "Excellent work! Target achieved."


def test_production_employee_message_exactly_on_target():
    data = asyncio.run(ProductionEmployeeStrategy(FixedRandom(100)).fetch(REPORT_DATE))
    assert data["PerformanceMessage"] == "Excellent work! Target achieved."


def test_production_employee_message_when_target_missed():
    data = asyncio.run(ProductionEmployeeStrategy(FixedRandom(85)).fetch(REPORT_DATE))
    assert data["PerformanceMessage"] == "Please focus on meeting production targets."


def test_finance_amounts_use_thousands_separators():
    provider = DataProvider(default_strategies(FixedRandom(65000)))
    data = asyncio.run(provider.fetch("FN", REPORT_DATE))
    assert data["Revenue"] == "65,000"
    assert data["NetAmount"] == "0"


def test_unknown_code_is_a_data_error():
    provider = DataProvider(default_strategies())
    with pytest.raises(DataError) as excinfo:
        asyncio.run(provider.fetch("ZZ", REPORT_DATE))
    assert excinfo.value.reason == UNKNOWN_CODE


def test_provider_normalizes_code():
    provider = DataProvider(default_strategies())
    data = asyncio.run(provider.fetch(" it ", REPORT_DATE))
    assert data["NetworkStatus"] == "Stable"


def test_strategy_failure_becomes_data_error():
    class Broken(DataStrategy):
        async def fetch(self, target_date):
            raise RuntimeError("warehouse offline")

    provider = DataProvider({"PE": Broken()})
    with pytest.raises(DataError) as excinfo:
        asyncio.run(provider.fetch("PE", REPORT_DATE))
    assert excinfo.value.reason == "warehouse offline"


def test_remote_strategy_fetches_json(monkeypatch):
    calls = {}

    def fake_get(url, params=None, timeout=None):
        calls["url"] = url
        calls["params"] = params
        return FakeResponse(payload={"data": {"TotalUnits": 900, "DepartmentStatus": "Operational"}})

    monkeypatch.setattr(requests, "get", fake_get)

    strategy = RemoteDataStrategy("pm", "https://records.example.com/api/")
    data = asyncio.run(strategy.fetch(REPORT_DATE))

    assert calls["url"] == "https://records.example.com/api/PM"
    assert calls["params"] == {"date": "2024-03-05"}
    assert data == {"TotalUnits": 900, "DepartmentStatus": "Operational"}


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(status_code=503, text="maintenance"),
        FakeResponse(payload=None),
        FakeResponse(payload=[1, 2, 3]),
    ],
)
def test_remote_strategy_bad_responses(monkeypatch, response):
    monkeypatch.setattr(requests, "get", lambda *args, **kwargs: response)
    provider = DataProvider({"PM": RemoteDataStrategy("PM", "https://records.example.com")})
    with pytest.raises(DataError):
        asyncio.run(provider.fetch("PM", REPORT_DATE))


def test_remote_strategy_connection_error(monkeypatch):
    def fake_get(*args, **kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(requests, "get", fake_get)
    strategy = RemoteDataStrategy("PM", "https://records.example.com")
    with pytest.raises(DataError) as excinfo:
        asyncio.run(strategy.fetch(REPORT_DATE))
    assert "refused" in excinfo.value.reason


def test_build_data_provider_swaps_in_remote_codes():
    settings = MailSettings(data_url="https://records.example.com", remote_codes=["HR"])
    provider = build_data_provider(settings)
    strategy = provider.strategy_for("HR")
    assert isinstance(strategy, RemoteDataStrategy)
    assert "PresentCount" in strategy.keys
    assert isinstance(provider.strategy_for("PE"), ProductionEmployeeStrategy)


def test_remote_strategy_rejects_payload_missing_keys(monkeypatch):
    monkeypatch.setattr(requests, "get", lambda *args, **kwargs: FakeResponse(payload={"TotalUnits": 900}))
    strategy = RemoteDataStrategy("PM", "https://records.example.com", keys=("TotalUnits", "TeamPerformance"))
    provider = DataProvider({"PM": strategy})
    with pytest.raises(DataError) as excinfo:
        asyncio.run(provider.fetch("PM", REPORT_DATE))
    assert "TeamPerformance" in excinfo.value.reason
