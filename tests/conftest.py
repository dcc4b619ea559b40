"""
Shared test configuration and fixtures.
"""

import asyncio
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

import pytest

from domain.models.currency import Currency, ExchangeRate, RateSnapshot
from infrastructure.sources.base import RateSource

FIXING_DATE = date(2025, 10, 17)
FETCHED_AT = datetime(2025, 10, 17, 13, 0, 0, tzinfo=UTC)

# Trimmed CNB /exrates/daily response
CNB_DAILY_RESPONSE = {
    "rates": [
        {
            "validFor": "2025-10-17",
            "order": 202,
            "country": "Australia",
            "currency": "dollar",
            "amount": 1,
            "currencyCode": "AUD",
            "rate": 13.612,
        },
        {
            "validFor": "2025-10-17",
            "order": 202,
            "country": "EMU",
            "currency": "euro",
            "amount": 1,
            "currencyCode": "EUR",
            "rate": 24.345,
        },
        {
            "validFor": "2025-10-17",
            "order": 202,
            "country": "Japan",
            "currency": "yen",
            "amount": 100,
            "currencyCode": "JPY",
            "rate": 15.474,
        },
        {
            "validFor": "2025-10-17",
            "order": 202,
            "country": "USA",
            "currency": "dollar",
            "amount": 1,
            "currencyCode": "USD",
            "rate": 23.15,
        },
    ]
}


class MutableClock:
    """Callable clock the tests can move forward."""

    def __init__(self, now: datetime = FETCHED_AT):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class StubRateSource(RateSource):
    """Returns (or raises) queued results in order; repeats the last one."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0
        self.gate: asyncio.Event | None = None
        self.closed = False

    @property
    def name(self) -> str:
        return "stub"

    async def fetch_snapshot(self, for_date=None) -> RateSnapshot:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, BaseException):
            raise result
        return result

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def clock():
    return MutableClock()


@pytest.fixture
def make_rate():
    def _make_rate(code: str, rate: str, amount: int = 1, timestamp: datetime = FETCHED_AT) -> ExchangeRate:
        return ExchangeRate(
            currency=Currency(code),
            base_currency=Currency("CZK"),
            rate=Decimal(rate),
            amount=amount,
            valid_for=FIXING_DATE,
            timestamp=timestamp,
            source="stub",
        )

    return _make_rate


@pytest.fixture
def make_snapshot(make_rate):
    def _make_snapshot(rates: dict[str, str], as_of: datetime = FETCHED_AT) -> RateSnapshot:
        return RateSnapshot(
            rates={Currency(code): make_rate(code, value, timestamp=as_of) for code, value in rates.items()},
            as_of=as_of,
            valid_for=FIXING_DATE,
            source="stub",
        )

    return _make_snapshot


@pytest.fixture
def snapshot(make_snapshot):
    return make_snapshot({"USD": "23.15", "EUR": "24.345", "AUD": "13.612"})


@pytest.fixture
def cnb_daily_response():
    return CNB_DAILY_RESPONSE


@pytest.fixture
def make_source():
    return StubRateSource
