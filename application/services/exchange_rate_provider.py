import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import timedelta

from application.services.refresh_scheduler import RefreshScheduler
from domain.exceptions.currency import (
	FetchError,
	InvalidCurrencyError,
	RateNotFoundError,
	RatesUnavailableError,
)
from domain.models.currency import Currency, ExchangeRate
from domain.validators.currency import validate_currency_code, validate_currency_codes
from infrastructure.cache.rate_cache import RateCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLookup:
	currency: Currency
	rate: ExchangeRate | None

	@property
	def found(self) -> bool:
		return self.rate is not None


class ExchangeRateProvider(ABC):
	@abstractmethod
	async def get_exchange_rate(self, code: str) -> ExchangeRate:
		"""Latest rate for one currency code.

		Raises InvalidCurrencyError, RateNotFoundError or RatesUnavailableError.
		"""
		...

	@abstractmethod
	async def get_exchange_rates(self, codes: Sequence[str]) -> list[RateLookup]:
		"""Latest rates for several codes, one RateLookup per input in input order.

		All codes are validated up front; a single InvalidCurrencyError lists
		every malformed input. Unknown currencies come back with `rate=None`.
		"""
		...


def _validate_batch(codes: Sequence[str]) -> list[Currency]:
	if not codes:
		raise InvalidCurrencyError([], 'At least one currency code must be specified.')
	return validate_currency_codes(codes)


class CachedExchangeRateProvider(ExchangeRateProvider):
	"""Serves rates from the RateCache, refreshing through the RefreshScheduler."""

	def __init__(
		self,
		cache: RateCache,
		scheduler: RefreshScheduler,
		staleness_threshold: timedelta = timedelta(days=1),
	):
		self.cache = cache
		self.scheduler = scheduler
		self.staleness_threshold = staleness_threshold

	async def _ensure_rates(self) -> None:
		if self.cache.is_empty:
			if self.scheduler.is_backing_off and not self.scheduler.refresh_in_flight:
				raise RatesUnavailableError()
			logger.info('No rates cached yet, refreshing inline')
			try:
				await self.scheduler.refresh()
			except FetchError as e:
				raise RatesUnavailableError() from e
			return

		if self.cache.is_stale(self.staleness_threshold):
			if self.scheduler.trigger():
				logger.warning(
					f'Serving stale rates (age {self.cache.current_age()}), background refresh started'
				)

	async def get_exchange_rate(self, code: str) -> ExchangeRate:
		currency = validate_currency_code(code)
		await self._ensure_rates()

		rate = self.cache.lookup(currency)
		if rate is None:
			raise RateNotFoundError(currency.code)
		return rate

	async def get_exchange_rates(self, codes: Sequence[str]) -> list[RateLookup]:
		currencies = _validate_batch(codes)
		await self._ensure_rates()

		return [
			RateLookup(currency=currency, rate=rate)
			for currency, rate in self.cache.lookup_many(currencies)
		]


class InMemoryExchangeRateProvider(ExchangeRateProvider):
	"""Fixed set of rates, for tests and local wiring without network access."""

	def __init__(self, rates: Iterable[ExchangeRate] | None = None):
		self._rates: dict[Currency, ExchangeRate] | None = None
		if rates is not None:
			self._rates = {rate.currency: rate for rate in rates}

	def _require_rates(self) -> dict[Currency, ExchangeRate]:
		if self._rates is None:
			raise RatesUnavailableError()
		return self._rates

	async def get_exchange_rate(self, code: str) -> ExchangeRate:
		currency = validate_currency_code(code)
		rate = self._require_rates().get(currency)
		if rate is None:
			raise RateNotFoundError(currency.code)
		return rate

	async def get_exchange_rates(self, codes: Sequence[str]) -> list[RateLookup]:
		currencies = _validate_batch(codes)
		rates = self._require_rates()
		return [RateLookup(currency=currency, rate=rates.get(currency)) for currency in currencies]
