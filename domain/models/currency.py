from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from types import MappingProxyType

from domain.exceptions.currency import InvalidCurrencyError


def is_currency_code(code: str) -> bool:
	return len(code) == 3 and code.isascii() and code.isalpha() and code.isupper()


@dataclass(frozen=True)
class Currency:
	code: str

	def __post_init__(self):
		if not isinstance(self.code, str) or not is_currency_code(self.code):
			raise InvalidCurrencyError([str(self.code)])

	def __str__(self) -> str:
		return self.code


@dataclass(frozen=True)
class ExchangeRate:
	"""Price of one unit of `currency` expressed in `base_currency`.

	The feed may quote per `amount` units (e.g. 100 JPY); `rate` is always
	normalized to a single unit, `quoted_rate` gives the figure as published.
	"""

	currency: Currency
	base_currency: Currency
	rate: Decimal
	amount: int
	valid_for: date
	timestamp: datetime
	source: str

	def __post_init__(self):
		if self.rate <= 0:
			raise ValueError(f'Rate for {self.currency} must be positive, got {self.rate}')
		if self.amount < 1:
			raise ValueError(f'Amount for {self.currency} must be at least 1, got {self.amount}')

	@property
	def quoted_rate(self) -> Decimal:
		return self.rate * self.amount


@dataclass(frozen=True)
class RateSnapshot:
	"""All rates published by a source for one fixing, as retrieved at `as_of`."""

	rates: Mapping[Currency, ExchangeRate]
	as_of: datetime
	valid_for: date
	source: str
	base_currency: Currency = field(default_factory=lambda: Currency('CZK'))

	def __post_init__(self):
		if not self.rates:
			raise ValueError('A snapshot must contain at least one rate')
		for currency, rate in self.rates.items():
			if currency != rate.currency:
				raise ValueError(f'Snapshot key {currency} does not match rate for {rate.currency}')
		# frozen: bypass __setattr__ to store a read-only copy
		object.__setattr__(self, 'rates', MappingProxyType(dict(self.rates)))

	def get(self, currency: Currency) -> ExchangeRate | None:
		return self.rates.get(currency)

	@property
	def currencies(self) -> list[Currency]:
		return list(self.rates)

	def __contains__(self, currency: object) -> bool:
		return currency in self.rates

	def __len__(self) -> int:
		return len(self.rates)

	def __iter__(self) -> Iterator[Currency]:
		return iter(self.rates)
