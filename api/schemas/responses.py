from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from application.services import RateLookup, RefreshStatus
from domain.models.currency import ExchangeRate


class ExchangeRateResponse(BaseModel):
	currency_code: str = Field(..., description='Three-letter ISO 4217 code of the currency')
	base_currency: str = Field(..., description='Currency the rate is expressed in')
	rate: Decimal = Field(..., description='Units of base currency for one unit of the currency')
	amount: int = Field(..., description='Units the source quotes the rate for')
	quoted_rate: Decimal = Field(..., description='Rate for `amount` units, as published')
	valid_for: date = Field(..., description='Fixing date of the rate')
	timestamp: datetime = Field(..., description='When the rate was fetched')
	source: str = Field(..., description='Rate source')

	model_config = ConfigDict(
		json_schema_extra={
			'example': {
				'currency_code': 'JPY',
				'base_currency': 'CZK',
				'rate': '0.15474',
				'amount': 100,
				'quoted_rate': '15.474',
				'valid_for': '2025-10-17',
				'timestamp': '2025-10-17T13:31:02Z',
				'source': 'cnb',
			}
		}
	)

	@classmethod
	def from_rate(cls, rate: ExchangeRate) -> 'ExchangeRateResponse':
		return cls(
			currency_code=rate.currency.code,
			base_currency=rate.base_currency.code,
			rate=rate.rate,
			amount=rate.amount,
			quoted_rate=rate.quoted_rate,
			valid_for=rate.valid_for,
			timestamp=rate.timestamp,
			source=rate.source,
		)


class ExchangeRateLookupResponse(BaseModel):
	currency_code: str = Field(..., description='Requested currency code, normalized')
	found: bool = Field(..., description='Whether the source quotes this currency')
	exchange_rate: ExchangeRateResponse | None = Field(None, description='Null when not found')

	@classmethod
	def from_lookup(cls, lookup: RateLookup) -> 'ExchangeRateLookupResponse':
		return cls(
			currency_code=lookup.currency.code,
			found=lookup.found,
			exchange_rate=ExchangeRateResponse.from_rate(lookup.rate) if lookup.rate is not None else None,
		)


class HealthResponse(BaseModel):
	status: str = Field(..., description='healthy, degraded (stale rates) or unavailable')
	snapshot_age_seconds: float | None = Field(None, description='Age of the cached rates')
	valid_for: date | None = Field(None, description='Fixing date of the cached rates')
	currencies: int = Field(0, description='Number of currencies in the cache')
	refresh: RefreshStatus = Field(..., description='Refresh scheduler bookkeeping')
