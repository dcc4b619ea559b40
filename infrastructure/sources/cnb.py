from collections.abc import Callable
from datetime import UTC, date, datetime
from decimal import Decimal, InvalidOperation

import httpx

from domain.exceptions.currency import (
	FetchError,
	InvalidCurrencyError,
	UpstreamHTTPError,
	UpstreamPayloadError,
	UpstreamRequestError,
	UpstreamTimeoutError,
)
from domain.models.currency import Currency, ExchangeRate, RateSnapshot
from infrastructure.sources.base import RateSource

BASE_CURRENCY = Currency('CZK')


class CNBRateSource(RateSource):
	"""Czech National Bank daily fixing.

	CNB quotes CZK per `amount` units of each foreign currency (1 USD, 100 JPY,
	1000 IDR, ...). Rates are normalized to CZK per single unit.
	"""

	BASE_URL = 'https://api.cnb.cz/cnbapi'

	def __init__(
		self,
		base_url: str | None = None,
		client: httpx.AsyncClient | None = None,
		timeout: float = 10,
		language: str = 'EN',
		clock: Callable[[], datetime] | None = None,
	):
		self.base_url = (base_url or self.BASE_URL).rstrip('/')
		self.language = language
		self._client = client or httpx.AsyncClient(timeout=timeout)
		self._clock = clock or (lambda: datetime.now(UTC))

	@property
	def name(self) -> str:
		return 'cnb'

	async def _request(self, endpoint: str, params: dict) -> dict:
		url = f'{self.base_url}/{endpoint}'

		try:
			response = await self._client.get(url, params=params)
			response.raise_for_status()
			data = response.json()
		except httpx.HTTPStatusError as e:
			raise UpstreamHTTPError(
				f'CNB HTTP error {e.response.status_code}: {e.response.text[:200]}',
				status_code=e.response.status_code,
			) from e
		except httpx.TimeoutException as e:
			raise UpstreamTimeoutError(f'CNB request timed out: {e.__class__.__name__}') from e
		except httpx.RequestError as e:
			raise UpstreamRequestError(f'CNB request failed: {e.__class__.__name__}') from e
		except Exception as e:
			raise UpstreamPayloadError(f'CNB response parsing error: {str(e)}') from e

		if not isinstance(data, dict):
			raise UpstreamPayloadError('CNB response is not a JSON object')
		return data

	async def fetch_snapshot(self, for_date: date | None = None) -> RateSnapshot:
		params = {'lang': self.language}
		if for_date is not None:
			params['date'] = for_date.isoformat()

		data = await self._request('exrates/daily', params)
		retrieved_at = self._clock()

		try:
			return self._parse_snapshot(data, retrieved_at)
		except FetchError:
			raise
		except Exception as e:
			raise UpstreamPayloadError(f'CNB response parsing error: {str(e)}') from e

	def _parse_snapshot(self, data: dict, retrieved_at: datetime) -> RateSnapshot:
		rows = data.get('rates')
		if not isinstance(rows, list) or not rows:
			raise UpstreamPayloadError('CNB response contains no rates')

		rates: dict[Currency, ExchangeRate] = {}
		valid_for: date | None = None

		for row in rows:
			rate = self._parse_row(row, retrieved_at)
			if rate.currency in rates:
				raise UpstreamPayloadError(f'Duplicate rate for {rate.currency} in CNB response')
			if valid_for is None:
				valid_for = rate.valid_for
			elif rate.valid_for != valid_for:
				raise UpstreamPayloadError(
					f'CNB response mixes fixings of {valid_for} and {rate.valid_for}'
				)
			rates[rate.currency] = rate

		return RateSnapshot(
			rates=rates,
			as_of=retrieved_at,
			valid_for=valid_for,
			source=self.name,
			base_currency=BASE_CURRENCY,
		)

	def _parse_row(self, row: dict, retrieved_at: datetime) -> ExchangeRate:
		try:
			code = row['currencyCode']
			amount = row['amount']
			quoted = Decimal(str(row['rate']))
			valid_for = date.fromisoformat(row['validFor'])
		except (KeyError, TypeError, ValueError, InvalidOperation) as e:
			raise UpstreamPayloadError(f'Malformed CNB rate row {row!r}') from e

		try:
			currency = Currency(code)
		except InvalidCurrencyError as e:
			raise UpstreamPayloadError(f'Invalid currency code {code!r} in CNB response') from e

		if isinstance(amount, bool) or not isinstance(amount, int) or amount < 1:
			raise UpstreamPayloadError(f'Invalid amount {amount!r} for {code}')
		if not quoted.is_finite() or quoted <= 0:
			raise UpstreamPayloadError(f'Invalid rate {quoted} for {code}')

		return ExchangeRate(
			currency=currency,
			base_currency=BASE_CURRENCY,
			rate=quoted / amount,
			amount=amount,
			valid_for=valid_for,
			timestamp=retrieved_at,
			source=self.name,
		)

	async def close(self) -> None:
		await self._client.aclose()
