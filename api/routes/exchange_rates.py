from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from api.dependencies import get_exchange_rate_provider
from api.schemas import ExchangeRateLookupResponse, ExchangeRateResponse
from application.services import ExchangeRateProvider
from domain.exceptions.currency import InvalidCurrencyError

router = APIRouter(prefix='/api/v1/exchange-rates', tags=['exchange-rates'])


def split_currency_codes(raw: str | None) -> list[str]:
	"""'USD, eur ,,xYz' -> ['USD', 'eur', 'xYz'].

	Only empty pieces are dropped; whitespace-only entries are kept and fail validation.
	"""
	if not raw:
		return []
	return [code.strip() for code in raw.split(',') if code]


@router.get(
	'/{currency_code}',
	response_model=ExchangeRateResponse,
	status_code=status.HTTP_200_OK,
	summary='Get the exchange rate of a currency',
)
async def get_exchange_rate(
	currency_code: Annotated[str, Path(description='Three-letter ISO 4217 code, e.g. USD')],
	provider: Annotated[ExchangeRateProvider, Depends(get_exchange_rate_provider)],
) -> ExchangeRateResponse:
	rate = await provider.get_exchange_rate(currency_code)
	return ExchangeRateResponse.from_rate(rate)


@router.get(
	'',
	response_model=list[ExchangeRateLookupResponse],
	status_code=status.HTTP_200_OK,
	summary='Get the exchange rates of several currencies',
)
async def get_exchange_rates(
	provider: Annotated[ExchangeRateProvider, Depends(get_exchange_rate_provider)],
	currency_codes: Annotated[
		str | None,
		Query(description='Comma separated ISO 4217 codes, e.g. USD, EUR, AUD'),
	] = None,
) -> list[ExchangeRateLookupResponse]:
	codes = split_currency_codes(currency_codes)
	if not codes:
		raise InvalidCurrencyError([], 'At least one currency code must be specified.')

	lookups = await provider.get_exchange_rates(codes)
	return [ExchangeRateLookupResponse.from_lookup(lookup) for lookup in lookups]
