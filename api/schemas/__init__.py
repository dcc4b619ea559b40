from .responses import ExchangeRateLookupResponse, ExchangeRateResponse, HealthResponse

__all__ = [
	'ExchangeRateLookupResponse',
	'ExchangeRateResponse',
	'HealthResponse',
]
