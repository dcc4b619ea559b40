from .exchange_rate_provider import (
	CachedExchangeRateProvider,
	ExchangeRateProvider,
	InMemoryExchangeRateProvider,
	RateLookup,
)
from .refresh_scheduler import RefreshScheduler, RefreshStatus

__all__ = [
	'CachedExchangeRateProvider',
	'ExchangeRateProvider',
	'InMemoryExchangeRateProvider',
	'RateLookup',
	'RefreshScheduler',
	'RefreshStatus',
]
