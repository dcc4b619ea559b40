import logging
from datetime import timedelta

from application.services import CachedExchangeRateProvider, ExchangeRateProvider, RefreshScheduler
from config.settings import get_settings
from infrastructure.cache.rate_cache import RateCache
from infrastructure.sources import CNBRateSource, RateSource

logger = logging.getLogger(__name__)


class AppDependencies:
	"""Container for application-wide singleton dependencies."""

	source: RateSource | None = None
	cache: RateCache | None = None
	scheduler: RefreshScheduler | None = None
	provider: ExchangeRateProvider | None = None


deps = AppDependencies()


def init_dependencies() -> None:
	"""Initialize all singleton dependencies. Called at app startup."""
	logger.info('Initializing dependencies...')
	settings = get_settings()

	deps.source = CNBRateSource(
		base_url=settings.CNB_API_URL,
		timeout=settings.FETCH_TIMEOUT_SECONDS,
		language=settings.CNB_LANGUAGE,
	)
	deps.cache = RateCache()
	deps.scheduler = RefreshScheduler(
		source=deps.source,
		cache=deps.cache,
		refresh_interval=timedelta(seconds=settings.REFRESH_INTERVAL_SECONDS),
		fetch_timeout=settings.FETCH_TIMEOUT_SECONDS,
		backoff_min=settings.RETRY_BACKOFF_MIN_SECONDS,
		backoff_max=settings.RETRY_BACKOFF_MAX_SECONDS,
		backoff_multiplier=settings.RETRY_BACKOFF_MULTIPLIER,
	)
	deps.provider = CachedExchangeRateProvider(
		cache=deps.cache,
		scheduler=deps.scheduler,
		staleness_threshold=timedelta(seconds=settings.STALENESS_THRESHOLD_SECONDS),
	)
	logger.info('Dependencies initialized')


async def bootstrap() -> None:
	"""Load the first snapshot and start the refresh loop. Called after init_dependencies()."""
	if deps.scheduler is None:
		raise RuntimeError('Dependencies not initialized. Call init_dependencies() first.')

	logger.info('Bootstrapping exchange rates...')
	await deps.scheduler.start()
	logger.info('Bootstrap complete')


async def cleanup_dependencies() -> None:
	logger.info('Cleaning up dependencies...')

	if deps.scheduler:
		await deps.scheduler.stop()
	if deps.cache:
		deps.cache.clear()
	if deps.source:
		await deps.source.close()

	deps.source = deps.cache = deps.scheduler = deps.provider = None
	logger.info('Cleanup complete')


def get_exchange_rate_provider() -> ExchangeRateProvider:
	if deps.provider is None:
		raise RuntimeError('Exchange rate provider not initialized')
	return deps.provider


def get_rate_cache() -> RateCache:
	if deps.cache is None:
		raise RuntimeError('Rate cache not initialized')
	return deps.cache


def get_refresh_scheduler() -> RefreshScheduler:
	if deps.scheduler is None:
		raise RuntimeError('Refresh scheduler not initialized')
	return deps.scheduler
