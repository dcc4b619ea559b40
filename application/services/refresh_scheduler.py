import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, wait_exponential

from domain.exceptions.currency import FetchError, UpstreamTimeoutError
from domain.models.currency import RateSnapshot
from infrastructure.cache.rate_cache import RateCache
from infrastructure.sources.base import RateSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefreshStatus:
	running: bool
	refresh_in_flight: bool
	consecutive_failures: int
	last_attempt_at: datetime | None
	last_success_at: datetime | None
	last_failure_at: datetime | None
	last_error: str | None
	next_retry_at: datetime | None


class RefreshScheduler:
	"""Keeps the RateCache filled from a RateSource.

	At most one fetch runs at a time; concurrent callers of `refresh()` share it.
	A failed fetch never touches the cache, the last good snapshot keeps being
	served while the background loop retries with exponential backoff.
	"""

	def __init__(
		self,
		source: RateSource,
		cache: RateCache,
		refresh_interval: timedelta = timedelta(hours=1),
		fetch_timeout: float = 10,
		backoff_min: float = 5,
		backoff_max: float = 600,
		backoff_multiplier: float = 2,
		clock: Callable[[], datetime] | None = None,
	):
		self.source = source
		self.cache = cache
		self.refresh_interval = refresh_interval
		self.fetch_timeout = fetch_timeout
		self.backoff_min = backoff_min
		self.backoff_max = backoff_max
		self.backoff_multiplier = backoff_multiplier
		self._clock = clock or (lambda: datetime.now(UTC))
		self._wait = wait_exponential(multiplier=backoff_multiplier, min=backoff_min, max=backoff_max)

		self._refresh_task: asyncio.Task | None = None
		self._loop_task: asyncio.Task | None = None

		self.consecutive_failures = 0
		self.last_attempt_at: datetime | None = None
		self.last_success_at: datetime | None = None
		self.last_failure_at: datetime | None = None
		self.last_error: str | None = None
		self.next_retry_at: datetime | None = None

	@property
	def refresh_in_flight(self) -> bool:
		return self._refresh_task is not None

	@property
	def is_backing_off(self) -> bool:
		return self.next_retry_at is not None and self._clock() < self.next_retry_at

	@property
	def is_running(self) -> bool:
		return self._loop_task is not None and not self._loop_task.done()

	async def refresh(self) -> RateSnapshot:
		"""Fetch and install a new snapshot, joining a fetch already in flight."""
		task = self._refresh_task or self._start_refresh()
		# shield: a cancelled caller must not cancel the fetch other callers wait on
		return await asyncio.shield(task)

	def trigger(self) -> bool:
		"""Start a background refresh unless one is running or the last one failed too recently."""
		if self._refresh_task is not None or self.is_backing_off:
			return False
		self._start_refresh()
		return True

	def _start_refresh(self) -> asyncio.Task:
		# no await between the check in the caller and this assignment
		task = asyncio.create_task(self._run_refresh())
		self._refresh_task = task
		task.add_done_callback(self._on_refresh_done)
		return task

	def _on_refresh_done(self, task: asyncio.Task) -> None:
		if self._refresh_task is task:
			self._refresh_task = None
		if not task.cancelled():
			# failures are already logged in _run_refresh
			task.exception()

	async def _run_refresh(self) -> RateSnapshot:
		self.last_attempt_at = self._clock()
		try:
			snapshot = await asyncio.wait_for(self.source.fetch_snapshot(), timeout=self.fetch_timeout)
		except TimeoutError as e:
			error = UpstreamTimeoutError(
				f'Fetch from {self.source.name} exceeded {self.fetch_timeout}s'
			)
			self._record_failure(error)
			raise error from e
		except FetchError as e:
			self._record_failure(e)
			raise
		except Exception as e:
			logger.exception(f'Unexpected error while fetching from {self.source.name}')
			error = FetchError(f'Unexpected error from {self.source.name}: {e}')
			self._record_failure(error)
			raise error from e
		else:
			self.cache.install(snapshot)
			self.last_success_at = self._clock()
			self.consecutive_failures = 0
			self.last_error = None
			self.next_retry_at = None
			logger.info(
				f'Refreshed rates from {self.source.name}: {len(snapshot)} currencies '
				f'valid for {snapshot.valid_for}'
			)
			return snapshot
		finally:
			if self._refresh_task is asyncio.current_task():
				self._refresh_task = None

	def _record_failure(self, error: FetchError) -> None:
		self.consecutive_failures += 1
		self.last_failure_at = self._clock()
		self.last_error = str(error)
		self.next_retry_at = self.last_failure_at + timedelta(seconds=self.backoff_delay(self.consecutive_failures))
		age = self.cache.current_age()
		logger.error(
			f'Refresh from {self.source.name} failed ({self.consecutive_failures} in a row): {error}. '
			+ ('No snapshot available' if age is None else f'Keeping snapshot aged {age}')
		)

	def backoff_delay(self, failures: int) -> float:
		"""Seconds to wait after `failures` consecutive failed refreshes."""
		retry_state = RetryCallState(retry_object=None, fn=None, args=(), kwargs={})
		retry_state.attempt_number = max(failures, 1)
		return self._wait(retry_state)

	def _retry_wait_seconds(self) -> float:
		if self.next_retry_at is None:
			return 0
		return max((self.next_retry_at - self._clock()).total_seconds(), 0)

	def _log_retry(self, retry_state: RetryCallState) -> None:
		delay = retry_state.next_action.sleep if retry_state.next_action else 0
		logger.warning(
			f'Retrying refresh from {self.source.name} in {delay:.1f}s '
			f'(attempt {retry_state.attempt_number} failed)'
		)

	async def _refresh_with_retry(self) -> RateSnapshot:
		retrying = AsyncRetrying(
			wait=self._wait,
			retry=retry_if_exception_type(FetchError),
			before_sleep=self._log_retry,
			reraise=True,
		)
		async for attempt in retrying:
			with attempt:
				return await self.refresh()

	async def _run(self) -> None:
		logger.info(
			f'Refresh loop started for {self.source.name} '
			f'(interval {self.refresh_interval.total_seconds():.0f}s)'
		)
		while True:
			try:
				if not self.cache.is_empty:
					await asyncio.sleep(self.refresh_interval.total_seconds())
				elif self.consecutive_failures:
					# a failed refresh just happened, do not hit upstream again right away
					await asyncio.sleep(self._retry_wait_seconds())
				await self._refresh_with_retry()
			except asyncio.CancelledError:
				logger.info('Refresh loop received cancellation signal')
				raise
			except Exception:
				logger.exception('Refresh loop cycle failed')
				await asyncio.sleep(self.backoff_max)

	async def start(self) -> None:
		if self.is_running:
			return

		try:
			await self.refresh()
		except FetchError:
			logger.warning('Initial refresh failed, serving no rates until a refresh succeeds')

		self._loop_task = asyncio.create_task(self._run())

	async def stop(self) -> None:
		tasks = [t for t in (self._loop_task, self._refresh_task) if t is not None]
		for task in tasks:
			task.cancel()
		for task in tasks:
			with contextlib.suppress(asyncio.CancelledError, FetchError):
				await task

		self._loop_task = None
		self._refresh_task = None
		logger.info('Refresh scheduler stopped')

	def status(self) -> RefreshStatus:
		return RefreshStatus(
			running=self.is_running,
			refresh_in_flight=self.refresh_in_flight,
			consecutive_failures=self.consecutive_failures,
			last_attempt_at=self.last_attempt_at,
			last_success_at=self.last_success_at,
			last_failure_at=self.last_failure_at,
			last_error=self.last_error,
			next_retry_at=self.next_retry_at,
		)
