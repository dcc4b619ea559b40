import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta

from domain.exceptions.currency import RatesUnavailableError
from domain.models.currency import Currency, ExchangeRate, RateSnapshot

logger = logging.getLogger(__name__)


class RateCache:
	"""Holds the current RateSnapshot.

	The snapshot is replaced by a single reference assignment and never mutated,
	so readers always see one complete snapshot without taking a lock.
	"""

	def __init__(self, clock: Callable[[], datetime] | None = None):
		self._snapshot: RateSnapshot | None = None
		self._clock = clock or (lambda: datetime.now(UTC))

	@property
	def snapshot(self) -> RateSnapshot | None:
		return self._snapshot

	@property
	def is_empty(self) -> bool:
		return self._snapshot is None

	def _require_snapshot(self) -> RateSnapshot:
		snapshot = self._snapshot
		if snapshot is None:
			raise RatesUnavailableError()
		return snapshot

	def lookup(self, currency: Currency) -> ExchangeRate | None:
		return self._require_snapshot().get(currency)

	def lookup_many(
		self, currencies: Sequence[Currency]
	) -> list[tuple[Currency, ExchangeRate | None]]:
		# one read of the reference so the whole batch comes from the same snapshot
		snapshot = self._require_snapshot()
		return [(currency, snapshot.get(currency)) for currency in currencies]

	def install(self, snapshot: RateSnapshot) -> bool:
		current = self._snapshot
		if current is not None and snapshot.as_of < current.as_of:
			logger.warning(
				f'Ignoring snapshot from {snapshot.as_of.isoformat()}: '
				f'current snapshot is newer ({current.as_of.isoformat()})'
			)
			return False

		self._snapshot = snapshot
		logger.info(
			f'Installed {snapshot.source} snapshot valid for {snapshot.valid_for} '
			f'with {len(snapshot)} rates'
		)
		return True

	def current_age(self) -> timedelta | None:
		snapshot = self._snapshot
		if snapshot is None:
			return None
		return self._clock() - snapshot.as_of

	def is_stale(self, threshold: timedelta) -> bool:
		age = self.current_age()
		return age is None or age > threshold

	def clear(self) -> None:
		self._snapshot = None
