from abc import ABC, abstractmethod
from datetime import date

from domain.models.currency import RateSnapshot


class RateSource(ABC):
	"""An upstream feed that publishes a full rate table at once."""

	@property
	@abstractmethod
	def name(self) -> str: ...

	@abstractmethod
	async def fetch_snapshot(self, for_date: date | None = None) -> RateSnapshot:
		"""Fetch the complete rate table, raising FetchError on any failure."""
		...

	async def close(self) -> None:
		return None
