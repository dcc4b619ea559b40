from datetime import timedelta
from typing import Annotated

from fastapi import APIRouter, Depends

from api.dependencies import get_rate_cache, get_refresh_scheduler
from api.schemas import HealthResponse
from application.services import RefreshScheduler
from config.settings import Settings, get_settings
from infrastructure.cache.rate_cache import RateCache

router = APIRouter(prefix='/api/v1', tags=['health'])


@router.get('/health', response_model=HealthResponse, summary='Rate cache and refresh status')
async def health_check(
	cache: Annotated[RateCache, Depends(get_rate_cache)],
	scheduler: Annotated[RefreshScheduler, Depends(get_refresh_scheduler)],
	settings: Annotated[Settings, Depends(get_settings)],
) -> HealthResponse:
	snapshot = cache.snapshot
	age = cache.current_age()

	if snapshot is None:
		health_status = 'unavailable'
	elif cache.is_stale(timedelta(seconds=settings.STALENESS_THRESHOLD_SECONDS)):
		health_status = 'degraded'
	else:
		health_status = 'healthy'

	return HealthResponse(
		status=health_status,
		snapshot_age_seconds=age.total_seconds() if age is not None else None,
		valid_for=snapshot.valid_for if snapshot is not None else None,
		currencies=len(snapshot) if snapshot is not None else 0,
		refresh=scheduler.status(),
	)
