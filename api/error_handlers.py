import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from domain.exceptions.currency import InvalidCurrencyError, RateNotFoundError, RatesUnavailableError

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
	@app.exception_handler(InvalidCurrencyError)
	async def invalid_currency_handler(request: Request, exc: InvalidCurrencyError):
		return JSONResponse(status_code=400, content={'detail': str(exc)})

	@app.exception_handler(RateNotFoundError)
	async def rate_not_found_handler(request: Request, exc: RateNotFoundError):
		return JSONResponse(status_code=404, content={'detail': str(exc)})

	@app.exception_handler(RatesUnavailableError)
	async def rates_unavailable_handler(request: Request, exc: RatesUnavailableError):
		logger.error(f'Rates unavailable for {request.url.path}: {exc}')
		return JSONResponse(status_code=503, content={'detail': str(exc)})

	@app.exception_handler(Exception)
	async def global_exception_handler(request: Request, exc: Exception):
		logger.error(f'Unhandled exception: {exc}', exc_info=True)
		return JSONResponse(status_code=500, content={'detail': 'Internal server error'})
