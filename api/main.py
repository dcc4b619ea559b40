import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.dependencies import bootstrap, cleanup_dependencies, init_dependencies
from api.error_handlers import register_exception_handlers
from api.routes import exchange_rates, health
from config.logging import setup_logging
from config.settings import get_settings

settings = get_settings()
setup_logging(settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	logger.info(f'Starting {settings.APP_NAME}...')

	init_dependencies()
	await bootstrap()

	logger.info('Application ready')

	yield

	logger.info('Shutting down...')
	await cleanup_dependencies()


app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG, lifespan=lifespan)

app.include_router(exchange_rates.router)
app.include_router(health.router)
register_exception_handlers(app)


if __name__ == '__main__':
	import uvicorn

	logger.info(f'Starting server on {settings.HOST}:{settings.PORT}')
	uvicorn.run('api.main:app', host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())
