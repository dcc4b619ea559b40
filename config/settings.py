from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
	CNB_API_URL: str = 'https://api.cnb.cz/cnbapi'
	CNB_LANGUAGE: str = 'EN'

	# Refresh policy, all in seconds
	FETCH_TIMEOUT_SECONDS: float = 10
	REFRESH_INTERVAL_SECONDS: float = 3600
	STALENESS_THRESHOLD_SECONDS: float = 86400
	RETRY_BACKOFF_MIN_SECONDS: float = 5
	RETRY_BACKOFF_MAX_SECONDS: float = 600
	RETRY_BACKOFF_MULTIPLIER: float = 2

	# Application
	APP_NAME: str = 'Exchange Rate API'
	HOST: str = '0.0.0.0'
	PORT: int = 8000
	DEBUG: bool = False
	LOG_LEVEL: str = 'INFO'
	LOG_JSON: bool = False

	model_config = SettingsConfigDict(env_file='.env', case_sensitive=False, extra='ignore')


@lru_cache
def get_settings() -> Settings:
	return Settings()
