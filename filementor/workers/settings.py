"""Arq connection settings shared by the API and the worker."""

from arq.connections import RedisSettings

from filementor.config import get_settings

settings = get_settings()

redis_settings = RedisSettings.from_dsn(settings.redis_url)
