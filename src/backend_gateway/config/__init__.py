"""Configuration package."""

from .settings import (
    ApplicationSettings,
    BrokerSettings,
    Environment,
    MemorySettings,
    MongoSettings,
    ObservabilitySettings,
    RedisSettings,
    RetrySettings,
    get_settings,
)

__all__ = [
    "ApplicationSettings",
    "BrokerSettings",
    "Environment",
    "MemorySettings",
    "MongoSettings",
    "ObservabilitySettings",
    "RedisSettings",
    "RetrySettings",
    "get_settings",
]
