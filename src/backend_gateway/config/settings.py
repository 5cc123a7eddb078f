"""
Configuration management for the backend gateway.

Each backend gets its own settings class with an environment prefix, so the
whole connection surface can be driven from environment variables or a
``.env`` file. Settings are resolved once at startup and treated as immutable.
"""

import os
from enum import Enum
from urllib.parse import quote

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environments."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class MongoSettings(BaseSettings):
    """Document store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MONGO_", env_file=".env", extra="ignore", frozen=True
    )

    url: str = "mongodb://localhost:27017/sample_app"
    database: str = "sample_app"
    collection: str = "users"
    server_selection_timeout_ms: int = 2000


class RedisSettings(BaseSettings):
    """Cache configuration.

    Either a full ``REDIS_URL`` or the host/port/credentials tuple.
    """

    model_config = SettingsConfigDict(
        env_prefix="REDIS_", env_file=".env", extra="ignore", frozen=True
    )

    url: str = ""
    host: str = "localhost"
    port: int = 6379
    username: str | None = None
    password: str | None = None

    counter_key: str = "api_counter"
    socket_timeout: float = 2.0

    @property
    def connection_url(self) -> str:
        """Redis connection URL."""
        if self.url:
            return self.url

        auth = ""
        if self.username and self.password:
            auth = f"{quote(self.username, safe='')}:{quote(self.password, safe='')}@"
        elif self.password:
            auth = f":{quote(self.password, safe='')}@"
        elif self.username:
            auth = f"{quote(self.username, safe='')}@"
        return f"redis://{auth}{self.host}:{self.port}"


class BrokerSettings(BaseSettings):
    """Message broker configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MSMQ_", env_file=".env", extra="ignore", frozen=True
    )

    enable: bool = True
    protocol: str = "amqp"
    host: str = "localhost"
    port: int = 5672
    username: str = "guest"
    password: str = "guest"
    queue: str = "task_queue"

    @field_validator("protocol")
    @classmethod
    def validate_protocol(cls, v: str) -> str:
        v = v.lower()
        if v not in ("amqp", "amqps"):
            raise ValueError("Broker protocol must be 'amqp' or 'amqps'")
        return v

    @property
    def url(self) -> str:
        """AMQP connection URL."""
        return (
            f"{self.protocol}://{quote(self.username, safe='')}:"
            f"{quote(self.password, safe='')}@{self.host}:{self.port}"
        )


class RetrySettings(BaseSettings):
    """Connect retry budget and live operation timeout shared by all backends."""

    model_config = SettingsConfigDict(
        env_prefix="RETRY_", env_file=".env", extra="ignore", frozen=True
    )

    connect_max_attempts: int = Field(default=3, ge=1, le=10)
    connect_base_delay: float = Field(default=0.1, ge=0.0)
    connect_max_delay: float = Field(default=2.0, ge=0.0)
    connect_timeout: float = Field(default=5.0, gt=0.0)

    operation_timeout: float = Field(default=2.0, gt=0.0)


class ObservabilitySettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="OBSERVABILITY_", env_file=".env", extra="ignore", frozen=True
    )

    log_level: LogLevel = LogLevel.INFO
    log_format: str = "console"
    log_dir: str = "logs"
    log_file_name: str = "app.log"
    log_tail_limit: int = 50
    enable_colors: bool = False

    @property
    def log_file(self) -> str:
        """Path of the append-only application log."""
        return os.path.join(self.log_dir, self.log_file_name)


class MemorySettings(BaseSettings):
    """In-process user store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MEMORY_", env_file=".env", extra="ignore", frozen=True
    )

    seed_users: bool = False


class ApplicationSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Application info
    app_name: str = "Backend Gateway"
    app_version: str = "2.0.0"

    # Environment
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False

    # Server settings
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Component settings
    mongo: MongoSettings = Field(default_factory=MongoSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    broker: BrokerSettings = Field(default_factory=BrokerSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    memory: MemorySettings = Field(default_factory=MemorySettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == Environment.PRODUCTION


# Environment-specific configurations
class DevelopmentSettings(ApplicationSettings):
    """Development environment settings."""

    environment: Environment = Environment.DEVELOPMENT
    debug: bool = True

    observability: ObservabilitySettings = Field(
        default_factory=lambda: ObservabilitySettings(log_level=LogLevel.DEBUG)
    )


class TestingSettings(ApplicationSettings):
    """Testing environment settings."""

    environment: Environment = Environment.TESTING
    debug: bool = True

    # Fail fast in tests
    retry: RetrySettings = Field(
        default_factory=lambda: RetrySettings(
            connect_max_attempts=1,
            connect_base_delay=0.0,
            connect_timeout=0.5,
            operation_timeout=0.5,
        )
    )

    observability: ObservabilitySettings = Field(
        default_factory=lambda: ObservabilitySettings(log_level=LogLevel.WARNING)
    )


class StagingSettings(ApplicationSettings):
    """Staging environment settings."""

    environment: Environment = Environment.STAGING
    debug: bool = False


class ProductionSettings(ApplicationSettings):
    """Production environment settings."""

    environment: Environment = Environment.PRODUCTION
    debug: bool = False

    observability: ObservabilitySettings = Field(
        default_factory=lambda: ObservabilitySettings(
            log_level=LogLevel.INFO, log_format="json"
        )
    )


def get_settings() -> ApplicationSettings:
    """Get application settings based on environment."""
    environment = os.getenv("ENVIRONMENT", "development").lower()

    if environment == "development":
        return DevelopmentSettings()
    elif environment == "production":
        return ProductionSettings()
    elif environment == "staging":
        return StagingSettings()
    elif environment == "testing":
        return TestingSettings()
    else:
        return ApplicationSettings()
