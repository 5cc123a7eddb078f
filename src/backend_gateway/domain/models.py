"""Domain models for the backend gateway."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BackendKind(str, Enum):
    """The three backing services behind the gateway."""

    DOCUMENT_STORE = "mongodb"
    CACHE = "redis"
    BROKER = "rabbitmq"


class BackendStatus(str, Enum):
    """Availability of a single backend as reported to callers."""

    CONNECTED = "connected"
    NOT_CONNECTED = "not connected"
    DISABLED = "disabled"


class StorageBackend(str, Enum):
    """Storage path actually used to answer a request."""

    MONGODB = "mongodb"
    MEMORY = "memory"
    REDIS = "redis"
    NOT_AVAILABLE = "not available"


class User(BaseModel):
    """A user record.

    ``id`` is an integer on the in-memory path and the document id string on
    the document store path.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: int | str
    name: str
    email: str
    created_at: datetime | None = Field(default=None, alias="createdAt")

    def to_response(self) -> dict[str, Any]:
        """Render for API responses."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class CreateUserRequest(BaseModel):
    """Body of ``POST /users``."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = None
    email: str | None = None

    @field_validator("name", "email")
    @classmethod
    def empty_to_none(cls, v: str | None) -> str | None:
        return v or None


class PublishMessageRequest(BaseModel):
    """Body of ``POST /queue/publish``."""

    message: Any = None


class QueueStats(BaseModel):
    """Result of a passive queue inspection.

    Counts are None when the broker could not be asked.
    """

    queue: str
    status: BackendStatus = BackendStatus.CONNECTED
    message_count: int | None = None
    consumer_count: int | None = None


class OperationResult(BaseModel):
    """Outcome of a capability as decided by the fallback policy.

    ``storage`` names the path that served the request so callers can tell a
    live answer from a fallback one.
    """

    success: bool
    storage: StorageBackend | None = None
    data: Any = None
    error: str | None = None

    @classmethod
    def ok(cls, data: Any, storage: StorageBackend | None = None) -> "OperationResult":
        return cls(success=True, storage=storage, data=data)

    @classmethod
    def unavailable(
        cls, error: str, storage: StorageBackend | None = None, data: Any = None
    ) -> "OperationResult":
        return cls(success=False, storage=storage, data=data, error=error)


def utc_now() -> datetime:
    """Current UTC time."""
    return datetime.now(UTC)
