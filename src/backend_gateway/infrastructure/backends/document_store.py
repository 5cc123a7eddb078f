"""
MongoDB handle for user persistence.

The session is an async pymongo client. Documents carry ``name``, ``email``
and ``createdAt``; the document id is exposed to callers as a string ``id``.
"""

from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import AsyncMongoClient, DESCENDING

from backend_gateway.config.settings import MongoSettings
from backend_gateway.domain.models import BackendKind, User, utc_now
from backend_gateway.infrastructure.backends.base import BackendHandle, mask_url
from backend_gateway.resilience.retry import RetryConfig


class DocumentStoreHandle(BackendHandle):
    """Handle owning the MongoDB client."""

    kind = BackendKind.DOCUMENT_STORE

    def __init__(
        self, settings: MongoSettings, retry_config: RetryConfig | None = None
    ):
        super().__init__(retry_config)
        self.settings = settings

    def describe_target(self) -> str:
        return mask_url(self.settings.url)

    async def _open_session(self) -> AsyncMongoClient:
        client: AsyncMongoClient = AsyncMongoClient(
            self.settings.url,
            serverSelectionTimeoutMS=self.settings.server_selection_timeout_ms,
        )
        try:
            await client.admin.command("ping")
        except Exception:
            await client.close()
            raise
        return client

    async def _close_session(self, session: AsyncMongoClient) -> None:
        await session.close()

    def _collection(self) -> Any:
        client = self.require_session()
        database = client.get_default_database(default=self.settings.database)
        return database[self.settings.collection]

    # User operations

    async def list_users(self) -> list[User]:
        """All users, newest first."""
        cursor = self._collection().find().sort("createdAt", DESCENDING)
        documents = await cursor.to_list(length=None)
        return [self._to_user(doc) for doc in documents]

    async def get_user(self, user_id: str) -> User | None:
        """Look up one user by document id. Malformed ids are simply not found."""
        try:
            object_id = ObjectId(user_id)
        except (InvalidId, TypeError):
            return None

        document = await self._collection().find_one({"_id": object_id})
        return self._to_user(document) if document else None

    async def create_user(self, name: str, email: str) -> User:
        """Insert a user document."""
        document: dict[str, Any] = {
            "name": name,
            "email": email,
            "createdAt": utc_now(),
        }
        result = await self._collection().insert_one(document)
        document["_id"] = result.inserted_id
        return self._to_user(document)

    @staticmethod
    def _to_user(document: dict[str, Any]) -> User:
        return User(
            id=str(document["_id"]),
            name=document["name"],
            email=document["email"],
            created_at=document.get("createdAt"),
        )
