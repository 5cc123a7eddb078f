"""
In-memory user store used when the document store is unavailable.

Process-lifetime only. Ids are assigned as current maximum plus one under a
lock, so they stay unique and strictly increasing under concurrent creates.
"""

import asyncio

from backend_gateway.domain.models import User

DEMO_USERS = (
    ("John Doe", "john@example.com"),
    ("Jane Smith", "jane@example.com"),
)


class InMemoryUserStore:
    """Ordered, append-only user list."""

    def __init__(self, seed_users: bool = False) -> None:
        self._users: list[User] = []
        self._lock = asyncio.Lock()

        if seed_users:
            for index, (name, email) in enumerate(DEMO_USERS, start=1):
                self._users.append(User(id=index, name=name, email=email))

    def __len__(self) -> int:
        return len(self._users)

    async def list_users(self) -> list[User]:
        """All users in append order."""
        return list(self._users)

    async def get_user(self, user_id: int | str) -> User | None:
        """Look up by integer id; non-numeric ids are not found."""
        try:
            wanted = int(user_id)
        except (TypeError, ValueError):
            return None

        for user in self._users:
            if user.id == wanted:
                return user
        return None

    async def create_user(self, name: str, email: str) -> User:
        """Append a user with the next id."""
        async with self._lock:
            next_id = max((int(u.id) for u in self._users), default=0) + 1
            user = User(id=next_id, name=name, email=email)
            self._users.append(user)
            return user

    async def clear(self) -> None:
        """Remove all users."""
        async with self._lock:
            self._users.clear()
