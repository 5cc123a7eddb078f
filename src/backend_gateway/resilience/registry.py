"""Availability registry: one read-only view over all backend handles."""

from backend_gateway.domain.models import BackendKind, BackendStatus
from backend_gateway.infrastructure.backends.base import BackendHandle


class AvailabilityRegistry:
    """Aggregates handle states at query time. Holds no state of its own."""

    def __init__(self, handles: list[BackendHandle]):
        self._handles: dict[BackendKind, BackendHandle] = {}
        for handle in handles:
            if handle.kind in self._handles:
                raise ValueError(f"Duplicate handle for backend: {handle.kind.value}")
            self._handles[handle.kind] = handle

        missing = set(BackendKind) - set(self._handles)
        if missing:
            names = ", ".join(sorted(kind.value for kind in missing))
            raise ValueError(f"Missing handles for backends: {names}")

    def handle(self, kind: BackendKind) -> BackendHandle:
        return self._handles[kind]

    def handles(self) -> list[BackendHandle]:
        return list(self._handles.values())

    def status(self, kind: BackendKind) -> BackendStatus:
        return self._handles[kind].status()

    def is_available(self, kind: BackendKind) -> bool:
        """True only when the handle is connected with a live session."""
        return self.status(kind) == BackendStatus.CONNECTED

    def snapshot(self) -> dict[str, str]:
        """Backend name to ``connected``, ``not connected`` or ``disabled``."""
        return {
            kind.value: self._handles[kind].status().value for kind in BackendKind
        }

