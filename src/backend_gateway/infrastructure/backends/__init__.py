"""Backend handles and the in-memory substitute."""

from .base import BackendHandle, mask_url
from .broker import BrokerHandle, BrokerSession
from .cache import CacheHandle
from .document_store import DocumentStoreHandle
from .memory import InMemoryUserStore

__all__ = [
    "BackendHandle",
    "BrokerHandle",
    "BrokerSession",
    "CacheHandle",
    "DocumentStoreHandle",
    "InMemoryUserStore",
    "mask_url",
]
