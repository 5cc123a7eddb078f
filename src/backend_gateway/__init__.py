"""Backend gateway: a uniform REST surface over independently failing backends."""

__version__ = "2.0.0"
__description__ = (
    "REST gateway over a document store, a key-value cache and a message "
    "broker that degrades gracefully when any of them is unreachable"
)
