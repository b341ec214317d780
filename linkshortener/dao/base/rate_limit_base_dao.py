"""Abstract base class for rate limit counter data access objects (DAOs).

A counter store must provide an *atomic* increment-with-expiry: the first
increment in a window attaches a TTL equal to the window length, so the
counter resets wholesale when the window ends (fixed-window limiting).

Example:
    >>> from linkshortener.dao.redis import RateLimitRedisDAO
    >>> dao = RateLimitRedisDAO(...)
    >>> dao.hit('203.0.113.7', window_seconds=60)
    (1, 60)
"""

from abc import ABC, abstractmethod


class RateLimitBaseDAO(ABC):
    """Interface for fixed-window request counters keyed by client identity

    Methods:
        hit(client_id: str, window_seconds: int, **kwargs) -> tuple[int, int]:
            Count one request for the client in the current window.
            Returns (requests so far in window, seconds until the window resets).
            Raises DataStoreError on connection or write failure.
    """

    @abstractmethod
    def hit(self, client_id: str, window_seconds: int, **kwargs) -> tuple[int, int]:
        pass
