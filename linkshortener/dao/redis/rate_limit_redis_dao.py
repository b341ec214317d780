"""Fixed-window rate limit counters in Redis

Each client gets one counter key per window:

    ratelimit:<client id>   STRING  requests seen in the current window, TTL = remaining window

INCR, the TTL attach and the TTL read run in one Lua script, so the TTL is
attached exactly once (by the first increment of a window) and every instance
of the service observes the same count.
"""

from beartype import beartype

from linkshortener.dao.base import RateLimitBaseDAO
from linkshortener.dao.redis.mixins import RedisClientMixin
from linkshortener.dao.redis.helpers import handle_redis_connection_error


# Lua: the first increment of a window (or a counter left without a TTL) attaches it
INCR_WITH_WINDOW = """
local requests = redis.call('INCR', KEYS[1])
if requests == 1 or redis.call('TTL', KEYS[1]) == -1 then
    redis.call('EXPIRE', KEYS[1], ARGV[1])
end
return {requests, redis.call('TTL', KEYS[1])}
"""


class RateLimitRedisDAO(RedisClientMixin, RateLimitBaseDAO):
    """Redis-based fixed-window request counters

    Example:
        >>> dao = RateLimitRedisDAO(redis_client=client, prefix='linkshortener:dev')
        >>> dao.hit('203.0.113.7', window_seconds=60)
        (1, 60)
        >>> dao.hit('203.0.113.7', window_seconds=60)
        (2, 59)
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._incr_with_window = self.redis.register_script(INCR_WITH_WINDOW)

    @handle_redis_connection_error
    @beartype
    def hit(self, client_id: str, window_seconds: int, **kwargs) -> tuple[int, int]:
        """Count one request for a client in the current window

        Args:
            client_id (str):
                Client identity, usually the originating IP address.
            window_seconds (int):
                Window length, used as the counter's TTL.

        Returns:
            tuple[int, int]:
                (requests in the current window, seconds until the window resets)

        Raises:
            DataStoreError:
                If Redis connectivity issues occur.
        """
        rate_limit_key = self.keys.rate_limit_key(client_id)
        requests, ttl = self._incr_with_window(keys=[rate_limit_key], args=[window_seconds])
        return int(requests), int(ttl) if ttl is not None and int(ttl) >= 0 else window_seconds
