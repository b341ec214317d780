"""Admission control (rate limiting) for link creation

A coarse fixed-window limiter: each client may issue `max_requests` creation
requests per `window_seconds`. Because windows reset wholesale, a client can
burst up to twice the limit across a window boundary.

The limiter fails open: if the counter store is unreachable the request is
admitted and the failure is logged.
"""

import logging

import redis

from linkshortener.constants import TTL, Defaults
from linkshortener.dao.base import RateLimitBaseDAO
from linkshortener.dao.exceptions import DataStoreError
from linkshortener.exceptions import RateLimitedError


logger = logging.getLogger(__name__)

RATE_LIMIT_EXCEEDED = 'RATE_LIMIT_EXCEEDED'
RATE_LIMITER_UNAVAILABLE = 'RATE_LIMITER_UNAVAILABLE'


class AdmissionController:
    """Gate requests per client identity

    Example:
        >>> controller = AdmissionController(rate_limit_dao, max_requests=20, window_seconds=60)
        >>> controller.admit('203.0.113.7')  # 1st..20th request: admitted
        >>> controller.admit('203.0.113.7')  # 21st request in the same window
        Traceback (most recent call last):
            ...
        linkshortener.exceptions.RateLimitedError: Rate limit exceeded. Try again in 42 seconds.
    """

    def __init__(
        self,
        rate_limit_dao: RateLimitBaseDAO,
        max_requests: int = Defaults.RATE_LIMIT_MAX_REQUESTS,
        window_seconds: int = TTL.RATE_LIMIT_WINDOW,
    ):
        self.rate_limit_dao = rate_limit_dao
        self.max_requests = max_requests
        self.window_seconds = window_seconds

    def admit(self, client_id: str) -> None:
        """Count the request and reject it if the client is over its limit

        Raises:
            RateLimitedError: with `retry_after` set to the remaining window.
        """
        try:
            requests, ttl = self.rate_limit_dao.hit(client_id, window_seconds=self.window_seconds)
        except (DataStoreError, redis.exceptions.RedisError) as e:
            logger.warning(
                'Rate limiter unavailable. Admitting request.',
                extra={'event': RATE_LIMITER_UNAVAILABLE, 'client': client_id, 'reason': str(e), 'error': e.__class__.__name__},
            )
            return

        if requests > self.max_requests:
            logger.info(
                'Client exceeded the link creation rate limit.',
                extra={'event': RATE_LIMIT_EXCEEDED, 'client': client_id, 'requests': requests, 'retry_after': ttl},
            )
            raise RateLimitedError(retry_after=ttl)
