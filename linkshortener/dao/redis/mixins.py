"""Redis mixin providing shared client initialization and connectivity checks.

Responsibilities:
    - Initialized Redis client
    - Healthcheck Redis client

Classes:
    - RedisClientMixin: Base mixin to inject Redis key managemnent, client setup & healthcheck.

Example:
    Typical usage with a DAO implementation:

        >>> class LinkRedisDAO(RedisClientMixin, LinkBaseDAO):
        ...     pass
        ...
        >>> dao = LinkRedisDAO(prefix="myapp:prod")
        >>> dao._healthcheck()
        True
"""

import redis

from linkshortener.dao.redis.redis_key_schema import RedisKeySchema
from linkshortener.dao.exceptions import DataStoreError


class RedisClientMixin:
    """Mixin Redis client setup and health check for Redis-backed DAOs.

    Attributes:
        redis (redis.Redis):
            Active Redis client instance used by subclasses.

        keys (RedisKeySchema):
            Helper class for generating namespaced Redis key names.

    Methods:
        _healthcheck(raise_error: bool = True) -> bool:
            Ping Redis to verify connectivity.
            Optionally raise a DataStoreError if unreachable.
    """

    def __init__(
        self,
        redis_host: str | None = 'localhost',
        redis_port: int | None = 6379,
        redis_db: int | None = 0,
        redis_username: str | None = None,
        redis_password: str | None = None,
        redis_client: redis.Redis | None = None,
        prefix: str | None = None,
        healthcheck: bool = True,
    ):
        """Initialize a Redis-based DAO

        The option is given to either use an existing Redis client instance or
        create one via the appropriate Redis connection parameters. Clients are
        always created with decoded (str) responses.

        Args:
            redis_host (str | None):
                Hostname of the Redis server. Defaults to 'localhost'.

            redis_port (int | None):
                Redis server port. Defaults to 6379.

            redis_db (int | None):
                Redis database index. Defaults to 0.

            redis_username (str | None):
                Username for Redis authentication (if required).

            redis_password (str | None):
                Password for Redis authentication (if required).

            redis_client (redis.Redis | None):
                Pre-initialized Redis client. If None, a new client is created.

            prefix (str | None):
                Namespace prefix for all Redis keys, e.g. 'app:env'.

            healthcheck (bool):
                PING Redis on construction. Defaults to True.

        Raises:
            DataStoreError:
                If Redis healthcheck fails (connectivity issues).
        """
        if redis_client is None:
            redis_client = redis.Redis(
                host=redis_host,
                port=int(redis_port),
                db=int(redis_db),
                decode_responses=True,
                username=redis_username,
                password=redis_password,
            )

        self.redis = redis_client
        self.keys = RedisKeySchema(prefix=prefix)

        if healthcheck:
            self._healthcheck()

    def _healthcheck(self, raise_error: bool = True) -> bool:
        """PING Redis to healthcheck connectivity

        Args:
            raise_error (bool):
                If True, raises DataStoreError on failure. Defaults to True.

        Returns:
            bool:
                True if Redis is reachable, False otherwise (only if raise_error=False).

        Raises:
            DataStoreError:
                If Redis connection cannot be established and raise_error=True.
        """
        try:
            self.redis.ping()
        except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as e:
            if raise_error:
                info = self.redis.connection_pool.connection_kwargs
                redis_host = info.get('host')
                redis_port = info.get('port')
                redis_db = info.get('db')
                raise DataStoreError(
                    f"Can't connect to Redis at {redis_host}:{redis_port}/{redis_db}. Check the provided configuration parameters."
                ) from e
            return False
        else:
            return True
