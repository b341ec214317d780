"""Data Access Object (DAO) implementation for managing link records in Redis

This module provides a Redis-based implementation of LinkBaseDAO.

Storage layout (keys are namespaced by RedisKeySchema):
    links:<code>       HASH   id, original_url, short_code, expires_at, clicks, qr_artifact_ref, created_at
    links:expiry       ZSET   member <code>, score = expires_at as epoch seconds (expiring links only)
    links:counter      STRING monotonically increasing source of record ids

Records are NOT given a Redis TTL: expired links are treated as gone by the
read paths and physically removed by the expiry sweeper, which also deletes
their QR artifacts.

Classes:
    LinkRedisDAO:
        DAO for storing and retrieving LinkRecordModel in a Redis datastore.

Example:
    >>> from linkshortener.models import LinkRecordModel
    >>> from linkshortener.dao.redis import LinkRedisDAO

    >>> dao = LinkRedisDAO(prefix="app:dev")
    >>> dao.insert(LinkRecordModel(original_url='https://example.com/page', short_code='abc1234'))
    LinkRecordModel(original_url='https://example.com/page', short_code='abc1234', ..., id='1', clicks=0, ...)
    >>> dao.increment_clicks('abc1234')
    1
"""

from dataclasses import replace
from datetime import datetime, UTC
from collections.abc import Iterable

import redis
from beartype import beartype

from linkshortener.models import LinkRecordModel
from linkshortener.dao.base import LinkBaseDAO
from linkshortener.dao.redis.mixins import RedisClientMixin
from linkshortener.dao.redis.helpers import handle_redis_connection_error
from linkshortener.dao.exceptions import LinkAlreadyExistsError, LinkNotFoundError


# Lua: mutate a link hash only while it still exists, so a concurrent sweep
# can't leave behind a partial hash holding a lone field.
HINCRBY_IF_EXISTS = """
if redis.call('EXISTS', KEYS[1]) == 1 then
    return redis.call('HINCRBY', KEYS[1], ARGV[1], ARGV[2])
end
return false
"""

HSET_IF_EXISTS = """
if redis.call('EXISTS', KEYS[1]) == 1 then
    redis.call('HSET', KEYS[1], ARGV[1], ARGV[2])
    return 1
end
return 0
"""


class LinkRedisDAO(RedisClientMixin, LinkBaseDAO):
    """Redis-based Data Access Object (DAO) for managing link records

    Attributes (see RedisClientMixin):
        redis (redis.Redis):
            Redis client used to communicate with the Redis datastore.
        keys (RedisKeySchema):
            Key schema helper for generating namespaced Redis keys.

    Example:
        >>> dao = LinkRedisDAO(redis_host="localhost", prefix="linkshortener:test")
        >>> dao.get("abc1234").original_url
        'https://example.com'
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._hincrby_if_exists = self.redis.register_script(HINCRBY_IF_EXISTS)
        self._hset_if_exists = self.redis.register_script(HSET_IF_EXISTS)

    @handle_redis_connection_error
    @beartype
    def insert(self, record: LinkRecordModel, **kwargs) -> LinkRecordModel:
        """Insert a link record into Redis

        The existence check and the write run under WATCH, so the data store
        (not the caller's earlier existence check) decides who owns a short
        code: if another client creates the same key between WATCH and EXEC,
        the transaction aborts and LinkAlreadyExistsError is raised.

        Args:
            record (LinkRecordModel):
                Record to store. `id`, `clicks` and `created_at` are assigned here.

        Returns:
            LinkRecordModel: the stored record.

        Raises:
            LinkAlreadyExistsError:
                If a link with the same short code already exists.
            DataStoreError:
                If a Redis connection issue occurs during the transaction.
        """
        link_key = self.keys.link_key(record.short_code)
        expiry_index_key = self.keys.expiry_index_key()

        with self.redis.pipeline() as pipe:
            try:
                pipe.watch(link_key)
                if pipe.exists(link_key):
                    raise LinkAlreadyExistsError(f"Link with code '{record.short_code}' already exists.")

                link_id = self.redis.incr(self.keys.counter_key())
                stored = replace(record, id=str(link_id), clicks=0, created_at=datetime.now(UTC))

                pipe.multi()
                pipe.hset(link_key, mapping=self._serialize(stored))
                if stored.expires_at is not None:
                    pipe.zadd(expiry_index_key, {stored.short_code: stored.expires_at.timestamp()})
                pipe.execute()
            except redis.exceptions.WatchError as e:
                raise LinkAlreadyExistsError(f"Link with code '{record.short_code}' already exists.") from e

        return stored

    @handle_redis_connection_error
    @beartype
    def exists(self, short_code: str, **kwargs) -> bool:
        return bool(self.redis.exists(self.keys.link_key(short_code)))

    @handle_redis_connection_error
    @beartype
    def get(self, short_code: str, **kwargs) -> LinkRecordModel:
        """Retrieve a stored link record by short code

        Raises:
            LinkNotFoundError:
                If the link does not exist in Redis.
            DataStoreError:
                If Redis connectivity issues occur.
        """
        data = self.redis.hgetall(self.keys.link_key(short_code))
        if not data or not data.get('original_url'):
            raise LinkNotFoundError(f"Link with code '{short_code}' not found.")
        return self._deserialize(data)

    @handle_redis_connection_error
    @beartype
    def increment_clicks(self, short_code: str, **kwargs) -> int:
        """Atomically add one click to a link

        Returns:
            int: the updated click count.

        Raises:
            LinkNotFoundError:
                If the link was deleted (e.g. swept) before the increment.
            DataStoreError:
                If Redis connectivity issues occur.
        """
        clicks = self._hincrby_if_exists(keys=[self.keys.link_key(short_code)], args=['clicks', 1])
        if clicks is None:
            raise LinkNotFoundError(f"Link with code '{short_code}' not found.")
        return int(clicks)

    @handle_redis_connection_error
    @beartype
    def patch_artifact_ref(self, short_code: str, ref: str, **kwargs) -> None:
        updated = self._hset_if_exists(keys=[self.keys.link_key(short_code)], args=['qr_artifact_ref', ref])
        if not updated:
            raise LinkNotFoundError(f"Link with code '{short_code}' not found.")

    @handle_redis_connection_error
    @beartype
    def list_expired_before(self, timestamp: datetime, **kwargs) -> list[LinkRecordModel]:
        """Snapshot of links whose expiry lies strictly before `timestamp`

        Index entries whose hash has already vanished are pruned on the way.
        """
        expiry_index_key = self.keys.expiry_index_key()
        # '(' makes the upper bound exclusive
        short_codes = self.redis.zrangebyscore(expiry_index_key, '-inf', f'({timestamp.timestamp()}')
        if not short_codes:
            return []

        with self.redis.pipeline(transaction=False) as pipe:
            for short_code in short_codes:
                pipe.hgetall(self.keys.link_key(short_code))
            hashes = pipe.execute()

        records, dangling = [], []
        for short_code, data in zip(short_codes, hashes):
            if data and data.get('original_url'):
                records.append(self._deserialize(data))
            else:
                dangling.append(short_code)

        if dangling:
            self.redis.zrem(expiry_index_key, *dangling)
        return records

    @handle_redis_connection_error
    @beartype
    def delete_many(self, short_codes: Iterable[str], **kwargs) -> int:
        """Delete links and their expiry index entries in one transaction

        Returns:
            int: number of link hashes removed.
        """
        short_codes = list(short_codes)
        if not short_codes:
            return 0

        with self.redis.pipeline(transaction=True) as pipe:
            pipe.delete(*(self.keys.link_key(short_code) for short_code in short_codes))
            pipe.zrem(self.keys.expiry_index_key(), *short_codes)
            deleted, _ = pipe.execute()
        return int(deleted)

    @staticmethod
    def _serialize(record: LinkRecordModel) -> dict[str, str]:
        # Redis hashes only hold strings: None is stored as ''
        return {
            'id': record.id or '',
            'original_url': record.original_url,
            'short_code': record.short_code,
            'expires_at': record.expires_at.astimezone(UTC).isoformat() if record.expires_at else '',
            'clicks': str(record.clicks),
            'qr_artifact_ref': record.qr_artifact_ref or '',
            'created_at': record.created_at.astimezone(UTC).isoformat() if record.created_at else '',
        }

    @staticmethod
    def _deserialize(data: dict[str, str]) -> LinkRecordModel:
        expires_at = data.get('expires_at')
        created_at = data.get('created_at')
        return LinkRecordModel(
            id=data.get('id') or None,
            original_url=data['original_url'],
            short_code=data['short_code'],
            expires_at=datetime.fromisoformat(expires_at) if expires_at else None,
            clicks=int(data.get('clicks') or 0),
            qr_artifact_ref=data.get('qr_artifact_ref') or None,
            created_at=datetime.fromisoformat(created_at) if created_at else None,
        )
