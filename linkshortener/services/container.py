"""Construction of the handles a Lambda invocation works with

Handlers call build_services() with the effective configuration and never
reach for module-level clients, so tests inject doubles for every piece.

Example:
    >>> from linkshortener.utils import load_config, app_prefix
    >>> services = build_services(load_config('shorten_url'), prefix=app_prefix())
    >>> services.admission.admit('203.0.113.7')
"""

from dataclasses import dataclass

import redis

from linkshortener.dao.base import LinkBaseDAO, RateLimitBaseDAO, ArtifactBaseStore
from linkshortener.dao.redis import LinkRedisDAO, RateLimitRedisDAO, RedisKeySchema
from linkshortener.dao.s3 import QRArtifactS3Store
from linkshortener.services.admission import AdmissionController
from linkshortener.services.lookup import LinkLookup
from linkshortener.services.shortening import LinkShortener
from linkshortener.services.sweeper import ExpirySweeper
from linkshortener.services.uniqueness import ShortcodeResolver
from linkshortener.utils.background import BackgroundTasks


@dataclass
class Services:
    link_dao: LinkBaseDAO
    rate_limit_dao: RateLimitBaseDAO
    artifact_store: ArtifactBaseStore | None
    tasks: BackgroundTasks
    resolver: ShortcodeResolver
    admission: AdmissionController
    lookup: LinkLookup
    sweeper: ExpirySweeper

    def shortener(self, base_url: str) -> LinkShortener:
        """Link creation service issuing short URLs under `base_url`"""
        return LinkShortener(self.link_dao, self.artifact_store, self.tasks, self.resolver, base_url=base_url)


def build_services(config: dict, prefix: str | None = None, redis_client: redis.Redis | None = None) -> Services:
    """Wire DAOs and services from configuration sections

    Args:
        config (dict):
            Effective configuration, see load_config().
        prefix (str | None):
            Redis key namespace, usually app_prefix().
        redis_client (redis.Redis | None):
            Pre-initialized client shared by every DAO. Created from the
            `redis` section if None.

    Raises:
        DataStoreError: if Redis is unreachable (the link DAO healthchecks it).
    """
    redis_config = config['redis']
    if redis_client is None:
        redis_client = redis.Redis(
            host=redis_config['host'],
            port=int(redis_config['port']),
            db=int(redis_config['db']),
            username=redis_config.get('username'),
            password=redis_config.get('password'),
            decode_responses=True,
        )

    link_dao = LinkRedisDAO(redis_client=redis_client, prefix=prefix)
    # The limiter fails open, so it must not refuse to construct when Redis is down
    rate_limit_dao = RateLimitRedisDAO(redis_client=redis_client, prefix=prefix, healthcheck=False)

    artifacts = config['artifacts']
    artifact_store = None
    if artifacts.get('bucket'):
        artifact_store = QRArtifactS3Store(
            bucket=artifacts['bucket'],
            prefix=artifacts['prefix'],
            public_base_url=artifacts.get('public_base_url'),
        )

    tasks = BackgroundTasks(max_workers=int(config['background']['max_workers']))
    links = config['links']
    rate_limit = config['rate_limit']
    lock = redis_client.lock(
        RedisKeySchema(prefix=prefix).sweeper_lock_key(),
        timeout=int(config['sweeper']['lock_timeout_seconds']),
        blocking=False,
    )

    return Services(
        link_dao=link_dao,
        rate_limit_dao=rate_limit_dao,
        artifact_store=artifact_store,
        tasks=tasks,
        resolver=ShortcodeResolver(link_dao, length=int(links['shortcode_length']), max_attempts=int(links['shortcode_attempts'])),
        admission=AdmissionController(
            rate_limit_dao,
            max_requests=int(rate_limit['max_requests']),
            window_seconds=int(rate_limit['window_seconds']),
        ),
        lookup=LinkLookup(link_dao, tasks),
        sweeper=ExpirySweeper(link_dao, artifact_store, lock=lock),
    )
