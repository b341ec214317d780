from unittest.mock import MagicMock

import pytest
import redis

from linkshortener.dao.redis import LinkRedisDAO, RateLimitRedisDAO
from linkshortener.dao.s3 import QRArtifactS3Store
from linkshortener.services import LinkShortener
from linkshortener.services.container import build_services


@pytest.fixture
def config() -> dict:
    return {
        'redis': {'host': 'redis.test', 'port': '6379', 'db': '0'},
        'links': {'shortcode_length': 8, 'shortcode_attempts': 3, 'public_base_url': None},
        'rate_limit': {'max_requests': 5, 'window_seconds': 30},
        'artifacts': {'bucket': None, 'prefix': 'qr/', 'public_base_url': None},
        'background': {'max_workers': 2},
        'sweeper': {'interval_seconds': 120, 'lock_timeout_seconds': 600},
    }


@pytest.fixture
def redis_client() -> redis.Redis:
    client = MagicMock(spec=redis.Redis)
    client.ping.return_value = True
    return client


def test_build_services(config: dict, redis_client: redis.Redis):
    services = build_services(config, prefix='testapp:test', redis_client=redis_client)

    assert isinstance(services.link_dao, LinkRedisDAO)
    assert isinstance(services.rate_limit_dao, RateLimitRedisDAO)
    assert services.artifact_store is None
    assert services.resolver.length == 8
    assert services.resolver.max_attempts == 3
    assert services.admission.max_requests == 5
    assert services.admission.window_seconds == 30
    assert services.sweeper.lock is redis_client.lock.return_value
    redis_client.lock.assert_called_once_with('testapp:test:locks:sweeper', timeout=600, blocking=False)
    services.tasks.drain()


def test_build_services_with_artifact_bucket(config: dict, redis_client: redis.Redis, monkeypatch):
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')
    config['artifacts']['bucket'] = 'linkshortener-qr'

    services = build_services(config, prefix='testapp:test', redis_client=redis_client)

    assert isinstance(services.artifact_store, QRArtifactS3Store)
    assert services.sweeper.artifact_store is services.artifact_store
    services.tasks.drain()


def test_shortener_uses_given_base_url(config: dict, redis_client: redis.Redis):
    services = build_services(config, prefix='testapp:test', redis_client=redis_client)

    shortener = services.shortener('https://sho.rt/')

    assert isinstance(shortener, LinkShortener)
    assert shortener.short_url('abc1234') == 'https://sho.rt/abc1234'
    assert shortener.link_dao is services.link_dao
    services.tasks.drain()
