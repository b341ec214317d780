from collections.abc import Callable
from types import ModuleType
from typing import cast
from unittest.mock import MagicMock

import pytest
from pytest import MonkeyPatch

from linkshortener.types import LambdaContext, LambdaConfiguration
from linkshortener.models import LinkRecordModel
from linkshortener.dao.base import LinkBaseDAO, RateLimitBaseDAO, ArtifactBaseStore
from linkshortener.services import AdmissionController, ExpirySweeper, LinkLookup, ShortcodeResolver
from linkshortener.services.container import Services
from linkshortener.utils.background import BackgroundTasks


@pytest.fixture(autouse=True)
def deployed_runtime(monkeypatch: MonkeyPatch) -> None:
    # Unhandled errors are only turned into 500s outside of SAM local
    monkeypatch.delenv('APP_ENV', raising=False)
    monkeypatch.delenv('AWS_SAM_LOCAL', raising=False)


@pytest.fixture
def config() -> LambdaConfiguration:
    return cast(
        LambdaConfiguration,
        {
            'redis': {'host': 'redis.test', 'port': 6379, 'db': 0},
            'links': {'shortcode_length': 7, 'shortcode_attempts': 5, 'bulk_max_items': 3, 'public_base_url': None},
            'rate_limit': {'max_requests': 20, 'window_seconds': 60},
            'artifacts': {'bucket': 'linkshortener-qr', 'prefix': 'qr/', 'public_base_url': 'https://cdn.test'},
            'background': {'max_workers': 2},
            'sweeper': {'interval_seconds': 120, 'lock_timeout_seconds': 600},
        },
    )


@pytest.fixture
def link_dao() -> LinkBaseDAO:
    dao = cast(LinkBaseDAO, MagicMock(spec=LinkBaseDAO))
    dao.exists.return_value = False
    dao.insert.side_effect = lambda record, **kwargs: LinkRecordModel(
        original_url=record.original_url,
        short_code=record.short_code,
        expires_at=record.expires_at,
        id='1',
    )
    return dao


@pytest.fixture
def rate_limit_dao() -> RateLimitBaseDAO:
    dao = cast(RateLimitBaseDAO, MagicMock(spec=RateLimitBaseDAO))
    dao.hit.return_value = (1, 60)
    return dao


@pytest.fixture
def artifact_store() -> ArtifactBaseStore:
    store = cast(ArtifactBaseStore, MagicMock(spec=ArtifactBaseStore))
    store.put.side_effect = lambda short_code, data: f'https://cdn.test/qr/{short_code}.png'
    store.delete_many.side_effect = lambda short_codes: len(list(short_codes))
    return store


@pytest.fixture
def services(link_dao: LinkBaseDAO, rate_limit_dao: RateLimitBaseDAO, artifact_store: ArtifactBaseStore) -> Services:
    tasks = BackgroundTasks(max_workers=2)
    services = Services(
        link_dao=link_dao,
        rate_limit_dao=rate_limit_dao,
        artifact_store=artifact_store,
        tasks=tasks,
        resolver=ShortcodeResolver(link_dao),
        admission=AdmissionController(rate_limit_dao),
        lookup=LinkLookup(link_dao, tasks),
        sweeper=ExpirySweeper(link_dao, artifact_store),
    )
    yield services
    tasks.drain()


@pytest.fixture
def context() -> LambdaContext:
    return cast(LambdaContext, MagicMock())


@pytest.fixture
def patch_app(monkeypatch: MonkeyPatch, config: LambdaConfiguration, services: Services) -> Callable[[ModuleType], None]:
    """Point a handler module's config and service wiring at the test doubles"""

    def patch(app: ModuleType) -> None:
        monkeypatch.setattr(app, 'load_config', lambda *a, **kw: config)
        monkeypatch.setattr(app, 'build_services', lambda *a, **kw: services)
        monkeypatch.setattr(app, 'app_prefix', lambda: 'testapp:test')

    return patch
