from typing import cast
from unittest.mock import MagicMock

import pytest

from linkshortener.dao.base import LinkBaseDAO, ArtifactBaseStore
from linkshortener.models import LinkRecordModel
from linkshortener.utils.background import BackgroundTasks


@pytest.fixture
def link_dao() -> LinkBaseDAO:
    dao = cast(LinkBaseDAO, MagicMock(spec=LinkBaseDAO))
    dao.exists.return_value = False
    # insert() echoes the record back with repository-assigned fields
    dao.insert.side_effect = lambda record, **kwargs: LinkRecordModel(
        original_url=record.original_url,
        short_code=record.short_code,
        expires_at=record.expires_at,
        id='1',
    )
    return dao


@pytest.fixture
def artifact_store() -> ArtifactBaseStore:
    store = cast(ArtifactBaseStore, MagicMock(spec=ArtifactBaseStore))
    store.put.side_effect = lambda short_code, data: f'https://cdn.test/qr/{short_code}.png'
    store.delete_many.side_effect = lambda short_codes: len(list(short_codes))
    return store


@pytest.fixture
def tasks() -> BackgroundTasks:
    tasks = BackgroundTasks(max_workers=2)
    yield tasks
    tasks.drain()
