"""Unit tests for LinkShortener in shortening.py.

Test coverage includes:

1. URL normalization
2. Single link creation (expiry, custom aliases, generated codes, insert races)
3. QR artifacts (best-effort render, upload and write-back)
4. Bulk creation (per-item results in input order)
"""

import logging
from datetime import datetime, timedelta, UTC
from unittest.mock import MagicMock

import pytest
import redis

from linkshortener.models import LinkRecordModel, RelativeExpiry, ShortenRequest
from linkshortener.dao.base import LinkBaseDAO, ArtifactBaseStore
from linkshortener.dao.exceptions import ArtifactRenderError, ArtifactStoreError, DataStoreError, LinkAlreadyExistsError, LinkNotFoundError
from linkshortener.exceptions import (
    AliasTakenError,
    ExpiryOutOfBoundsError,
    InvalidAliasFormatError,
    InvalidUrlError,
    ReservedAliasError,
    SlugExhaustedError,
)
from linkshortener.services.shortening import LinkShortener, normalize_url
from linkshortener.services.uniqueness import ShortcodeResolver
from linkshortener.utils.background import BackgroundTasks


NOW = datetime(2025, 10, 15, 12, 0, 0, tzinfo=UTC)


# -------------------------------
# 1. URL normalization
# -------------------------------


@pytest.mark.parametrize(
    'url, expected',
    [
        ('example.com', 'https://example.com'),
        ('example.com/article/123?ref=home', 'https://example.com/article/123?ref=home'),
        ('  www.example.com/page  ', 'https://www.example.com/page'),
        ('http://example.com', 'http://example.com'),
        ('HTTPS://Example.com/Path', 'HTTPS://Example.com/Path'),
        ('https://sub.domain.example.co.uk:8443/x', 'https://sub.domain.example.co.uk:8443/x'),
        ('http://localhost:3000/dev', 'http://localhost:3000/dev'),
        ('http://192.168.0.10/admin', 'http://192.168.0.10/admin'),
        ('https://münchen.de/karte', 'https://münchen.de/karte'),
        ('münchen.de', 'https://münchen.de'),
        ('https://xn--mnchen-3ya.de', 'https://xn--mnchen-3ya.de'),
    ],
)
def test_normalize_url(url, expected):
    assert normalize_url(url) == expected


@pytest.mark.parametrize(
    'url',
    [
        'not a url',
        'https://',
        'ftp://example.com',
        'javascript:alert(1)',
        'https://exa mple.com',
        'https://example',
        'https://example.com/a\nb',
        'https://example.com:99999',
    ],
)
def test_normalize_url_rejects_invalid(url):
    with pytest.raises(InvalidUrlError):
        normalize_url(url)


# -------------------------------
# 2. Single link creation
# -------------------------------


class TestLinkShortener:
    link_dao: MagicMock
    artifact_store: MagicMock
    tasks: BackgroundTasks
    render: MagicMock
    shortener: LinkShortener

    @pytest.fixture(autouse=True)
    def setup(self, link_dao: LinkBaseDAO, artifact_store: ArtifactBaseStore, tasks: BackgroundTasks):
        self.link_dao = link_dao
        self.artifact_store = artifact_store
        self.tasks = tasks
        self.render = MagicMock(return_value=b'\x89PNG')
        self.shortener = LinkShortener(
            link_dao,
            artifact_store,
            tasks,
            ShortcodeResolver(link_dao),
            base_url='https://sho.rt/',
            render=self.render,
        )

    def inserted_record(self) -> LinkRecordModel:
        return self.link_dao.insert.call_args.args[0]

    def test_shorten_normalizes_url(self):
        result = self.shortener.shorten(ShortenRequest(original_url='example.com/article/123'), now=NOW)

        record = self.inserted_record()
        assert record.original_url == 'https://example.com/article/123'
        assert len(record.short_code) == 7
        assert record.expires_at is None
        assert result.short_code == record.short_code
        assert result.short_url == f'https://sho.rt/{record.short_code}'
        assert result.expires_at is None

    def test_shorten_preserves_scheme_bearing_url(self):
        self.shortener.shorten(ShortenRequest(original_url='http://Example.com/Path?q=1'), now=NOW)
        assert self.inserted_record().original_url == 'http://Example.com/Path?q=1'

    def test_shorten_with_relative_expiry(self):
        request = ShortenRequest(original_url='example.com', relative_expiry=RelativeExpiry(count=2, unit='days'))

        result = self.shortener.shorten(request, now=NOW)

        assert self.inserted_record().expires_at == NOW + timedelta(days=2)
        assert result.expires_at == NOW + timedelta(days=2)
        assert result.to_dict()['expires_at_utc'] == '2025-10-17T12:00:00Z'

    def test_shorten_with_absolute_expiry_in_timezone(self):
        request = ShortenRequest(original_url='example.com', expires_at='2025-10-16T09:00', timezone='Europe/Sofia')

        result = self.shortener.shorten(request, now=NOW)

        assert result.expires_at == datetime(2025, 10, 16, 6, 0, 0, tzinfo=UTC)

    def test_shorten_with_expiry_out_of_bounds(self):
        request = ShortenRequest(original_url='example.com', relative_expiry=RelativeExpiry(count=30, unit='minutes'))

        with pytest.raises(ExpiryOutOfBoundsError):
            self.shortener.shorten(request, now=NOW)
        self.link_dao.insert.assert_not_called()

    def test_shorten_with_invalid_url(self):
        with pytest.raises(InvalidUrlError):
            self.shortener.shorten(ShortenRequest(original_url='not a url'), now=NOW)
        self.link_dao.insert.assert_not_called()

    def test_shorten_with_custom_alias(self):
        result = self.shortener.shorten(ShortenRequest(original_url='example.com', custom_alias='My-Blog'), now=NOW)

        assert self.inserted_record().short_code == 'my-blog'
        assert result.short_url == 'https://sho.rt/my-blog'

    @pytest.mark.parametrize(
        'alias, error',
        [
            ('admin', ReservedAliasError),
            ('Shorten', ReservedAliasError),
            ('no', InvalidAliasFormatError),
            ('bad alias!', InvalidAliasFormatError),
        ],
    )
    def test_shorten_with_rejected_custom_alias(self, alias, error):
        with pytest.raises(error):
            self.shortener.shorten(ShortenRequest(original_url='example.com', custom_alias=alias), now=NOW)
        self.link_dao.insert.assert_not_called()

    def test_shorten_with_taken_custom_alias(self):
        self.link_dao.exists.return_value = True

        with pytest.raises(AliasTakenError):
            self.shortener.shorten(ShortenRequest(original_url='example.com', custom_alias='my-blog'), now=NOW)
        self.link_dao.insert.assert_not_called()

    def test_shorten_custom_alias_loses_insert_race(self):
        self.link_dao.insert.side_effect = LinkAlreadyExistsError("Link with code 'my-blog' already exists.")

        with pytest.raises(AliasTakenError):
            self.shortener.shorten(ShortenRequest(original_url='example.com', custom_alias='my-blog'), now=NOW)
        assert self.link_dao.insert.call_count == 1

    def test_shorten_generated_code_retries_insert_race_once(self):
        stored = LinkRecordModel(original_url='https://example.com', short_code='placeholder', id='1')
        self.link_dao.insert.side_effect = [LinkAlreadyExistsError('race'), stored]

        result = self.shortener.shorten(ShortenRequest(original_url='example.com'), now=NOW)

        assert self.link_dao.insert.call_count == 2
        first, second = (c.args[0].short_code for c in self.link_dao.insert.call_args_list)
        assert first != second
        assert result.short_code == 'placeholder'

    def test_shorten_generated_code_loses_insert_race_twice(self):
        self.link_dao.insert.side_effect = LinkAlreadyExistsError('race')

        with pytest.raises(SlugExhaustedError):
            self.shortener.shorten(ShortenRequest(original_url='example.com'), now=NOW)
        assert self.link_dao.insert.call_count == 2

    def test_shorten_with_unreachable_data_store(self):
        self.link_dao.insert.side_effect = DataStoreError("Can't connect to Redis at redis.test:6379/0.")

        with pytest.raises(DataStoreError):
            self.shortener.shorten(ShortenRequest(original_url='example.com'), now=NOW)

    # -------------------------------
    # 3. QR artifacts
    # -------------------------------

    def test_shorten_attaches_qr_artifact(self):
        result = self.shortener.shorten(ShortenRequest(original_url='example.com', custom_alias='my-blog'), now=NOW)
        self.tasks.drain()

        self.render.assert_called_once_with('https://sho.rt/my-blog')
        self.artifact_store.put.assert_called_once_with('my-blog', b'\x89PNG')
        self.link_dao.patch_artifact_ref.assert_called_once_with('my-blog', 'https://cdn.test/qr/my-blog.png')
        assert result.qr_artifact_ref == 'https://cdn.test/qr/my-blog.png'

    @pytest.mark.parametrize(
        'target, error',
        [
            ('render', ArtifactRenderError('too long')),
            ('put', ArtifactStoreError('access denied')),
        ],
    )
    def test_shorten_succeeds_when_qr_artifact_fails(self, target, error):
        if target == 'render':
            self.render.side_effect = error
        else:
            self.artifact_store.put.side_effect = error

        result = self.shortener.shorten(ShortenRequest(original_url='example.com', custom_alias='my-blog'), now=NOW)
        self.tasks.drain()

        assert result.short_url == 'https://sho.rt/my-blog'
        assert result.qr_artifact_ref is None
        assert 'qr_artifact_ref' not in result.to_dict()
        self.link_dao.patch_artifact_ref.assert_not_called()

    def test_shorten_succeeds_when_qr_write_back_fails(self):
        self.link_dao.patch_artifact_ref.side_effect = LinkNotFoundError('swept')

        result = self.shortener.shorten(ShortenRequest(original_url='example.com', custom_alias='my-blog'), now=NOW)
        self.tasks.drain()

        assert result.qr_artifact_ref == 'https://cdn.test/qr/my-blog.png'

    def test_shorten_without_artifact_store(self):
        shortener = LinkShortener(self.link_dao, None, self.tasks, ShortcodeResolver(self.link_dao), 'https://sho.rt', render=self.render)

        result = shortener.shorten(ShortenRequest(original_url='example.com'), now=NOW)

        assert result.qr_artifact_ref is None
        self.render.assert_not_called()

    # -------------------------------
    # 4. Bulk creation
    # -------------------------------

    def test_shorten_many_isolates_failures(self):
        results = self.shortener.shorten_many(
            [
                {'original_url': 'example.com/one'},
                {'original_url': 'not a url'},
                {'original_url': 'example.com/three', 'custom_alias': 'three'},
            ]
        )

        assert [result['success'] for result in results] == [True, False, True]
        assert results[0]['short_url'].startswith('https://sho.rt/')
        assert results[1] == {
            'success': False,
            'error': 'Invalid URL format',
            'error_code': 400,
            'error_kind': 'INVALID_URL',
        }
        assert results[2]['short_url'] == 'https://sho.rt/three'
        assert results[2]['qr_artifact_ref'] == 'https://cdn.test/qr/three.png'

    def test_shorten_many_maps_error_kinds_to_status_codes(self):
        self.link_dao.exists.side_effect = lambda code: code == 'taken'

        results = self.shortener.shorten_many(
            [
                'example.com',
                {'original_url': 'example.com', 'custom_alias': 'admin'},
                {'original_url': 'example.com', 'custom_alias': 'taken'},
                {'original_url': 'example.com', 'relative_expiry': {'count': 4, 'unit': 'months'}},
            ]
        )

        assert [(result['error_code'], result['error_kind']) for result in results] == [
            (400, 'INVALID_REQUEST'),
            (403, 'RESERVED_ALIAS'),
            (409, 'ALIAS_TAKEN'),
            (400, 'EXPIRY_OUT_OF_BOUNDS'),
        ]

    def test_shorten_many_captures_infrastructure_errors_per_item(self):
        stored = LinkRecordModel(original_url='https://example.com/two', short_code='two', id='2')
        self.link_dao.insert.side_effect = [DataStoreError('down'), stored]

        results = self.shortener.shorten_many([{'original_url': 'example.com/one'}, {'original_url': 'example.com/two'}])

        assert results[0] == {
            'success': False,
            'error': 'Internal Server Error',
            'error_code': 500,
            'error_kind': 'INTERNAL_ERROR',
        }
        assert results[1]['success'] is True

    def test_shorten_many_uses_default_timezone(self):
        expires_at = (datetime.now(UTC) + timedelta(days=1)).strftime('%Y-%m-%dT%H:%M:%S')

        results = self.shortener.shorten_many([{'original_url': 'example.com', 'expires_at': expires_at}], default_timezone='Asia/Tokyo')

        # Tokyo is UTC+9, so the stored expiry is 9 hours earlier than the naive wall-clock time
        expected = datetime.fromisoformat(expires_at).replace(tzinfo=UTC) - timedelta(hours=9)
        assert results[0]['success'] is True
        assert self.inserted_record().expires_at == expected

    @pytest.mark.parametrize('timezone', [5, ['Europe/Berlin'], {'tz': 'UTC'}])
    def test_shorten_many_rejects_non_string_timezone_per_item(self, timezone):
        results = self.shortener.shorten_many(
            [
                {'original_url': 'example.com'},
                {'original_url': 'example.com', 'expires_at': '2099-01-01T10:00', 'timezone': timezone},
                {'original_url': 'example.org'},
            ]
        )

        assert [result['success'] for result in results] == [True, False, True]
        assert (results[1]['error_code'], results[1]['error_kind']) == (400, 'INVALID_EXPIRY')

    def test_shorten_many_captures_unexpected_errors_per_item(self, caplog):
        stored = LinkRecordModel(original_url='https://example.com/two', short_code='two', id='2')
        self.link_dao.insert.side_effect = [redis.exceptions.ResponseError('OOM command not allowed'), stored]

        with caplog.at_level(logging.ERROR):
            results = self.shortener.shorten_many([{'original_url': 'example.com/one'}, {'original_url': 'example.com/two'}])

        assert results[0] == {
            'success': False,
            'error': 'Internal Server Error',
            'error_code': 500,
            'error_kind': 'INTERNAL_ERROR',
        }
        assert results[1]['success'] is True
        assert any(record.exc_info and isinstance(record.exc_info[1], redis.exceptions.ResponseError) for record in caplog.records)
