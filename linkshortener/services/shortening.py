"""Link creation: URL normalization, expiry, short code resolution and QR artifacts

Classes:
    LinkShortener:
        Runs the creation sequence for single and bulk requests.

Example:
    >>> shortener = LinkShortener(link_dao, artifact_store, tasks, ShortcodeResolver(link_dao), base_url='https://sho.rt')
    >>> result = shortener.shorten(ShortenRequest(original_url='example.com/article/123'))
    >>> result.short_url
    'https://sho.rt/k3x9q2a'
"""

import re
import logging
from datetime import datetime, UTC
from typing import Any
from collections.abc import Callable, Iterable

from pydantic import HttpUrl, TypeAdapter, ValidationError

from linkshortener.models import LinkRecordModel, ShortenRequest, ShortenResult
from linkshortener.dao.base import LinkBaseDAO, ArtifactBaseStore
from linkshortener.dao.exceptions import ArtifactError, DAOError, LinkAlreadyExistsError
from linkshortener.exceptions import (
    AliasTakenError,
    InternalError,
    InvalidUrlError,
    LinkShortenerError,
    SlugExhaustedError,
)
from linkshortener.services.uniqueness import ShortcodeResolver
from linkshortener.utils.background import BackgroundTasks
from linkshortener.utils.expiry import compute_expiry
from linkshortener.utils.qr import render_qr_png


logger = logging.getLogger(__name__)

LINK_CREATED = 'LINK_CREATED'
SHORTCODE_INSERT_RACE = 'SHORTCODE_INSERT_RACE'
QR_ARTIFACT_FAILED = 'QR_ARTIFACT_FAILED'
BULK_ITEM_FAILED = 'BULK_ITEM_FAILED'

SCHEME_PATTERN = re.compile(r'^https?://', re.IGNORECASE)
ANY_SCHEME_PATTERN = re.compile(r'^[a-z][a-z0-9+.-]*://', re.IGNORECASE)

http_url_adapter = TypeAdapter(HttpUrl)


def normalize_url(url: str) -> str:
    """Prefix scheme-less URLs with https:// and validate the result

    URLs that already carry an http(s) scheme are returned unchanged. Validation
    is pydantic's HttpUrl; internationalized hostnames are accepted.

    Raises:
        InvalidUrlError: the normalized URL isn't an absolute http(s) URL with a
            dotted hostname, 'localhost' or an IP address.

    Example:
        >>> normalize_url('example.com/page')
        'https://example.com/page'
        >>> normalize_url('http://example.com')
        'http://example.com'
    """
    url = url.strip()
    if not SCHEME_PATTERN.match(url):
        if ANY_SCHEME_PATTERN.match(url):
            raise InvalidUrlError()
        url = f'https://{url}'

    # HttpUrl silently drops embedded tabs and newlines
    if any(c.isspace() for c in url):
        raise InvalidUrlError()

    try:
        parsed = http_url_adapter.validate_python(url)
    except ValidationError as e:
        raise InvalidUrlError() from e

    host = parsed.host or ''
    if host != 'localhost' and '.' not in host and not host.startswith('['):
        raise InvalidUrlError()
    return url


class LinkShortener:
    """Create short links

    Attributes:
        link_dao (LinkBaseDAO):
            Link repository; its insert() is the final arbiter of code uniqueness.
        artifact_store (ArtifactBaseStore | None):
            Where rendered QR codes go. None disables QR artifacts.
        tasks (BackgroundTasks):
            Runs the record patch after the response is computed.
        resolver (ShortcodeResolver):
            Picks custom or generated short codes.
        base_url (str):
            Public base URL short codes are appended to.
        render (Callable[[str], bytes]):
            QR renderer. Defaults to render_qr_png().
    """

    def __init__(
        self,
        link_dao: LinkBaseDAO,
        artifact_store: ArtifactBaseStore | None,
        tasks: BackgroundTasks,
        resolver: ShortcodeResolver,
        base_url: str,
        render: Callable[[str], bytes] = render_qr_png,
    ):
        self.link_dao = link_dao
        self.artifact_store = artifact_store
        self.tasks = tasks
        self.resolver = resolver
        self.base_url = base_url.rstrip('/')
        self.render = render

    def short_url(self, short_code: str) -> str:
        return f'{self.base_url}/{short_code}'

    def shorten(self, request: ShortenRequest, now: datetime | None = None) -> ShortenResult:
        """Create one short link

        Steps: normalize the URL, compute the expiry, resolve a short code,
        insert the record, then attach the QR artifact (best-effort).

        Raises:
            InvalidUrlError, InvalidExpiryError, ExpiryNotFutureError, ExpiryOutOfBoundsError,
            ReservedAliasError, InvalidAliasFormatError, AliasTakenError, SlugExhaustedError:
                request can't be honored.
            DataStoreError:
                the link repository is unreachable.
        """
        now = now or datetime.now(UTC)
        original_url = normalize_url(request.original_url)
        expiry = compute_expiry(
            expires_at=request.expires_at,
            timezone=request.timezone,
            relative_expiry=request.relative_expiry,
            now=now,
        )
        expires_at = expiry or None

        record = self._insert(original_url, request.custom_alias, expires_at)
        short_url = self.short_url(record.short_code)
        logger.info(
            'Created short link.',
            extra={'event': LINK_CREATED, 'shortcode': record.short_code, 'custom': request.custom_alias is not None},
        )

        qr_artifact_ref = self._attach_artifact(record.short_code, short_url)
        return ShortenResult(
            short_code=record.short_code,
            short_url=short_url,
            qr_artifact_ref=qr_artifact_ref,
            expires_at=record.expires_at,
        )

    def shorten_many(self, payloads: Iterable[Any], default_timezone: str | None = None) -> list[dict[str, Any]]:
        """Run shorten() independently for every payload

        One item's failure never affects its siblings. Results are returned in
        input order.

        Returns:
            list[dict]: per item either
                {'success': True, 'short_url', 'qr_artifact_ref'?, 'expires_at_utc'?}
                or {'success': False, 'error', 'error_code': <HTTP status>, 'error_kind'}
        """
        results = []
        for index, payload in enumerate(payloads):
            try:
                request = ShortenRequest.from_payload(payload, default_timezone=default_timezone)
                result = self.shorten(request)
            except LinkShortenerError as e:
                logger.info('Bulk item rejected.', extra={'event': BULK_ITEM_FAILED, 'item': index, 'error_kind': e.error_code.value})
                results.append(self._failure(e))
            except DAOError:
                logger.exception('Bulk item failed on an infrastructure error.', extra={'event': BULK_ITEM_FAILED, 'item': index})
                results.append(self._failure(InternalError()))
            except Exception:
                logger.exception('Bulk item failed unexpectedly.', extra={'event': BULK_ITEM_FAILED, 'item': index})
                results.append(self._failure(InternalError()))
            else:
                results.append({'success': True, **result.to_dict()})
        return results

    def _insert(self, original_url: str, custom_alias: str | None, expires_at: datetime | None) -> LinkRecordModel:
        if custom_alias is not None:
            short_code = self.resolver.claim(custom_alias)
            try:
                return self.link_dao.insert(LinkRecordModel(original_url=original_url, short_code=short_code, expires_at=expires_at))
            except LinkAlreadyExistsError as e:
                raise AliasTakenError() from e

        # A generated code lost to a concurrent insert is regenerated once
        for attempt in (1, 2):
            short_code = self.resolver.generate()
            try:
                return self.link_dao.insert(LinkRecordModel(original_url=original_url, short_code=short_code, expires_at=expires_at))
            except LinkAlreadyExistsError:
                logger.warning(
                    'Generated short code was claimed concurrently.',
                    extra={'event': SHORTCODE_INSERT_RACE, 'shortcode': short_code, 'attempt': attempt},
                )
        raise SlugExhaustedError()

    def _attach_artifact(self, short_code: str, short_url: str) -> str | None:
        if self.artifact_store is None:
            return None

        try:
            png = self.render(short_url)
            qr_artifact_ref = self.artifact_store.put(short_code, png)
        except ArtifactError as e:
            logger.warning(
                'Failed to create QR code. Link created without it.',
                extra={'event': QR_ARTIFACT_FAILED, 'shortcode': short_code, 'reason': str(e), 'error': e.__class__.__name__},
            )
            return None

        self.tasks.submit(self.link_dao.patch_artifact_ref, short_code, qr_artifact_ref, task_name='patch_artifact_ref')
        return qr_artifact_ref

    @staticmethod
    def _failure(error: LinkShortenerError) -> dict[str, Any]:
        return {
            'success': False,
            'error': error.message,
            'error_code': error.status_code,
            'error_kind': error.error_code.value,
        }
