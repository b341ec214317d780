from dataclasses import dataclass
from datetime import datetime
from typing import Any

from linkshortener.constants import Defaults
from linkshortener.exceptions import InvalidExpiryError, InvalidRequestError, InvalidUrlError
from linkshortener.utils.helpers import isoformat_z


# fmt: off
@dataclass(frozen=True)
class RelativeExpiry:
    count: Any                          # Number of units, validated by the expiry computator
    unit: str                           # One of minutes, hours, days, months, years
# fmt: on


@dataclass(frozen=True)
class ShortenRequest:
    """A single link creation request.

    Attributes:
        original_url (str):
            URL to shorten, possibly without a scheme.
        custom_alias (str | None):
            Caller-chosen short code.
        expires_at (str | None):
            Naive local timestamp (e.g. '2025-03-09T02:30') interpreted in `timezone`.
        timezone (str):
            IANA timezone name for `expires_at`.
        relative_expiry (RelativeExpiry | None):
            Expiry expressed as a duration from now. Ignored when `expires_at` is set.
    """

    original_url: str
    custom_alias: str | None = None
    expires_at: str | None = None
    timezone: str = Defaults.TIMEZONE
    relative_expiry: RelativeExpiry | None = None

    @classmethod
    def from_payload(cls, payload: Any, default_timezone: str | None = None) -> 'ShortenRequest':
        """Build a request from a decoded JSON body.

        Args:
            payload (Any):
                Decoded JSON body of a shorten request (or one bulk item).
            default_timezone (str | None):
                Timezone used when the payload doesn't name one (e.g. from the
                X-Timezone header). Falls back to UTC.

        Raises:
            InvalidRequestError: payload is not a JSON object.
            InvalidUrlError: `original_url` is missing or not a string.
            InvalidExpiryError: `relative_expiry` isn't a {count, unit} object.

        Example:
            >>> ShortenRequest.from_payload({'original_url': 'example.com', 'relative_expiry': {'count': 2, 'unit': 'days'}})
            ShortenRequest(original_url='example.com', custom_alias=None, expires_at=None, timezone='UTC', ...)
        """
        if not isinstance(payload, dict):
            raise InvalidRequestError('Request body must be a JSON object')

        original_url = payload.get('original_url')
        if not original_url or not isinstance(original_url, str):
            raise InvalidUrlError('Missing original_url')

        relative_expiry = payload.get('relative_expiry')
        if relative_expiry is not None:
            if not isinstance(relative_expiry, dict) or 'count' not in relative_expiry or 'unit' not in relative_expiry:
                raise InvalidExpiryError('Invalid relative_expiry format')
            relative_expiry = RelativeExpiry(count=relative_expiry['count'], unit=relative_expiry['unit'])

        custom_alias = payload.get('custom_alias') or None
        if custom_alias is not None and not isinstance(custom_alias, str):
            raise InvalidRequestError('custom_alias must be a string')

        expires_at = payload.get('expires_at') or None
        if expires_at is not None and not isinstance(expires_at, str):
            raise InvalidExpiryError('Invalid expires_at format')

        timezone = payload.get('timezone') or None
        if timezone is not None and not isinstance(timezone, str):
            raise InvalidExpiryError('timezone must be a string')

        return cls(
            original_url=original_url,
            custom_alias=custom_alias,
            expires_at=expires_at,
            timezone=timezone or default_timezone or Defaults.TIMEZONE,
            relative_expiry=relative_expiry,
        )


@dataclass(frozen=True)
class ShortenResult:
    """Outcome of a successful link creation."""

    short_code: str
    short_url: str
    qr_artifact_ref: str | None = None
    expires_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        body = {'short_url': self.short_url}
        if self.qr_artifact_ref is not None:
            body['qr_artifact_ref'] = self.qr_artifact_ref
        if self.expires_at is not None:
            body['expires_at_utc'] = isoformat_z(self.expires_at)
        return body
