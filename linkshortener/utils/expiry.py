"""Expiry computation for link creation requests

A creation request may ask for:
    - an absolute expiry: a naive local timestamp plus an IANA timezone name,
    - a relative expiry: {count, unit} with unit in minutes/hours/days/months/years,
    - no expiry at all.

Absolute timestamps are converted to UTC with the zone's offset *at the target
wall-clock time*, so DST transitions between now and the target date are
honored. Wall-clock times that fall into a spring-forward gap are resolved with
the post-transition offset. Ambiguous fall-back times resolve to their first
occurrence.

Either form must land between 1 hour and 3 calendar months from now (both
ends inclusive). The upper bound is calendar-relative: from Nov 30 it is
Feb 28 (or 29), not a fixed number of seconds.

Functions:
    compute_expiry(expires_at=None, timezone='UTC', relative_expiry=None, now=None):
        Resolve a request's expiry intent to an aware UTC datetime or NEVER_EXPIRES.

Example:
    >>> from datetime import datetime, UTC
    >>> from linkshortener.models import RelativeExpiry
    >>> now = datetime(2025, 1, 31, 12, 0, tzinfo=UTC)
    >>> compute_expiry(relative_expiry=RelativeExpiry(count=1, unit='months'), now=now)
    datetime.datetime(2025, 2, 28, 12, 0, tzinfo=datetime.timezone.utc)
    >>> compute_expiry(now=now) is NEVER_EXPIRES
    True
"""

from datetime import datetime, timedelta, UTC
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from linkshortener.constants import Defaults
from linkshortener.exceptions import ExpiryNotFutureError, ExpiryOutOfBoundsError, InvalidExpiryError
from linkshortener.utils.helpers import add_months


MIN_EXPIRY = timedelta(hours=1)
MAX_EXPIRY_MONTHS = 3

RELATIVE_UNITS = frozenset({'minutes', 'hours', 'days', 'months', 'years'})


class _NeverExpires:
    """Sentinel: the request asked for no expiry."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return 'NEVER_EXPIRES'


NEVER_EXPIRES = _NeverExpires()


def compute_expiry(
    expires_at: str | None = None,
    timezone: str | None = Defaults.TIMEZONE,
    relative_expiry: Any = None,
    now: datetime | None = None,
) -> datetime | _NeverExpires:
    """Resolve a creation request's expiry intent to an absolute UTC instant

    Args:
        expires_at (str | None):
            Local ISO-8601 timestamp, e.g. '2025-03-09T02:30:00'. Takes
            precedence over `relative_expiry`.
        timezone (str | None):
            IANA zone name `expires_at` is expressed in. Defaults to 'UTC'.
        relative_expiry (RelativeExpiry | None):
            Object with `count` and `unit` attributes.
        now (datetime | None):
            Aware reference instant. Defaults to the current UTC time.

    Returns:
        datetime | NEVER_EXPIRES:
            Aware UTC datetime, or NEVER_EXPIRES when no expiry was requested.

    Raises:
        InvalidExpiryError:
            Unparseable timestamp, unknown timezone, unknown unit or non-integer count.
        ExpiryNotFutureError:
            Absolute expiry resolves to an instant at or before now.
        ExpiryOutOfBoundsError:
            Expiry lies outside [now + 1 hour, now + 3 months].
    """
    now = (now or datetime.now(UTC)).astimezone(UTC)

    if expires_at:
        expiry = _absolute_expiry(expires_at, timezone or Defaults.TIMEZONE)
        if expiry <= now:
            raise ExpiryNotFutureError()
    elif relative_expiry is not None:
        expiry = _relative_expiry(relative_expiry, now)
    else:
        return NEVER_EXPIRES

    if expiry < now + MIN_EXPIRY or expiry > add_months(now, MAX_EXPIRY_MONTHS):
        raise ExpiryOutOfBoundsError()
    return expiry


def _absolute_expiry(value: str, timezone: str) -> datetime:
    try:
        zone = ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError, TypeError) as e:
        raise InvalidExpiryError(f'Unknown timezone {timezone!r}') from e

    try:
        local = datetime.fromisoformat(value.strip())
    except (ValueError, AttributeError) as e:
        raise InvalidExpiryError('Invalid expires_at format') from e

    # Timestamps carrying their own offset don't need the zone
    if local.tzinfo is not None:
        return local.astimezone(UTC)

    candidate = local.replace(tzinfo=zone)
    # A wall-clock time inside a spring-forward gap doesn't survive a UTC round trip
    if candidate.astimezone(UTC).astimezone(zone).replace(tzinfo=None) != local:
        candidate = candidate.replace(fold=1)
    return candidate.astimezone(UTC)


def _relative_expiry(relative_expiry: Any, now: datetime) -> datetime:
    unit = getattr(relative_expiry, 'unit', None)
    if unit not in RELATIVE_UNITS:
        raise InvalidExpiryError('Invalid relative_expiry format')
    count = _parse_count(getattr(relative_expiry, 'count', None))

    try:
        match unit:
            case 'months':
                return add_months(now, count)
            case 'years':
                return add_months(now, count * 12)
            case _:
                return now + timedelta(**{unit: count})
    except (ValueError, OverflowError) as e:
        # Far outside the supported range (datetime can't represent it)
        raise ExpiryOutOfBoundsError() from e


def _parse_count(count: Any) -> int:
    if isinstance(count, bool):
        raise InvalidExpiryError('Invalid relative_expiry format')
    if isinstance(count, int):
        return count
    if isinstance(count, float) and count.is_integer():
        return int(count)
    if isinstance(count, str) and count.strip().lstrip('+-').isdigit():
        return int(count.strip())
    raise InvalidExpiryError('Invalid relative_expiry format')
