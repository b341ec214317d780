from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from linkshortener.utils.helpers import isoformat_z


@dataclass(frozen=True)
class LinkRecordModel:
    """Represent a persisted short link.

    Attributes:
        original_url (str):
            Absolute http(s) URL the short code redirects to.
        short_code (str):
            Unique, lower-cased identifier the link is looked up by.
        expires_at (datetime | None):
            Aware UTC instant after which the link is dead. None means the
            link never expires.
        id (str | None):
            Opaque identifier assigned by the repository on insert.
        clicks (int):
            Number of successful lookups.
        qr_artifact_ref (str | None):
            Public reference to the rendered QR code, None until written back.
        created_at (datetime | None):
            Aware UTC insertion time, set by the repository.

    Example:
        >>> from datetime import datetime, timedelta, UTC
        >>> link = LinkRecordModel(
        ...     original_url='https://example.com/article/123',
        ...     short_code='abc1234',
        ...     expires_at=datetime.now(UTC) + timedelta(days=2),
        ... )
        >>> link.clicks
        0
        >>> link.is_expired(datetime.now(UTC))
        False
    """

    original_url: str
    short_code: str
    expires_at: datetime | None = None
    id: str | None = None
    clicks: int = 0
    qr_artifact_ref: str | None = None
    created_at: datetime | None = field(default=None)

    def is_expired(self, now: datetime) -> bool:
        """Return True if the link's expiry lies strictly before `now`."""
        return self.expires_at is not None and self.expires_at < now

    def to_dict(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'original_url': self.original_url,
            'short_code': self.short_code,
            'expires_at': isoformat_z(self.expires_at),
            'clicks': self.clicks,
            'qr_artifact_ref': self.qr_artifact_ref,
            'created_at': isoformat_z(self.created_at),
        }
