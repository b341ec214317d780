"""Application errors surfaced to API clients.

Every error carries a member of the closed `ErrorKind` enumeration (used for
dispatch and as the `errorCode` in response bodies) and the HTTP status it maps
to. The human readable message is kept separate from both.

Classes:
    ErrorKind:
        Closed enumeration of client-visible error kinds.

    LinkShortenerError:
        Base class. Subclasses pin `error_code`, `status_code` and a default message.

Example:
    >>> from linkshortener.exceptions import RateLimitedError
    >>> error = RateLimitedError(retry_after=42)
    >>> error.status_code, error.error_code, error.retry_after
    (429, <ErrorKind.RATE_LIMITED: 'RATE_LIMITED'>, 42)
"""

from enum import StrEnum


class ErrorKind(StrEnum):
    INVALID_REQUEST = 'INVALID_REQUEST'
    INVALID_URL = 'INVALID_URL'
    INVALID_EXPIRY = 'INVALID_EXPIRY'
    EXPIRY_NOT_FUTURE = 'EXPIRY_NOT_FUTURE'
    EXPIRY_OUT_OF_BOUNDS = 'EXPIRY_OUT_OF_BOUNDS'
    INVALID_ALIAS_FORMAT = 'INVALID_ALIAS_FORMAT'
    RESERVED_ALIAS = 'RESERVED_ALIAS'
    ALIAS_TAKEN = 'ALIAS_TAKEN'
    SLUG_EXHAUSTED = 'SLUG_EXHAUSTED'
    RATE_LIMITED = 'RATE_LIMITED'
    NOT_FOUND = 'NOT_FOUND'
    EXPIRED = 'EXPIRED'
    INTERNAL_ERROR = 'INTERNAL_ERROR'


class LinkShortenerError(Exception):
    """Base exception for all client-visible application errors."""

    error_code = ErrorKind.INTERNAL_ERROR
    status_code = 500
    default_message = 'Internal Server Error'

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRequestError(LinkShortenerError):
    """Raised when the request body is not the expected JSON shape."""

    error_code = ErrorKind.INVALID_REQUEST
    status_code = 400
    default_message = 'Invalid request body'


class InvalidUrlError(LinkShortenerError):
    """Raised when the original URL is missing or doesn't parse as an http(s) URL."""

    error_code = ErrorKind.INVALID_URL
    status_code = 400
    default_message = 'Invalid URL format'


class InvalidExpiryError(LinkShortenerError):
    """Raised when the requested expiry can't be parsed."""

    error_code = ErrorKind.INVALID_EXPIRY
    status_code = 400
    default_message = 'Invalid expiry format'


class ExpiryNotFutureError(LinkShortenerError):
    """Raised when an absolute expiry resolves to an instant that isn't in the future."""

    error_code = ErrorKind.EXPIRY_NOT_FUTURE
    status_code = 400
    default_message = 'Expiration time must be in the future'


class ExpiryOutOfBoundsError(LinkShortenerError):
    """Raised when the expiry falls outside the allowed [1 hour, 3 months] range."""

    error_code = ErrorKind.EXPIRY_OUT_OF_BOUNDS
    status_code = 400
    default_message = 'Expiration must be between 1 hour and 3 months from now'


class InvalidAliasFormatError(LinkShortenerError):
    """Raised when a custom alias doesn't match [A-Za-z0-9_-]{3,30}."""

    error_code = ErrorKind.INVALID_ALIAS_FORMAT
    status_code = 400
    default_message = 'Invalid custom alias format'


class ReservedAliasError(LinkShortenerError):
    """Raised when a custom alias shadows one of the service's own routes."""

    error_code = ErrorKind.RESERVED_ALIAS
    status_code = 403
    default_message = 'This custom alias is reserved and cannot be used'


class AliasTakenError(LinkShortenerError):
    """Raised when a custom alias is already held by another link."""

    error_code = ErrorKind.ALIAS_TAKEN
    status_code = 409
    default_message = 'Custom alias already in use'


class SlugExhaustedError(LinkShortenerError):
    """Raised when no free short code was found within the attempt budget."""

    error_code = ErrorKind.SLUG_EXHAUSTED
    status_code = 500
    default_message = 'Failed to generate a unique short code'


class RateLimitedError(LinkShortenerError):
    """Raised when a client exceeds the link creation rate limit."""

    error_code = ErrorKind.RATE_LIMITED
    status_code = 429
    default_message = 'Rate limit exceeded'

    def __init__(self, retry_after: int, message: str | None = None):
        self.retry_after = max(int(retry_after), 0)
        super().__init__(message or f'Rate limit exceeded. Try again in {self.retry_after} seconds.')


class NotFoundError(LinkShortenerError):
    """Raised when a short code doesn't map to any link."""

    error_code = ErrorKind.NOT_FOUND
    status_code = 404
    default_message = 'URL not found'


class ExpiredError(LinkShortenerError):
    """Raised when a short code maps to a link past its expiry."""

    error_code = ErrorKind.EXPIRED
    status_code = 410
    default_message = 'This link has expired'


class InternalError(LinkShortenerError):
    """Raised for infrastructure failures not otherwise classified."""

    pass
