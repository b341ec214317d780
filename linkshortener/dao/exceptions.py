"""Exceptions related to Data Access Objects (DAO) operations.

Classes:
    DAOError:
        Generic base class for DAO-related exceptions.

    LinkNotFoundError:
        Raised when a LinkRecordModel is not found in the data store.

    LinkAlreadyExistsError:
        Raised when attempting to insert a LinkRecordModel whose short code is taken.

    DataStoreError:
        Raised when there is an error in the data store (e.g., connection issues, time, OOM, etc.).

    ArtifactError:
        Base class for side-artifact failures (rendering or storage).

    ArtifactRenderError:
        Raised when a QR code can't be rendered.

    ArtifactStoreError:
        Raised when the artifact store rejects a write or delete.

Example:
    >>> from linkshortener.dao.exceptions import LinkNotFoundError
    >>> raise LinkNotFoundError("Link with code 'abc1234' not found.")
    Traceback (most recent call last):
        ...
    linkshortener.dao.exceptions.LinkNotFoundError: Link with code 'abc1234' not found.
"""


class DAOError(Exception):
    """Generic base class for DAO-related exceptions."""

    pass


class LinkNotFoundError(DAOError):
    """Exception raised when a LinkRecordModel is not found in the data store."""

    pass


class LinkAlreadyExistsError(DAOError):
    """Exception raised when attempting to insert a LinkRecordModel whose short code already exists."""

    pass


class DataStoreError(DAOError):
    """Exception raised when there is an error in the data store.

    e.g. connection issues, timeouts, OOM, etc.
    """

    pass


class ArtifactError(DAOError):
    """Generic base class for side-artifact failures."""

    pass


class ArtifactRenderError(ArtifactError):
    """Exception raised when a side-artifact can't be rendered."""

    pass


class ArtifactStoreError(ArtifactError):
    """Exception raised when the artifact store fails to write or delete objects."""

    pass
