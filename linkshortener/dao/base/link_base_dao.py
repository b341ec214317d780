"""Abstract base class for link record data access objects (DAOs).

This class establishes a consistent contract for all link repository
implementations, regardless of the underlying storage mechanism (e.g., Redis,
DynamoDB, PostgreSQL). Every operation is keyed by `short_code`, the natural
unique key of a link.

Responsibilities:
    - Insert link records, with the data store as the final arbiter of short code uniqueness.
    - Retrieve records and maintain their click counter and artifact reference.
    - List and bulk-delete expired records for the expiry sweeper.
    - Standardize error handling across multiple data store implementations.

Example:
    Typical usage with a datastore-specific implementation:

        >>> from linkshortener.models import LinkRecordModel
        >>> from linkshortener.dao.redis import LinkRedisDAO

        >>> dao = LinkRedisDAO(...)
        >>> stored = dao.insert(LinkRecordModel(original_url='https://example.com/blog', short_code='abc1234'))
        >>> stored.id, stored.clicks
        ('1', 0)

        >>> dao.get('abc1234').original_url
        'https://example.com/blog'
"""

from abc import ABC, abstractmethod
from datetime import datetime
from collections.abc import Iterable

from linkshortener.models import LinkRecordModel


class LinkBaseDAO(ABC):
    """Interface for link record data access objects (DAOs).

    Methods:
        insert(record: LinkRecordModel, **kwargs) -> LinkRecordModel:
            Persist a new record, assigning `id`, `created_at` and `clicks=0`.
            Raises LinkAlreadyExistsError if the short code is already taken.

        exists(short_code: str, **kwargs) -> bool:
            Check whether a record with this short code exists.

        get(short_code: str, **kwargs) -> LinkRecordModel:
            Retrieve a record. Raises LinkNotFoundError if missing.

        increment_clicks(short_code: str, **kwargs) -> int:
            Atomically add 1 to the click counter. Raises LinkNotFoundError if missing.

        patch_artifact_ref(short_code: str, ref: str, **kwargs) -> None:
            Attach the side-artifact reference. Raises LinkNotFoundError if missing.

        list_expired_before(timestamp: datetime, **kwargs) -> list[LinkRecordModel]:
            Snapshot of records whose expiry lies strictly before timestamp.

        delete_many(short_codes: Iterable[str], **kwargs) -> int:
            Delete records by short code, return the number removed.

    All methods raise DataStoreError on connection or I/O failures.

    NOTE:
        - Expired records are not removed by the data store itself. The
          expiry sweeper is responsible for physically deleting them.
    """

    @abstractmethod
    def insert(self, record: LinkRecordModel, **kwargs) -> LinkRecordModel:
        """Insert a new link record into the data store.

        Args:
            record (LinkRecordModel):
                Record to insert. `id`, `clicks` and `created_at` are assigned by the DAO.

        Returns:
            LinkRecordModel: the stored record.

        Raises:
            LinkAlreadyExistsError:
                If a record with the same short code already exists, including
                when a concurrent insert wins the race for the same code.

            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def exists(self, short_code: str, **kwargs) -> bool:
        pass

    @abstractmethod
    def get(self, short_code: str, **kwargs) -> LinkRecordModel:
        """Retrieve a link record by its short code.

        Raises:
            LinkNotFoundError:
                If no record with the given short code exists.

            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def increment_clicks(self, short_code: str, **kwargs) -> int:
        pass

    @abstractmethod
    def patch_artifact_ref(self, short_code: str, ref: str, **kwargs) -> None:
        pass

    @abstractmethod
    def list_expired_before(self, timestamp: datetime, **kwargs) -> list[LinkRecordModel]:
        pass

    @abstractmethod
    def delete_many(self, short_codes: Iterable[str], **kwargs) -> int:
        pass
