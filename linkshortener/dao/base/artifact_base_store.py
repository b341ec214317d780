"""Abstract base class for side-artifact stores.

Side-artifacts (rendered QR codes) are derived, non-authoritative blobs keyed
by short code. Losing one is harmless: it can always be re-rendered.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable


class ArtifactBaseStore(ABC):
    """Interface for blob stores holding rendered side-artifacts

    Methods:
        put(short_code: str, data: bytes) -> str:
            Store the artifact and return its public reference (URL).
            Raises ArtifactStoreError on failure.

        delete_many(short_codes: Iterable[str]) -> int:
            Delete the artifacts of the given short codes, return how many were deleted.
            Raises ArtifactStoreError on failure.
    """

    @abstractmethod
    def put(self, short_code: str, data: bytes) -> str:
        pass

    @abstractmethod
    def delete_many(self, short_codes: Iterable[str]) -> int:
        pass
