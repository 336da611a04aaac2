# /note-polish-backend/app/services/storage_helpers/base.py

"""
The key-addressed blob interface every storage backend implements.

Callers store the returned key, never a URL. `resolve_url` is re-run on every
read, and its result is opaque: it may be a time-limited signed URL or an
internal `/files/{key}` path depending on which backend was selected at
startup. Code outside this package must not branch on the backend.
"""

import abc
from datetime import datetime
from typing import List, Optional, Tuple

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class BlobStore(abc.ABC):
    """Uniform get/put/delete/URL-resolution over one storage backend."""

    #: Human-readable backend name, used in logs only.
    backend_name = "abstract"

    @abc.abstractmethod
    def put(
        self,
        data: bytes,
        content_type: str,
        desired_key: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> str:
        """
        Stores `data` and returns the authoritative key, which may differ from
        `desired_key`.

        Raises:
            StorageUnavailable: the backend's required configuration is incomplete.
            StorageFailure: the write itself failed.
        """

    @abc.abstractmethod
    def resolve_url(self, key: str) -> str:
        """Returns a URL a client can fetch the blob from."""

    @abc.abstractmethod
    def get_bytes(self, key: str) -> Tuple[bytes, str]:
        """
        Returns `(content, content_type)`.

        Raises:
            NotFound: no blob with this key exists in the active backend.
        """

    @abc.abstractmethod
    def delete(self, key: str) -> None:
        """Removes the blob. Deleting a missing key is not an error."""

    @abc.abstractmethod
    def list_keys(self, older_than: datetime) -> List[str]:
        """Keys of blobs created before `older_than` (used by the orphan sweep)."""
