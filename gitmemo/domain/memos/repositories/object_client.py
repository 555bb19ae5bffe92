"""
Repository Interface: Remote Object Client

Contract for the versioned remote object store that holds shard documents
and image assets.
"""

from dataclasses import dataclass
from typing import List, Optional, Protocol, Tuple

# expected_version value meaning "the object must not exist yet"
EXPECT_ABSENT = ""


@dataclass(frozen=True)
class RemoteObject:
    """Object content plus the version token it was read at."""

    content: bytes
    version: str

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")


@dataclass(frozen=True)
class DirEntry:
    name: str
    path: str
    type: str = "file"


class IRemoteObjectClient(Protocol):
    """
    Interface for remote object access.

    Failure modes (gitmemo.domain.errors): NotFoundError, ConflictError,
    AuthError, PermissionDeniedError/RateLimitError, ValidationError and,
    once retries are exhausted, TransientError.
    """

    async def get_text(self, path: str) -> Tuple[str, str]:
        """
        Read a text object.

        Returns:
            (content, version_token)

        Raises:
            NotFoundError: object absent
        """
        ...

    async def get_bytes(self, path: str) -> RemoteObject:
        """Read a binary object. Raises NotFoundError when absent."""
        ...

    async def put_text(
        self, path: str, content: str, message: str, expected_version: Optional[str] = None
    ) -> str:
        """
        Write a text object.

        expected_version=None overwrites whatever is there. EXPECT_ABSENT
        creates only; ConflictError if the object exists. Any other value
        fails with ConflictError if the object changed since that version.

        Returns:
            New version token
        """
        ...

    async def put_bytes(
        self, path: str, content: bytes, message: str, expected_version: Optional[str] = None
    ) -> str:
        """Write a binary object; same version semantics as put_text."""
        ...

    async def delete_object(
        self, path: str, message: str, expected_version: Optional[str] = None
    ) -> bool:
        """
        Delete an object.

        Returns:
            False if it was already absent
        """
        ...

    async def list_dir(self, path: str) -> List[DirEntry]:
        """List a directory. A missing directory lists as empty."""
        ...
