from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class StorageBackend(ABC):
    """Abstraction for the binary storage used by staged and confirmed uploads."""

    root: Path

    @abstractmethod
    def new_temp_path(self, original_name: str) -> Path:
        """Return a fresh, collision-free path in the temp area."""

    @abstractmethod
    def new_final_path(self, application_id: str, original_name: str) -> Path:
        """Return a fresh, collision-free path inside the application directory."""

    @abstractmethod
    def relative_key(self, path: str | Path) -> str:
        """Return the POSIX path of a stored file relative to the storage root."""

    @abstractmethod
    async def init_file(self, path: Path) -> None:
        """Create (or truncate) the target file."""

    @abstractmethod
    async def append_chunk(self, path: Path, chunk: bytes) -> None:
        """Append bytes to a file being written."""

    @abstractmethod
    async def move(self, src: str | Path, dst: str | Path) -> None:
        """Move a file, creating the destination directory when needed."""

    @abstractmethod
    async def delete_file(self, path: str | Path) -> bool:
        """Delete a file. Returns False when it was already gone."""

    @abstractmethod
    async def remove_application_dir(self, application_id: str) -> bool:
        """Remove the whole directory of an application."""

    @abstractmethod
    async def exists(self, path: str | Path) -> bool:
        """Return whether a stored file exists."""

    @abstractmethod
    async def check_writable(self) -> bool:
        """Return whether the storage root is usable."""
