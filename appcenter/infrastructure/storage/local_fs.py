from __future__ import annotations

import os
import shutil
import time
import uuid
from pathlib import Path

import anyio

from appcenter.infrastructure.storage.base import StorageBackend


def _unique_suffix() -> str:
    return f"{int(time.time() * 1000)}_{uuid.uuid4()}"


class LocalFileSystemStorage(StorageBackend):
    """Local FS storage backend with a temp area and one directory per application."""

    def __init__(self, root: Path):
        self.root = Path(root).resolve()
        self.temp_root = self.root / "temp"
        self.root.mkdir(parents=True, exist_ok=True)
        self.temp_root.mkdir(parents=True, exist_ok=True)

    def _inside_root(self, path: str | Path) -> Path:
        resolved = Path(path).resolve()
        if resolved != self.root and self.root not in resolved.parents:
            raise ValueError("Path escapes storage root")
        return resolved

    def _application_dir(self, application_id: str) -> Path:
        normalized = Path(application_id)
        if normalized.is_absolute() or ".." in normalized.parts or len(normalized.parts) != 1:
            raise ValueError("Invalid application id")
        if normalized.name == self.temp_root.name:
            raise ValueError("Invalid application id")
        return self.root / normalized

    def new_temp_path(self, original_name: str) -> Path:
        ext = Path(original_name).suffix.lower()
        return self.temp_root / f"temp_{_unique_suffix()}{ext}"

    def new_final_path(self, application_id: str, original_name: str) -> Path:
        ext = Path(original_name).suffix.lower()
        return self._application_dir(application_id) / f"{_unique_suffix()}{ext}"

    def relative_key(self, path: str | Path) -> str:
        return self._inside_root(path).relative_to(self.root).as_posix()

    async def init_file(self, path: Path) -> None:
        path = self._inside_root(path)

        def _init() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("wb"):
                return

        await anyio.to_thread.run_sync(_init)

    async def append_chunk(self, path: Path, chunk: bytes) -> None:
        path = self._inside_root(path)

        def _append() -> None:
            with path.open("ab") as handle:
                handle.write(chunk)

        await anyio.to_thread.run_sync(_append)

    async def move(self, src: str | Path, dst: str | Path) -> None:
        src_path = self._inside_root(src)
        dst_path = self._inside_root(dst)

        def _move() -> None:
            if not src_path.exists():
                raise FileNotFoundError(f"Source file not found: {src_path}")
            dst_path.parent.mkdir(parents=True, exist_ok=True)
            try:
                os.replace(src_path, dst_path)
            except OSError:
                # Cross-device moves fall back to copy + unlink
                shutil.move(str(src_path), str(dst_path))

        await anyio.to_thread.run_sync(_move)

    async def delete_file(self, path: str | Path) -> bool:
        target = self._inside_root(path)

        def _delete() -> bool:
            if not target.exists():
                return False
            target.unlink()
            return True

        return await anyio.to_thread.run_sync(_delete)

    async def remove_application_dir(self, application_id: str) -> bool:
        target = self._application_dir(application_id)

        def _remove() -> bool:
            if not target.exists():
                return False
            shutil.rmtree(target)
            return True

        return await anyio.to_thread.run_sync(_remove)

    async def exists(self, path: str | Path) -> bool:
        target = self._inside_root(path)
        return await anyio.to_thread.run_sync(target.exists)

    async def check_writable(self) -> bool:
        def _check() -> bool:
            return self.root.is_dir() and os.access(self.root, os.W_OK)

        return await anyio.to_thread.run_sync(_check)
