"""
Local cache store backed by a flat directory of ``<key>.jpg`` files.
"""

import asyncio
import os
import uuid
from pathlib import Path
from typing import Optional, Union

from shared.errors import EntryNotFoundError, InvalidResourceKeyError, StorageError
from shared.logging import get_logger
from ..domain.resource_key import is_valid_resource_key


ENTRY_SUFFIX = ".jpg"
TEMP_SUFFIX = ".tmp"


def entry_filename(key: str) -> str:
    """Filename of the cache entry for ``key``."""
    return f"{key}{ENTRY_SUFFIX}"


class LocalCacheStore:
    """Whole-file reads, writes and deletes against the cache directory.

    Filesystem calls run in worker threads so the event loop keeps serving
    other requests. Writes land in a hidden temporary file and are renamed
    over the entry, so readers see either the old blob or the new one.
    """

    def __init__(self, cache_dir: Union[str, Path]):
        self.cache_dir = Path(cache_dir)
        self.logger = get_logger("gateway.cache_store")

    def path_for(self, key: str) -> Path:
        """Resolve the entry path for a key."""
        if not is_valid_resource_key(key):
            raise InvalidResourceKeyError(details={"key": key})
        return self.cache_dir / entry_filename(key)

    def ensure_directory(self) -> Path:
        """Create the cache directory if it does not exist."""
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        return self.cache_dir

    async def read(self, key: str) -> Optional[bytes]:
        """Return the cached blob, or None on a miss.

        Any read failure counts as a miss; failures other than a missing
        file are logged so they stay visible.
        """
        path = self.path_for(key)
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError:
            return None
        except OSError as exc:
            self.logger.warning("Cache read failed, treating as miss", key=key, error=str(exc))
            return None

        if not data:
            self.logger.warning("Empty cache entry, treating as miss", key=key)
            return None
        return data

    async def write(self, key: str, data: bytes) -> Path:
        """Replace the entry for ``key`` with ``data``."""
        path = self.path_for(key)
        try:
            await asyncio.to_thread(self._write_atomic, path, data)
        except OSError as exc:
            self.logger.error("Cache write failed", key=key, error=str(exc))
            raise StorageError(details={"key": key, "error": str(exc)}) from exc

        self.logger.debug("Cache entry written", key=key, size=len(data))
        return path

    async def delete(self, key: str) -> None:
        """Remove the entry for ``key``.

        Raises EntryNotFoundError when there is nothing to remove and
        StorageError for any other filesystem failure.
        """
        path = self.path_for(key)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError as exc:
            raise EntryNotFoundError(details={"key": key}) from exc
        except OSError as exc:
            self.logger.error("Cache delete failed", key=key, error=str(exc))
            raise StorageError(details={"key": key, "error": str(exc)}) from exc

        self.logger.debug("Cache entry deleted", key=key)

    @staticmethod
    def _write_atomic(path: Path, data: bytes) -> None:
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}{TEMP_SUFFIX}")
        try:
            with open(tmp_path, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
