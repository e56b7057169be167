"""Read-through disk cache for downloaded map data."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Callable, Optional, Union

logger = logging.getLogger(__name__)


class CacheService:
    """Stores byte blobs as files under one directory.

    Writes are atomic: data goes to a temporary file in the cache directory
    and is renamed into place, so readers never see a partial entry.
    """

    def __init__(self, cache_dir: Union[str, Path]):
        """
        Args:
            cache_dir: Directory for cache files; created when missing.
        """
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        """File path of a cache entry. Keys must be plain file names."""
        if not key or Path(key).name != key:
            raise ValueError(f"Invalid cache key: {key!r}")
        return self.cache_dir / key

    def get(self, key: str) -> Optional[bytes]:
        path = self.path_for(key)
        if not path.exists():
            return None
        logger.debug("Cache hit: %s", path)
        return path.read_bytes()

    def put(self, key: str, data: bytes) -> Path:
        """Write an entry atomically.

        If another writer finished the same entry first, the existing file
        is kept and the temporary file is discarded.

        Returns:
            Path of the cache entry.
        """
        path = self.path_for(key)
        if path.exists():
            return path

        fd, tmp_name = tempfile.mkstemp(dir=self.cache_dir, prefix=f".{key}.", suffix=".tmp")
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            if path.exists():
                tmp_path.unlink()
            else:
                os.replace(tmp_path, path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()

        logger.debug("Cached %d bytes at %s", len(data), path)
        return path

    def get_or_fetch(self, key: str, fetch: Callable[[], bytes]) -> bytes:
        """Return the cached bytes, or fetch, store and return them.

        Freshly fetched bytes are returned from memory even when a
        concurrent writer stored the entry first.
        """
        cached = self.get(key)
        if cached is not None:
            return cached
        data = fetch()
        self.put(key, data)
        return data

    def clear(self) -> int:
        """Delete every cache entry. Returns the number of files removed."""
        removed = 0
        for path in self.cache_dir.iterdir():
            if path.is_file():
                path.unlink()
                removed += 1
        return removed
