"""Persistent album store.

Albums from the last run are kept in a single JSON file so they can be shown
again without re-analyzing the photo library. The file holds a small
versioned envelope around the album list; an envelope from another schema
version is treated as a miss.

Design principles:
- Never crash: load returns None and save returns False on any failure
- Atomic writes: temp file in the same directory, then rename
- Round trip keeps every id of the Day/Moment/Highlight/POICandidate tree

Example:
    >>> cache = AlbumCache(Path("~/.tripalbum/cache"))
    >>> cache.save(albums)
    True
    >>> albums, status = cache.load_or_status()
    >>> status
    'Loaded 2 trips from your last session.'
"""

from __future__ import annotations

import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from tripalbum.core.models import TripAlbum

CACHE_VERSION = "1"
DEFAULT_FILENAME = "trip_albums.json"

EMPTY_CACHE_STATUS = "Press build to find your trips."


class CacheEntry(BaseModel):
    """On-disk envelope for the cached albums."""

    version: str = CACHE_VERSION
    saved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    albums: list[TripAlbum] = Field(default_factory=list)


class AlbumCache:
    """JSON file store for trip albums.

    Attributes:
        cache_dir: Directory holding the cache file.
        path: Full path of the cache file.
    """

    def __init__(self, cache_dir: Path, filename: str = DEFAULT_FILENAME) -> None:
        self.cache_dir = Path(cache_dir).expanduser()
        self.path = self.cache_dir / filename
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def exists(self) -> bool:
        return self.path.exists()

    def save(self, albums: list[TripAlbum]) -> bool:
        """Replace the stored albums.

        Returns:
            True if the albums were written, False otherwise.
        """
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            content = CacheEntry(albums=albums).model_dump_json(indent=2)

            fd, temp_path = tempfile.mkstemp(dir=self.cache_dir, suffix=".tmp", prefix=".albums_")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                Path(temp_path).replace(self.path)
            except BaseException:
                Path(temp_path).unlink(missing_ok=True)
                raise

        except (OSError, ValueError) as e:
            self._logger.warning(f"Album cache save failed: {type(e).__name__}: {e}")
            return False

        self._logger.debug(f"Saved {len(albums)} albums to {self.path}")
        return True

    def load(self) -> list[TripAlbum] | None:
        """Stored albums, or None when the cache is missing, stale, or corrupt."""
        if not self.path.exists():
            return None

        try:
            entry = CacheEntry.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            self._logger.warning(f"Album cache unreadable: {type(e).__name__}")
            return None

        if entry.version != CACHE_VERSION:
            self._logger.debug(f"Album cache version {entry.version} ignored")
            return None
        return entry.albums

    def load_or_status(self) -> tuple[list[TripAlbum], str]:
        """Stored albums with a status line for display."""
        albums = self.load()
        if not albums:
            return [], EMPTY_CACHE_STATUS
        return albums, f"Loaded {len(albums)} trips from your last session."

    def clear(self) -> int:
        """Remove the cache file.

        Returns:
            Number of files removed (0 or 1).
        """
        try:
            self.path.unlink()
        except FileNotFoundError:
            return 0
        except OSError as e:
            self._logger.warning(f"Album cache clear failed: {type(e).__name__}")
            return 0
        self._logger.info(f"Cleared album cache at {self.path}")
        return 1

    def get_stats(self) -> dict[str, Any]:
        """Cache details for display."""
        stats: dict[str, Any] = {"path": str(self.path), "exists": self.path.exists()}
        if stats["exists"]:
            stats["size_bytes"] = self.path.stat().st_size
            albums = self.load()
            stats["albums"] = len(albums) if albums is not None else 0
        return stats
