"""Collaborator interfaces for the album pipeline.

The pipeline never talks to a photo library or a places service directly. It
receives objects implementing these interfaces, which keeps the core testable
with in-memory fakes and lets the CLI plug in the bundled local
implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable

from tripalbum.core.models import GeoPoint, PlaceCandidate
from tripalbum.errors import AssetAccessError, PlaceLookupError

__all__ = [
    "AssetAccessError",
    "AssetProvider",
    "PlaceLookupError",
    "PlaceLookupProvider",
    "ProgressCallback",
]

# Receives (message, fraction complete in [0, 1]).
ProgressCallback = Callable[[str, float], None]


class AssetProvider(ABC):
    """Read access to a photo library.

    Per-photo lookups return None when the value is missing or cannot be
    read. Only :meth:`list_asset_ids` fails loudly, with
    :class:`AssetAccessError`, when the library itself is inaccessible.
    """

    @abstractmethod
    async def list_asset_ids(self) -> list[str]:
        """Ids of every photo in the library.

        Raises:
            AssetAccessError: Library missing or permission denied.
        """

    @abstractmethod
    async def fetch_image(self, asset_id: str) -> Any | None:
        """Image data suitable for the embedding provider."""

    @abstractmethod
    async def fetch_location(self, asset_id: str) -> GeoPoint | None:
        """Where the photo was taken."""

    @abstractmethod
    async def fetch_timestamp(self, asset_id: str) -> datetime | None:
        """When the photo was taken."""


class PlaceLookupProvider(ABC):
    """Source of places near a coordinate."""

    @abstractmethod
    async def fetch_candidates(self, location: GeoPoint) -> list[PlaceCandidate]:
        """Places near ``location``, in any order.

        Raises:
            PlaceLookupError: The lookup failed or timed out.
        """
