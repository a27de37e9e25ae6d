"""JSON file place lookup.

Reads a list of places from a JSON file and answers "what is near here" by
great-circle distance. Both a flat format and the nested shape returned by
common places APIs are accepted:

    ```json
    [
      {"id": "louvre", "name": "Louvre Museum", "types": ["museum"],
       "lat": 48.8606, "lng": 2.3376},
      {"place_id": "tour-eiffel", "name": "Eiffel Tower",
       "types": ["tourist_attraction", "point_of_interest"],
       "location": {"lat": 48.8584, "lng": 2.2945}}
    ]
    ```

A top-level object with a ``places`` or ``results`` list is also accepted.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from tripalbum.core.models import GeoPoint, PlaceCandidate
from tripalbum.errors import PlaceLookupError
from tripalbum.providers.base import PlaceLookupProvider

logger = logging.getLogger(__name__)


def parse_place(entry: dict[str, Any]) -> PlaceCandidate:
    """Build a PlaceCandidate from one JSON entry.

    Raises:
        ValueError: Required fields are missing or invalid.
    """
    place_id = entry.get("id") or entry.get("place_id")
    name = entry.get("name")
    if not place_id or not name:
        raise ValueError("place needs an id and a name")

    location = entry.get("location") or entry
    lat = location.get("lat", location.get("latitude"))
    lng = location.get("lng", location.get("longitude"))
    if lat is None or lng is None:
        raise ValueError(f"place {place_id} has no coordinates")

    tags = entry.get("types", entry.get("category_tags", []))
    return PlaceCandidate(
        id=str(place_id),
        name=str(name),
        category_tags=[str(tag) for tag in tags],
        location=GeoPoint(latitude=float(lat), longitude=float(lng)),
    )


class JsonPlaceLookup(PlaceLookupProvider):
    """Place lookup over a JSON file, loaded lazily on first use.

    Args:
        path: JSON file with the places.
        search_radius_meters: Places farther than this are not returned.
    """

    def __init__(self, path: Path, search_radius_meters: float = 500.0) -> None:
        self.path = Path(path).expanduser()
        self.search_radius_meters = search_radius_meters
        self._places: list[PlaceCandidate] | None = None

    def _load(self) -> list[PlaceCandidate]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise PlaceLookupError(f"Could not read places file {self.path}", original_error=e) from e

        if isinstance(data, dict):
            data = data.get("places", data.get("results", []))
        if not isinstance(data, list):
            raise PlaceLookupError(f"Places file {self.path} must contain a list of places")

        places = []
        for index, entry in enumerate(data):
            if not isinstance(entry, dict):
                logger.warning(f"Skipping place #{index}: not an object")
                continue
            try:
                places.append(parse_place(entry))
            except ValueError as e:
                logger.warning(f"Skipping place #{index}: {e}")

        logger.info(f"Loaded {len(places)} places from {self.path}")
        return places

    async def places(self) -> list[PlaceCandidate]:
        if self._places is None:
            self._places = await asyncio.to_thread(self._load)
        return self._places

    async def fetch_candidates(self, location: GeoPoint) -> list[PlaceCandidate]:
        places = await self.places()
        return [
            place
            for place in places
            if location.distance_meters(place.location) <= self.search_radius_meters
        ]
