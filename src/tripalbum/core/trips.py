"""Trip detection.

Splits one long, time-ordered photo sequence into independent trips wherever
consecutive photos are far apart in time or in space.
"""

from __future__ import annotations

import logging

from tripalbum.core.models import PhotoAsset

logger = logging.getLogger(__name__)


class TripDetector:
    """Split a photo library into trips by coarse gaps.

    A new trip starts between two consecutive photos when the time between
    them is at least ``gap_hours`` or the distance is at least ``distance_km``.

    Args:
        gap_hours: Time gap that separates trips.
        distance_km: Distance jump that separates trips.
        min_assets: Trips with fewer photos are dropped.
    """

    def __init__(self, gap_hours: float = 48.0, distance_km: float = 300.0, min_assets: int = 1) -> None:
        if gap_hours <= 0 or distance_km <= 0:
            raise ValueError("Trip gap thresholds must be positive")
        self.gap_seconds = gap_hours * 3600
        self.distance_meters = distance_km * 1000
        self.min_assets = max(1, min_assets)

    def _is_break(self, previous: PhotoAsset, current: PhotoAsset) -> bool:
        gap = (current.timestamp - previous.timestamp).total_seconds()
        if gap >= self.gap_seconds:
            return True
        return previous.location.distance_meters(current.location) >= self.distance_meters

    def detect_trips(self, assets: list[PhotoAsset]) -> list[list[PhotoAsset]]:
        """Return trips in order, each a time-ordered list of photos."""
        if not assets:
            return []

        trips: list[list[PhotoAsset]] = [[assets[0]]]
        for previous, current in zip(assets, assets[1:]):
            if self._is_break(previous, current):
                trips.append([current])
            else:
                trips[-1].append(current)

        kept = [trip for trip in trips if len(trip) >= self.min_assets]
        if len(kept) < len(trips):
            logger.debug(f"Dropped {len(trips) - len(kept)} trips below {self.min_assets} photos")
        logger.info(f"Detected {len(kept)} trips in {len(assets)} photos")
        return kept
