"""Moment clustering.

Groups a trip's time-ordered photos into visits ("moments") with a single
forward pass. Each photo is compared only with the currently open visit: it
joins when it is both close to the visit's anchor and close in time to the
visit's last photo, otherwise it opens a new visit anchored at itself.

Example:
    >>> clusterer = MomentClusterer(spatial_threshold_meters=175, temporal_threshold_seconds=3 * 3600)
    >>> clusters = clusterer.cluster(sorted_assets)
    >>> [len(c.assets) for c in clusters]
    [2, 3]
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import datetime

from tripalbum.core.models import GeoPoint, PhotoAsset, RankedPlaceCandidate
from tripalbum.core.results import PlaceIdentification, PlaceStatus

logger = logging.getLogger(__name__)


@dataclass
class VisitCluster:
    """Photos taken during one visit to one place.

    The anchor is the first photo's location and never moves. ``end_time``
    follows the most recently added photo.

    Attributes:
        assets: Member photos in time order.
        anchor_location: Location used for the spatial join test.
        start_time: Timestamp of the first photo.
        end_time: Timestamp of the last photo.
        identified_name: Place name, set by place identification.
        ranked_candidates: Ranked places kept for the moment.
        place_status: How the name was decided.
    """

    assets: list[PhotoAsset]
    anchor_location: GeoPoint
    start_time: datetime
    end_time: datetime
    identified_name: str | None = None
    ranked_candidates: tuple[RankedPlaceCandidate, ...] = field(default_factory=tuple)
    place_status: PlaceStatus | None = None

    @classmethod
    def start(cls, asset: PhotoAsset) -> VisitCluster:
        """Open a new visit anchored at ``asset``."""
        return cls(
            assets=[asset],
            anchor_location=asset.location,
            start_time=asset.timestamp,
            end_time=asset.timestamp,
        )

    def add(self, asset: PhotoAsset) -> None:
        self.assets.append(asset)
        self.end_time = asset.timestamp

    @property
    def cover_asset(self) -> PhotoAsset | None:
        """The photo that stands for the visit: its first photo."""
        return self.assets[0] if self.assets else None

    def accepts(self, asset: PhotoAsset, spatial_threshold_meters: float, temporal_threshold_seconds: float) -> bool:
        """Whether ``asset`` joins this visit. Both comparisons are strict."""
        distance = self.anchor_location.distance_meters(asset.location)
        gap = (asset.timestamp - self.end_time).total_seconds()
        return distance < spatial_threshold_meters and gap < temporal_threshold_seconds

    def with_place(self, identification: PlaceIdentification) -> VisitCluster:
        """Return a copy of this visit carrying the identified place."""
        return dataclasses.replace(
            self,
            assets=list(self.assets),
            identified_name=identification.name,
            ranked_candidates=tuple(identification.ranked_candidates),
            place_status=identification.status,
        )


class MomentClusterer:
    """Partition time-ordered photos into visits.

    Args:
        spatial_threshold_meters: Maximum distance to the visit anchor.
        temporal_threshold_seconds: Maximum gap after the visit's last photo.
    """

    def __init__(self, spatial_threshold_meters: float = 175.0, temporal_threshold_seconds: float = 10800.0) -> None:
        if spatial_threshold_meters <= 0 or temporal_threshold_seconds <= 0:
            raise ValueError("Clustering thresholds must be positive")
        self.spatial_threshold_meters = spatial_threshold_meters
        self.temporal_threshold_seconds = temporal_threshold_seconds

    def cluster(self, assets: list[PhotoAsset]) -> list[VisitCluster]:
        """Group ``assets`` into visits.

        The result partitions the input in order: concatenating the clusters'
        assets reproduces the input sequence. Empty input gives an empty list.
        """
        if not assets:
            return []

        if any(later.timestamp < earlier.timestamp for earlier, later in zip(assets, assets[1:])):
            logger.warning("Photos are not sorted by timestamp; visit boundaries may be unreliable")

        clusters: list[VisitCluster] = []
        current = VisitCluster.start(assets[0])

        for asset in assets[1:]:
            if current.accepts(asset, self.spatial_threshold_meters, self.temporal_threshold_seconds):
                current.add(asset)
            else:
                clusters.append(current)
                current = VisitCluster.start(asset)

        clusters.append(current)
        logger.debug(f"Grouped {len(assets)} photos into {len(clusters)} visits")
        return clusters
