"""Clustering and album structure for Trip Album."""

from tripalbum.core.album import AlbumStructureBuilder, generate_album_title, summarize_day
from tripalbum.core.highlights import HighlightClusterer
from tripalbum.core.models import (
    Day,
    GeoPoint,
    Highlight,
    Moment,
    PhotoAsset,
    PlaceCandidate,
    POICandidate,
    RankedPlaceCandidate,
    TripAlbum,
)
from tripalbum.core.moments import MomentClusterer, VisitCluster
from tripalbum.core.results import FailureKind, FailureRecord, PlaceIdentification, PlaceStatus
from tripalbum.core.trips import TripDetector

__all__ = [
    "AlbumStructureBuilder",
    "Day",
    "FailureKind",
    "FailureRecord",
    "GeoPoint",
    "Highlight",
    "HighlightClusterer",
    "Moment",
    "MomentClusterer",
    "PhotoAsset",
    "PlaceCandidate",
    "PlaceIdentification",
    "PlaceStatus",
    "POICandidate",
    "RankedPlaceCandidate",
    "TripAlbum",
    "TripDetector",
    "VisitCluster",
    "generate_album_title",
    "summarize_day",
]
