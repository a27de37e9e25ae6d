"""Core Data Model for Trip Album.

This module defines the objects that flow through the album pipeline, from the
raw geotagged photo up to the finished album tree:

    TripAlbum -> Day -> Moment -> Highlight

Photos enter as ``PhotoAsset`` values. Place lookups produce ``PlaceCandidate``
values, ranking turns them into ``RankedPlaceCandidate`` values, and a finished
``Moment`` keeps a compact ``POICandidate`` list for later editing. Every album
model is a pydantic model, so the whole tree serializes to JSON and back with
ids intact.

Example:
    >>> from datetime import datetime, timezone
    >>> asset = PhotoAsset(
    ...     id="IMG_0001",
    ...     location=GeoPoint(latitude=48.8584, longitude=2.2945),
    ...     timestamp=datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc),
    ... )
    >>> asset.location.distance_meters(GeoPoint(latitude=48.8606, longitude=2.3376))
"""

from __future__ import annotations

import math
import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from tripalbum.config import MAX_POI_CANDIDATES

# Mean Earth radius used for great-circle distances
EARTH_RADIUS_METERS = 6371000.0


def _new_id() -> str:
    return str(uuid.uuid4())


# =============================================================================
# Geography
# =============================================================================


class GeoPoint(BaseModel):
    """Geographic coordinates in decimal degrees.

    Attributes:
        latitude: Latitude in decimal degrees (-90 to 90)
        longitude: Longitude in decimal degrees (-180 to 180)

    Example:
        >>> eiffel = GeoPoint(latitude=48.8584, longitude=2.2945)
        >>> louvre = GeoPoint(latitude=48.8606, longitude=2.3376)
        >>> eiffel.distance_meters(louvre)  # about 3.2 km
    """

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float

    @field_validator("latitude")
    @classmethod
    def validate_latitude(cls, v: float) -> float:
        """Validate latitude is within valid range (-90 to 90)."""
        if v < -90 or v > 90:
            raise ValueError(f"Latitude must be between -90 and 90 degrees, got {v}")
        return v

    @field_validator("longitude")
    @classmethod
    def validate_longitude(cls, v: float) -> float:
        """Validate longitude is within valid range (-180 to 180)."""
        if v < -180 or v > 180:
            raise ValueError(f"Longitude must be between -180 and 180 degrees, got {v}")
        return v

    def distance_meters(self, other: GeoPoint) -> float:
        """Great-circle distance to another point using the Haversine formula.

        Args:
            other: Another GeoPoint.

        Returns:
            Distance in meters.
        """
        lat1 = math.radians(self.latitude)
        lat2 = math.radians(other.latitude)
        dlat = lat2 - lat1
        dlon = math.radians(other.longitude - self.longitude)

        a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
        c = 2 * math.asin(min(1.0, math.sqrt(a)))
        return EARTH_RADIUS_METERS * c


# =============================================================================
# Photos
# =============================================================================


class PhotoAsset(BaseModel):
    """A geotagged photo as seen by the pipeline.

    Assets are immutable. The enrichment step produces a copy with the
    embedding attached via :meth:`with_embedding`.

    Attributes:
        id: Identifier understood by the asset provider.
        location: Where the photo was taken.
        timestamp: When the photo was taken (timezone-aware).
        embedding: Optional image embedding vector.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    location: GeoPoint
    timestamp: datetime
    embedding: list[float] | None = None

    @field_validator("timestamp")
    @classmethod
    def ensure_timezone_aware(cls, v: datetime) -> datetime:
        """Assume UTC for naive datetimes."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def with_embedding(self, embedding: list[float] | None) -> PhotoAsset:
        """Return a copy carrying the given embedding."""
        return self.model_copy(update={"embedding": embedding})


# =============================================================================
# Places
# =============================================================================


class PlaceCandidate(BaseModel):
    """A nearby place returned by a place lookup.

    Attributes:
        id: Provider place identifier.
        name: Display name.
        category_tags: Provider category tags, e.g. ``["museum", "point_of_interest"]``.
        location: Place coordinates.
    """

    id: str
    name: str
    category_tags: list[str] = Field(default_factory=list)
    location: GeoPoint


class RankedPlaceCandidate(BaseModel):
    """A place candidate with the scores computed for one photo."""

    place: PlaceCandidate
    distance_meters: float
    embedding_score: float
    final_score: float


class POICandidate(BaseModel):
    """Compact place candidate kept on a Moment for later editing."""

    id: str
    name: str
    score: float
    latitude: float
    longitude: float

    @classmethod
    def from_ranked(cls, ranked: RankedPlaceCandidate) -> POICandidate:
        place = ranked.place
        return cls(
            id=place.id,
            name=place.name,
            score=ranked.final_score,
            latitude=place.location.latitude,
            longitude=place.location.longitude,
        )


# =============================================================================
# Album Tree
# =============================================================================


class Highlight(BaseModel):
    """A group of at least two visually similar photos within a Moment.

    Attributes:
        id: Unique highlight id.
        representative_asset_id: First member of the group.
        asset_ids: Members in insertion order.
    """

    id: str = Field(default_factory=_new_id)
    representative_asset_id: str
    asset_ids: list[str] = Field(min_length=2)

    @model_validator(mode="after")
    def representative_is_member(self) -> Highlight:
        """The representative must be one of the members."""
        if self.representative_asset_id not in self.asset_ids:
            raise ValueError("representative_asset_id must be one of asset_ids")
        return self


class Moment(BaseModel):
    """A named visit to one place, structured into highlights.

    Attributes:
        id: Unique moment id.
        name: Identified place name, or a sentinel when identification failed.
        time_label: Local start time of the visit, ``HH:MM``.
        representative_asset_id: Cover photo of the moment.
        highlights: Groups of similar photos.
        optional_asset_ids: Photos that did not join any highlight.
        poi_candidates: Ranked alternatives for the place name (at most 8).
        caption: Optional user caption.
        voice_note_ref: Optional reference to a recorded voice note.
    """

    id: str = Field(default_factory=_new_id)
    name: str
    time_label: str
    representative_asset_id: str
    highlights: list[Highlight] = Field(default_factory=list)
    optional_asset_ids: list[str] = Field(default_factory=list)
    poi_candidates: list[POICandidate] = Field(default_factory=list, max_length=MAX_POI_CANDIDATES)
    caption: str | None = None
    voice_note_ref: str | None = None

    @field_validator("caption", mode="before")
    @classmethod
    def normalize_caption(cls, v: Any) -> Any:
        """Strip whitespace and convert empty strings to None."""
        if isinstance(v, str):
            stripped = v.strip()
            return stripped or None
        return v

    @property
    def all_asset_ids(self) -> list[str]:
        """Highlight members in order, followed by the optional photos."""
        ids = [asset_id for highlight in self.highlights for asset_id in highlight.asset_ids]
        ids.extend(self.optional_asset_ids)
        return ids


class Day(BaseModel):
    """All moments whose visit started on one calendar date."""

    id: str = Field(default_factory=_new_id)
    date: str
    cover_asset_id: str
    summary: str
    moments: list[Moment] = Field(min_length=1)

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        """Dates are stored as YYYY-MM-DD."""
        datetime.strptime(v, "%Y-%m-%d")
        return v


class TripAlbum(BaseModel):
    """A complete trip album."""

    id: str = Field(default_factory=_new_id)
    title: str
    days: list[Day] = Field(min_length=1)

    @property
    def moments(self) -> list[Moment]:
        return [moment for day in self.days for moment in day.moments]

    def find_moment(self, moment_id: str) -> Moment | None:
        for moment in self.moments:
            if moment.id == moment_id:
                return moment
        return None
