"""Explicit result types for degraded pipeline paths.

Per-photo and per-visit failures never raise out of the pipeline. They turn
into values: a :class:`PlaceIdentification` tells the album builder how a visit
was named, and a :class:`FailureRecord` is collected on the run result so the
caller can see what was degraded and why.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from tripalbum.core.models import RankedPlaceCandidate

# Names given to a moment when its place could not be identified
UNKNOWN_PLACE_NAME = "Unknown Place"
NO_CANDIDATES_NAME = "No Nearby Places"
SEARCH_FAILED_NAME = "Place Search Failed"
FALLBACK_PLACE_NAME = "A Nice Place"


class FailureKind(str, Enum):
    """Categories of degradation recorded during a run.

    Attributes:
        TRANSIENT_INPUT: A photo's image or metadata could not be fetched.
        EXTERNAL_LOOKUP: The place lookup raised or timed out.
        NO_CANDIDATES: The place lookup returned nothing.
        EMBEDDING_UNAVAILABLE: The embedding provider was not usable.
        STRUCTURAL_EMPTINESS: A trip, day, or moment ended up empty.
        UNEXPECTED: Anything else that aborted a single trip.
    """

    TRANSIENT_INPUT = "transient_input"
    EXTERNAL_LOOKUP = "external_lookup"
    NO_CANDIDATES = "no_candidates"
    EMBEDDING_UNAVAILABLE = "embedding_unavailable"
    STRUCTURAL_EMPTINESS = "structural_emptiness"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class FailureRecord:
    """One degraded item."""

    kind: FailureKind
    subject_id: str
    detail: str = ""

    def __str__(self) -> str:
        text = f"{self.kind.value}: {self.subject_id}"
        if self.detail:
            text += f" ({self.detail})"
        return text


class PlaceStatus(str, Enum):
    """How a visit's place name was decided."""

    IDENTIFIED = "identified"
    NO_CANDIDATES = "no_candidates"
    LOOKUP_FAILED = "lookup_failed"
    EMBEDDING_UNAVAILABLE = "embedding_unavailable"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class PlaceIdentification:
    """Outcome of naming one visit.

    Attributes:
        status: Which path produced the name.
        name: The display name, possibly a sentinel.
        ranked_candidates: Ranked candidates to keep on the moment. Empty for
            every status except IDENTIFIED.
        detail: Free-form reason for degraded statuses.
    """

    status: PlaceStatus
    name: str
    ranked_candidates: tuple[RankedPlaceCandidate, ...] = field(default_factory=tuple)
    detail: str = ""

    @property
    def is_degraded(self) -> bool:
        return self.status is not PlaceStatus.IDENTIFIED

    @classmethod
    def unknown(cls, detail: str = "") -> PlaceIdentification:
        return cls(PlaceStatus.UNKNOWN, UNKNOWN_PLACE_NAME, detail=detail)

    @classmethod
    def no_candidates(cls) -> PlaceIdentification:
        return cls(PlaceStatus.NO_CANDIDATES, NO_CANDIDATES_NAME)

    @classmethod
    def lookup_failed(cls, detail: str = "") -> PlaceIdentification:
        return cls(PlaceStatus.LOOKUP_FAILED, SEARCH_FAILED_NAME, detail=detail)
