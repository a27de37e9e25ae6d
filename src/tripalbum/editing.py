"""Moment editing.

After albums are built, a moment can be revisited: its place candidates can
be ranked again from its cover photo, the user can pick a different
candidate as the moment's name, and a caption or voice note can be attached.
Edits produce new Moment values; :func:`replace_moment` writes one back into
the album tree so the albums can be saved again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from tripalbum.ai.embeddings import EmbeddingProvider
from tripalbum.ai.ranking import PlaceRanker
from tripalbum.config import RankingConfig
from tripalbum.core.album import summarize_day
from tripalbum.core.models import Moment, POICandidate, TripAlbum
from tripalbum.providers.base import AssetProvider, PlaceLookupProvider

logger = logging.getLogger(__name__)

RERANK_PREPARE_FAILED = "Could not prepare the photo for analysis."
RERANK_NO_PLACES = "No nearby places found."
RERANK_NO_CANDIDATES = "Could not find any suitable candidates."

NO_MOMENTS_STATUS = "No moments found. Run 'tripalbum build' first!"
NO_MOMENTS_IN_TRIPS_STATUS = "No moments found in your generated trips."


def _updated(moment: Moment, **changes: object) -> Moment:
    """Validated copy of ``moment`` with ``changes`` applied."""
    return Moment.model_validate({**moment.model_dump(), **changes})


@dataclass
class RerankResult:
    """Outcome of re-ranking a moment's place.

    Attributes:
        moment: The moment with fresh candidates, or the unchanged moment on failure.
        candidates: The new candidates, best first.
        error: User-facing reason when re-ranking failed.
    """

    moment: Moment
    candidates: list[POICandidate] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class MomentEditor:
    """Re-rank and edit moments of existing albums.

    Args:
        assets: Photo library holding the moments' photos.
        embeddings: Image/text embedding model.
        places: Place lookup.
        config: Ranking configuration.
    """

    def __init__(
        self,
        assets: AssetProvider,
        embeddings: EmbeddingProvider,
        places: PlaceLookupProvider,
        config: RankingConfig | None = None,
    ) -> None:
        self.assets = assets
        self.embeddings = embeddings
        self.places = places
        self.config = config or RankingConfig()
        self.ranker = PlaceRanker(embeddings, self.config)

    async def rerank(self, moment: Moment) -> RerankResult:
        """Rank the places around the moment's cover photo again.

        A failed lookup counts as "no nearby places". On success the moment's
        candidates are replaced and its name is left alone; see
        :meth:`choose_place`.
        """
        asset_id = moment.representative_asset_id
        try:
            image = await self.assets.fetch_image(asset_id)
            location = await self.assets.fetch_location(asset_id)
        except Exception as e:
            logger.warning(f"Could not load {asset_id} for re-ranking: {e!r}")
            image = location = None
        if image is None or location is None:
            return RerankResult(moment, error=RERANK_PREPARE_FAILED)

        try:
            places = await self.places.fetch_candidates(location)
        except Exception as e:
            logger.warning(f"Place lookup failed while re-ranking {moment.id}: {e!r}")
            places = []
        if not places:
            return RerankResult(moment, error=RERANK_NO_PLACES)

        try:
            image_embedding = await self.embeddings.encode_image(image)
            ranked = await self.ranker.rank_places(places, image_embedding, location)
        except Exception as e:
            logger.warning(f"Could not rank places for {moment.id}: {e!r}")
            ranked = []
        if not ranked:
            return RerankResult(moment, error=RERANK_NO_CANDIDATES)

        candidates = [POICandidate.from_ranked(candidate) for candidate in ranked[: self.config.max_candidates]]
        return RerankResult(_updated(moment, poi_candidates=candidates), candidates=candidates)


def choose_place(moment: Moment, candidate_id: str) -> Moment:
    """Rename a moment after one of its place candidates.

    Raises:
        KeyError: ``candidate_id`` is not one of the moment's candidates.
    """
    for candidate in moment.poi_candidates:
        if candidate.id == candidate_id:
            return _updated(moment, name=candidate.name)
    raise KeyError(f"Moment {moment.id} has no place candidate {candidate_id!r}")


def set_caption(moment: Moment, text: str | None) -> Moment:
    """Set or clear (with None or blank text) the moment's caption."""
    return _updated(moment, caption=text)


def attach_voice_note(moment: Moment, ref: str | None) -> Moment:
    return _updated(moment, voice_note_ref=ref)


def all_moments(albums: list[TripAlbum]) -> list[Moment]:
    """Every moment of every album, latest time label first."""
    moments = [moment for album in albums for moment in album.moments]
    return sorted(moments, key=lambda moment: moment.time_label, reverse=True)


def moments_feed_status(albums: list[TripAlbum]) -> str | None:
    """Status line for an empty moments feed, or None when there are moments."""
    if not albums:
        return NO_MOMENTS_STATUS
    if not any(album.moments for album in albums):
        return NO_MOMENTS_IN_TRIPS_STATUS
    return None


def replace_moment(albums: list[TripAlbum], moment: Moment) -> list[TripAlbum]:
    """Albums with the moment of the same id replaced by ``moment``.

    The summary of the affected day is recomputed.

    Raises:
        KeyError: No album contains a moment with that id.
    """
    updated: list[TripAlbum] = []
    found = False
    for album in albums:
        days = []
        for day in album.days:
            if any(existing.id == moment.id for existing in day.moments):
                found = True
                moments = [moment if existing.id == moment.id else existing for existing in day.moments]
                day = day.model_copy(update={"moments": moments, "summary": summarize_day(moments)})
            days.append(day)
        updated.append(album.model_copy(update={"days": days}))

    if not found:
        raise KeyError(f"No album contains moment {moment.id}")
    return updated
