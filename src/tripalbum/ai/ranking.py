"""Place ranking and identification.

Given the cover photo of a visit and the places around it, decide which place
the visit was at. Every candidate is scored by combining:

- how well the photo matches the place's category tags (image/text embedding
  similarity),
- how close the place is (exponential decay with distance),
- a bonus for place types people travel to (airports and museums beat shops),
- a bonus for being right next to the photo.

Scoring:
    ```
    distance_score  = exp(-distance_meters / 100)
    embedding_score = max cosine(image, text(tag)) over the place's specific tags
    final_score     = embedding_score * 0.3 + distance_score * 0.7
                      + priority_bonus + proximity_bonus
    ```

:class:`PlaceRanker` does the scoring. :class:`PlaceIdentifier` wraps it with
the lookups and turns every failure into a named
:class:`~tripalbum.core.results.PlaceIdentification` instead of an exception.

Example:
    >>> ranker = PlaceRanker(embeddings, config.ranking)
    >>> ranked = await ranker.rank_places(places, image_vector, photo_location)
    >>> ranked[0].place.name
    'Louvre Museum'
"""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable

from tripalbum.ai.embeddings import EmbeddingProvider
from tripalbum.config import RankingConfig
from tripalbum.core.models import GeoPoint, PhotoAsset, PlaceCandidate, RankedPlaceCandidate
from tripalbum.core.moments import VisitCluster
from tripalbum.core.results import FALLBACK_PLACE_NAME, PlaceIdentification, PlaceStatus
from tripalbum.core.similarity import cosine_similarity
from tripalbum.errors import EmbeddingError, EmbeddingUnavailableError
from tripalbum.providers.base import AssetProvider, PlaceLookupProvider

logger = logging.getLogger(__name__)


# =============================================================================
# Heuristics
# =============================================================================

# Checked in order; the first tier a place matches wins.
PRIORITY_TIERS: tuple[tuple[float, frozenset[str]], ...] = (
    (
        0.12,
        frozenset(
            {
                "airport",
                "university",
                "stadium",
                "amusement_park",
                "national_park",
                "train_station",
                "subway_station",
                "transit_station",
            }
        ),
    ),
    (
        0.09,
        frozenset(
            {
                "tourist_attraction",
                "historical_landmark",
                "resort",
                "golf_course",
                "shopping_mall",
                "museum",
                "art_gallery",
                "zoo",
                "aquarium",
            }
        ),
    ),
    (0.06, frozenset({"restaurant", "park", "hotel", "market", "cafe", "bar"})),
    (
        0.03,
        frozenset(
            {
                "bakery",
                "ice_cream_shop",
                "department_store",
                "clothing_store",
                "book_store",
                "car_rental",
                "movie_theater",
                "spa",
            }
        ),
    ),
)

LODGING_TAGS = frozenset({"hotel", "resort"})
LODGING_PROXIMITY_METERS = 80.0
LODGING_PROXIMITY_BONUS = 0.25
PROXIMITY_METERS = 40.0
PROXIMITY_BONUS = 0.20


def extract_high_quality_tags(tags: Iterable[str], generic_tags: Iterable[str]) -> list[str]:
    """Drop generic tags and turn the rest into prompts ("art_gallery" -> "art gallery")."""
    generic = set(generic_tags)
    return [tag.replace("_", " ") for tag in tags if tag not in generic]


def priority_bonus(tags: Iterable[str]) -> float:
    tag_set = set(tags)
    for bonus, tier in PRIORITY_TIERS:
        if tag_set & tier:
            return bonus
    return 0.0


def proximity_bonus(distance_meters: float, tags: Iterable[str]) -> float:
    if LODGING_TAGS & set(tags) and distance_meters < LODGING_PROXIMITY_METERS:
        return LODGING_PROXIMITY_BONUS
    if distance_meters < PROXIMITY_METERS:
        return PROXIMITY_BONUS
    return 0.0


def nearest_place(places: list[PlaceCandidate], location: GeoPoint) -> PlaceCandidate | None:
    """The place closest to ``location``; the first one wins ties."""
    if not places:
        return None
    return min(places, key=lambda place: location.distance_meters(place.location))


# =============================================================================
# Ranking
# =============================================================================


class PlaceRanker:
    """Score and sort place candidates for one photo.

    Args:
        embeddings: Provider used to embed the category prompts.
        config: Weights and the generic tag list.
    """

    def __init__(self, embeddings: EmbeddingProvider, config: RankingConfig | None = None) -> None:
        self.embeddings = embeddings
        self.config = config or RankingConfig()

    async def _embed_tags(self, prompts: list[str]) -> dict[str, list[float]]:
        """Embed every prompt in a single batched call.

        Returns an empty mapping when the provider cannot encode text.
        """
        if not prompts:
            return {}
        try:
            vectors = await self.embeddings.encode_text_batch(prompts)
        except EmbeddingUnavailableError as e:
            logger.debug(f"Text embeddings unavailable ({e.reason}); using distance and category only")
            return {}
        if len(vectors) != len(prompts):
            raise EmbeddingError(f"Expected {len(prompts)} text embeddings, got {len(vectors)}")
        return dict(zip(prompts, vectors))

    def score(
        self,
        place: PlaceCandidate,
        distance_meters: float,
        image_embedding: list[float],
        tag_vectors: dict[str, list[float]],
    ) -> RankedPlaceCandidate:
        """Score one candidate. Deterministic for identical inputs."""
        embedding_score = 0.0
        for prompt in extract_high_quality_tags(place.category_tags, self.config.generic_tags):
            vector = tag_vectors.get(prompt)
            if vector is not None:
                embedding_score = max(embedding_score, cosine_similarity(image_embedding, vector))

        distance_score = math.exp(-distance_meters / self.config.distance_decay_meters)
        final_score = (
            embedding_score * self.config.embedding_weight
            + distance_score * self.config.distance_weight
            + priority_bonus(place.category_tags)
            + proximity_bonus(distance_meters, place.category_tags)
        )
        return RankedPlaceCandidate(
            place=place,
            distance_meters=distance_meters,
            embedding_score=embedding_score,
            final_score=final_score,
        )

    async def rank_places(
        self,
        places: list[PlaceCandidate],
        image_embedding: list[float],
        photo_location: GeoPoint,
    ) -> list[RankedPlaceCandidate]:
        """Rank ``places`` for a photo, best first.

        Ties keep the input order. When the best score is exactly zero, the
        candidates are ordered by distance instead.

        Args:
            places: Candidates near the photo.
            image_embedding: Embedding of the photo.
            photo_location: Where the photo was taken.

        Returns:
            Every candidate, ranked. Empty only when ``places`` is empty.
        """
        if not places:
            return []

        prompts = sorted(
            {
                prompt
                for place in places
                for prompt in extract_high_quality_tags(place.category_tags, self.config.generic_tags)
            }
        )
        tag_vectors = await self._embed_tags(prompts)

        candidates = [
            self.score(place, photo_location.distance_meters(place.location), image_embedding, tag_vectors)
            for place in places
        ]

        ranked = sorted(candidates, key=lambda candidate: candidate.final_score, reverse=True)
        if ranked[0].final_score == 0.0:
            logger.debug("All ranking scores are zero; ordering by distance")
            ranked = sorted(candidates, key=lambda candidate: candidate.distance_meters)
        return ranked


# =============================================================================
# Identification
# =============================================================================


class PlaceIdentifier:
    """Name a visit after the place it most likely happened at.

    Never raises except for cancellation. Each failure path returns a
    :class:`PlaceIdentification` with a sentinel name and an explicit status.

    Args:
        ranker: Scores the candidates.
        places: Place lookup collaborator.
        assets: Photo library, used when the cover photo has no embedding yet.
        embeddings: Image encoder for that same case.
        config: Ranking configuration; ``max_candidates`` caps what is kept.
    """

    def __init__(
        self,
        ranker: PlaceRanker,
        places: PlaceLookupProvider,
        assets: AssetProvider,
        embeddings: EmbeddingProvider,
        config: RankingConfig | None = None,
    ) -> None:
        self.ranker = ranker
        self.places = places
        self.assets = assets
        self.embeddings = embeddings
        self.config = config or RankingConfig()

    async def _load_image(self, asset: PhotoAsset) -> Any | None:
        try:
            return await self.assets.fetch_image(asset.id)
        except Exception as e:
            logger.debug(f"Could not load image for {asset.id}: {e!r}")
            return None

    async def _encode(self, image: Any) -> list[float] | None:
        try:
            return await self.embeddings.encode_image(image)
        except Exception as e:
            logger.debug(f"Could not embed cover image: {e!r}")
            return None

    async def identify_asset(self, asset: PhotoAsset) -> PlaceIdentification:
        """Identify the place a single photo was taken at."""
        image_embedding = asset.embedding
        image = None
        if image_embedding is None:
            image = await self._load_image(asset)
            if image is None:
                return PlaceIdentification.unknown(detail="cover image unavailable")

        try:
            places = await self.places.fetch_candidates(asset.location)
        except Exception as e:
            logger.warning(f"Place lookup failed near {asset.id}: {e!r}")
            return PlaceIdentification.lookup_failed(detail=str(e) or type(e).__name__)

        if not places:
            return PlaceIdentification.no_candidates()

        if image_embedding is None:
            image_embedding = await self._encode(image)
        if image_embedding is None:
            nearest = nearest_place(places, asset.location)
            return PlaceIdentification(
                PlaceStatus.EMBEDDING_UNAVAILABLE,
                nearest.name if nearest else FALLBACK_PLACE_NAME,
                detail="image embedding unavailable",
            )

        try:
            ranked = await self.ranker.rank_places(places, image_embedding, asset.location)
        except Exception as e:
            logger.warning(f"Ranking failed for {asset.id}: {e!r}")
            return PlaceIdentification.lookup_failed(detail=str(e) or type(e).__name__)

        return PlaceIdentification(
            PlaceStatus.IDENTIFIED,
            ranked[0].place.name,
            ranked_candidates=tuple(ranked[: self.config.max_candidates]),
        )

    async def identify(self, cluster: VisitCluster) -> PlaceIdentification:
        """Identify the place of a visit from its cover photo."""
        cover = cluster.cover_asset
        if cover is None:
            return PlaceIdentification.unknown(detail="visit has no photos")
        return await self.identify_asset(cover)
