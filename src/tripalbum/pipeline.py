"""Trip album pipeline orchestrator.

Ties the stages together for a whole photo library:

1. List the library and read each photo's location and time
2. Embed each photo's image
3. Split the time-ordered photos into trips
4. Per trip: group photos into moments, name each moment's place, build the album
5. Save the albums to the album store

Every per-photo and per-visit failure is recorded as a
:class:`~tripalbum.core.results.FailureRecord` and the run continues.
Library-level problems (no access, no usable photos) end the run early with a
descriptive status message. A run only ever raises on cancellation.

Typical usage:
    >>> pipeline = AlbumPipeline(assets, embeddings, places, config=get_config())
    >>> result = await pipeline.generate_trips()
    >>> print(result.status_message)
    Successfully created 2 new trip albums!
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from tripalbum.ai.embeddings import EmbeddingProvider
from tripalbum.ai.ranking import PlaceIdentifier, PlaceRanker
from tripalbum.cache import AlbumCache
from tripalbum.config import AppConfig
from tripalbum.core.album import AlbumStructureBuilder
from tripalbum.core.highlights import HighlightClusterer
from tripalbum.core.models import PhotoAsset, TripAlbum
from tripalbum.core.moments import MomentClusterer, VisitCluster
from tripalbum.core.results import FailureKind, FailureRecord, PlaceStatus
from tripalbum.core.trips import TripDetector
from tripalbum.errors import AssetAccessError, EmbeddingUnavailableError, PipelineError
from tripalbum.providers.base import AssetProvider, PlaceLookupProvider, ProgressCallback
from tripalbum.utils.logging import LogContext

logger = logging.getLogger(__name__)

# Status messages shown to the user
STATUS_NO_ACCESS = "Photo library access is required to find trips."
STATUS_NO_LOCATED_PHOTOS = "No recent photos with location data found to analyze."
STATUS_NOTHING_PROCESSED = "Could not process photos for analysis."
STATUS_NO_TRIPS = "No distinct trips were found in your recent photos."
STATUS_STEP_MOMENTS = "Step 1/3: Grouping photos into moments..."
STATUS_STEP_PLACES = "Step 2/3: Analyzing places..."
STATUS_STEP_HIGHLIGHTS = "Step 3/3: Creating highlights and finishing up..."

_PLACE_FAILURE_KINDS = {
    PlaceStatus.NO_CANDIDATES: FailureKind.NO_CANDIDATES,
    PlaceStatus.LOOKUP_FAILED: FailureKind.EXTERNAL_LOOKUP,
    PlaceStatus.EMBEDDING_UNAVAILABLE: FailureKind.EMBEDDING_UNAVAILABLE,
    PlaceStatus.UNKNOWN: FailureKind.TRANSIENT_INPUT,
}


@dataclass
class PipelineResult:
    """Complete result of one pipeline run.

    Attributes:
        albums: Finished albums, one per surviving trip.
        status_message: Final user-facing status.
        failures: Everything that was degraded along the way.
        photos_found: Photos listed by the library.
        photos_processed: Photos with a location and a timestamp.
        trips_detected: Trips found before album building.
        stage: Stage the run ended in ("complete" on a normal finish).
        elapsed_seconds: Wall time of the run.
    """

    albums: list[TripAlbum] = field(default_factory=list)
    status_message: str = ""
    failures: list[FailureRecord] = field(default_factory=list)
    photos_found: int = 0
    photos_processed: int = 0
    trips_detected: int = 0
    stage: str = "start"
    elapsed_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return bool(self.albums)

    def failures_of(self, kind: FailureKind) -> list[FailureRecord]:
        return [failure for failure in self.failures if failure.kind is kind]

    def raise_if_empty(self) -> PipelineResult:
        """Strict mode: raise PipelineError when the run produced no album.

        Raises:
            PipelineError: With the stage the run ended in and this result
                attached as ``partial_result``.
        """
        if not self.albums:
            raise PipelineError(self.status_message or "No albums created", stage=self.stage, partial_result=self)
        return self

    def to_summary(self) -> str:
        lines = [
            "Pipeline Results:",
            f"  Albums: {len(self.albums)}",
            f"  Photos found: {self.photos_found}",
            f"  Photos processed: {self.photos_processed}",
            f"  Trips detected: {self.trips_detected}",
            f"  Degraded items: {len(self.failures)}",
            f"  Time: {self.elapsed_seconds:.1f}s",
            f"  Status: {self.status_message}",
        ]
        return "\n".join(lines)


class AlbumPipeline:
    """Build trip albums from a photo library.

    Args:
        assets: Photo library.
        embeddings: Image/text embedding model.
        places: Place lookup.
        config: Application configuration. Defaults are used when None.
        store: Album store; cleared at the start of a run and written at the end.
        progress: Optional ``(message, fraction)`` callback.
    """

    def __init__(
        self,
        assets: AssetProvider,
        embeddings: EmbeddingProvider,
        places: PlaceLookupProvider,
        config: AppConfig | None = None,
        store: AlbumCache | None = None,
        progress: ProgressCallback | None = None,
    ) -> None:
        self.assets = assets
        self.embeddings = embeddings
        self.places = places
        self.config = config or AppConfig()
        self.store = store
        self.progress = progress

        clustering = self.config.clustering
        self.trip_detector = TripDetector(
            gap_hours=self.config.trips.gap_hours,
            distance_km=self.config.trips.distance_km,
            min_assets=self.config.trips.min_assets,
        )
        self.moment_clusterer = MomentClusterer(
            spatial_threshold_meters=clustering.spatial_threshold_meters,
            temporal_threshold_seconds=clustering.temporal_threshold_seconds,
        )
        self.identifier = PlaceIdentifier(
            PlaceRanker(embeddings, self.config.ranking),
            places,
            assets,
            embeddings,
            self.config.ranking,
        )
        self.builder = AlbumStructureBuilder(HighlightClusterer(clustering.highlight_similarity_threshold))

    def _report(self, message: str, fraction: float) -> None:
        """Send progress to the callback. A failing callback is ignored."""
        logger.debug(message)
        if self.progress is None:
            return
        try:
            self.progress(message, max(0.0, min(1.0, fraction)))
        except Exception as e:
            logger.debug(f"Progress callback failed: {e!r}")

    # -------------------------------------------------------------------------
    # Enrichment
    # -------------------------------------------------------------------------

    async def _embed(self, asset: PhotoAsset, failures: list[FailureRecord]) -> list[float] | None:
        try:
            image = await self.assets.fetch_image(asset.id)
        except Exception as e:
            failures.append(FailureRecord(FailureKind.TRANSIENT_INPUT, asset.id, f"image: {e!r}"))
            return None
        if image is None:
            failures.append(FailureRecord(FailureKind.TRANSIENT_INPUT, asset.id, "image unavailable"))
            return None
        # EmbeddingUnavailableError is left to the caller, which stops encoding.
        try:
            return await self.embeddings.encode_image(image)
        except EmbeddingUnavailableError:
            raise
        except Exception as e:
            failures.append(FailureRecord(FailureKind.TRANSIENT_INPUT, asset.id, f"embedding: {e!r}"))
            return None

    async def enrich_assets(
        self, asset_ids: list[str], failures: list[FailureRecord]
    ) -> tuple[list[PhotoAsset], int]:
        """Read metadata and compute embeddings for every photo.

        Photos without a location are skipped. Photos with a location but no
        timestamp count as located but are not processed.

        Returns:
            Tuple of (processed photos sorted by time, located photo count).
        """
        total = len(asset_ids)
        located = 0
        processed: list[PhotoAsset] = []
        embeddings_available = True

        for index, asset_id in enumerate(asset_ids, start=1):
            self._report(f"Analyzing photo {index} of {total}...", index / total)

            try:
                location = await self.assets.fetch_location(asset_id)
            except Exception as e:
                failures.append(FailureRecord(FailureKind.TRANSIENT_INPUT, asset_id, f"location: {e!r}"))
                continue
            if location is None:
                continue
            located += 1

            try:
                timestamp = await self.assets.fetch_timestamp(asset_id)
            except Exception as e:
                failures.append(FailureRecord(FailureKind.TRANSIENT_INPUT, asset_id, f"timestamp: {e!r}"))
                continue
            if timestamp is None:
                continue

            asset = PhotoAsset(id=asset_id, location=location, timestamp=timestamp)
            if embeddings_available:
                try:
                    asset = asset.with_embedding(await self._embed(asset, failures))
                except EmbeddingUnavailableError as e:
                    logger.warning(f"Image embeddings unavailable ({e.reason}); highlights will be skipped")
                    failures.append(FailureRecord(FailureKind.EMBEDDING_UNAVAILABLE, asset_id, e.reason))
                    embeddings_available = False
            processed.append(asset)

        processed.sort(key=lambda asset: asset.timestamp)
        return processed, located

    # -------------------------------------------------------------------------
    # Album creation
    # -------------------------------------------------------------------------

    async def name_clusters(
        self, clusters: list[VisitCluster], failures: list[FailureRecord]
    ) -> list[VisitCluster]:
        """Identify the place of every visit, one at a time."""
        named: list[VisitCluster] = []
        total = len(clusters)
        for index, cluster in enumerate(clusters, start=1):
            self._report(f"Analyzing place {index} of {total}...", index / total)
            identification = await self.identifier.identify(cluster)
            if identification.is_degraded:
                subject = cluster.cover_asset.id if cluster.cover_asset else cluster.start_time.isoformat()
                failures.append(
                    FailureRecord(_PLACE_FAILURE_KINDS[identification.status], subject, identification.detail)
                )
            named.append(cluster.with_place(identification))
        return named

    async def create_album(
        self, trip_assets: list[PhotoAsset], failures: list[FailureRecord] | None = None
    ) -> TripAlbum | None:
        """Build one album from one trip's time-ordered photos.

        Returns:
            The album, or None when no Day survives.
        """
        if failures is None:
            failures = []

        self._report(STATUS_STEP_MOMENTS, 0.0)
        clusters = self.moment_clusterer.cluster(trip_assets)
        if not clusters:
            return None

        self._report(STATUS_STEP_PLACES, 0.0)
        named = await self.name_clusters(clusters, failures)

        self._report(STATUS_STEP_HIGHLIGHTS, 1.0)
        album = self.builder.build(named)
        if album is None:
            subject = trip_assets[0].id if trip_assets else ""
            failures.append(FailureRecord(FailureKind.STRUCTURAL_EMPTINESS, subject, "no moments with photos"))
        return album

    async def generate_trips(self) -> PipelineResult:
        """Run the whole pipeline over the photo library."""
        result = PipelineResult()
        started = time.perf_counter()

        def finish(message: str, stage: str) -> PipelineResult:
            result.status_message = message
            result.stage = stage
            result.elapsed_seconds = time.perf_counter() - started
            logger.info(message)
            return result

        if self.store is not None:
            self.store.clear()

        try:
            asset_ids = await self.assets.list_asset_ids()
        except AssetAccessError as e:
            logger.warning(f"Photo library unavailable: {e}")
            return finish(STATUS_NO_ACCESS, "access")
        result.photos_found = len(asset_ids)

        with LogContext(f"Analyzing {len(asset_ids)} photos", logger=logger):
            assets, located = await self.enrich_assets(asset_ids, result.failures)
        if located == 0:
            return finish(STATUS_NO_LOCATED_PHOTOS, "enrichment")
        if not assets:
            return finish(STATUS_NOTHING_PROCESSED, "enrichment")
        result.photos_processed = len(assets)

        trips = self.trip_detector.detect_trips(assets)
        result.trips_detected = len(trips)
        if not trips:
            return finish(STATUS_NO_TRIPS, "trips")

        for trip_index, trip_assets in enumerate(trips, start=1):
            try:
                with LogContext(f"Creating album for trip {trip_index} of {len(trips)}", logger=logger):
                    album = await self.create_album(trip_assets, result.failures)
            except Exception as e:
                logger.error(f"Error creating an album for trip {trip_index}: {e!r}")
                result.failures.append(FailureRecord(FailureKind.UNEXPECTED, trip_assets[0].id, repr(e)))
                continue
            if album is not None and album.days:
                result.albums.append(album)

        if self.store is not None:
            self.store.save(result.albums)

        return finish(f"Successfully created {len(result.albums)} new trip albums!", "complete")


async def build_albums(
    assets: AssetProvider,
    embeddings: EmbeddingProvider,
    places: PlaceLookupProvider,
    config: AppConfig | None = None,
    strict: bool = False,
) -> PipelineResult:
    """Run the pipeline once without a store.

    Args:
        strict: Raise PipelineError instead of returning an empty result.
    """
    result = await AlbumPipeline(assets, embeddings, places, config=config).generate_trips()
    if strict:
        result.raise_if_empty()
    return result
