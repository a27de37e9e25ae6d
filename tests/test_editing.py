"""Tests for editing moments of built albums."""

import asyncio

import pytest
from fakes import (
    LOUVRE,
    FakeAssetProvider,
    FakeEmbeddingProvider,
    FakePlaceLookup,
    make_asset,
    make_place,
    offset,
    unit,
)

from tripalbum.config import RankingConfig
from tripalbum.core.models import Moment, POICandidate, TripAlbum
from tripalbum.editing import (
    NO_MOMENTS_IN_TRIPS_STATUS,
    NO_MOMENTS_STATUS,
    RERANK_NO_CANDIDATES,
    RERANK_NO_PLACES,
    RERANK_PREPARE_FAILED,
    MomentEditor,
    all_moments,
    attach_voice_note,
    choose_place,
    moments_feed_status,
    replace_moment,
    set_caption,
)
from tripalbum.errors import PlaceLookupError


def _moment(representative: str = "a1") -> Moment:
    return Moment(
        name="Louvre Museum",
        time_label="09:00",
        representative_asset_id=representative,
        optional_asset_ids=[representative],
        poi_candidates=[
            POICandidate(id="louvre", name="Louvre Museum", score=1.1, latitude=0.0, longitude=0.0),
            POICandidate(id="cafe", name="Café Marly", score=0.4, latitude=0.0, longitude=0.0),
        ],
    )


def _editor(places: FakePlaceLookup, embeddings=None, missing_images=None, config=None) -> MomentEditor:
    assets = FakeAssetProvider([make_asset("a1", LOUVRE)], missing_images=missing_images)
    embeddings = embeddings or FakeEmbeddingProvider(image_vectors={"a1": unit(0)}, text_vectors={})
    return MomentEditor(assets, embeddings, places, config)


# =============================================================================
# Re-ranking
# =============================================================================


class TestRerank:
    """Tests for ranking a moment's places again."""

    def test_rerank_replaces_candidates(self) -> None:
        places = FakePlaceLookup(
            [
                make_place("kiosk", offset(LOUVRE, north_m=300), ["store"]),
                make_place("pyramid", LOUVRE, ["tourist_attraction"]),
            ]
        )
        moment = _moment()

        result = asyncio.run(_editor(places).rerank(moment))

        assert result.ok
        assert [c.id for c in result.candidates] == ["pyramid", "kiosk"]
        assert [c.id for c in result.moment.poi_candidates] == ["pyramid", "kiosk"]
        assert result.moment.name == "Louvre Museum"
        assert result.moment.id == moment.id

    def test_rerank_truncates(self) -> None:
        places = FakePlaceLookup([make_place(f"p{i}", offset(LOUVRE, north_m=5 * i)) for i in range(10)])
        result = asyncio.run(_editor(places, config=RankingConfig(max_candidates=4)).rerank(_moment()))
        assert len(result.candidates) == 4

    def test_missing_image(self) -> None:
        result = asyncio.run(_editor(FakePlaceLookup([make_place("x")]), missing_images={"a1"}).rerank(_moment()))
        assert result.error == RERANK_PREPARE_FAILED
        assert not result.ok

    def test_unknown_asset(self) -> None:
        result = asyncio.run(_editor(FakePlaceLookup([make_place("x")])).rerank(_moment("gone")))
        assert result.error == RERANK_PREPARE_FAILED

    def test_no_places(self) -> None:
        result = asyncio.run(_editor(FakePlaceLookup()).rerank(_moment()))
        assert result.error == RERANK_NO_PLACES

    def test_lookup_failure_counts_as_no_places(self) -> None:
        places = FakePlaceLookup(error=PlaceLookupError("offline"))
        result = asyncio.run(_editor(places).rerank(_moment()))
        assert result.error == RERANK_NO_PLACES

    def test_embedding_failure(self) -> None:
        embeddings = FakeEmbeddingProvider(image_vectors={}, text_vectors={})
        result = asyncio.run(_editor(FakePlaceLookup([make_place("x")]), embeddings=embeddings).rerank(_moment()))

        assert result.error == RERANK_NO_CANDIDATES
        assert result.moment.poi_candidates == _moment().poi_candidates

    def test_model_crash(self) -> None:
        embeddings = FakeEmbeddingProvider(text_vectors={}, crash_on={"a1"})
        result = asyncio.run(_editor(FakePlaceLookup([make_place("x")]), embeddings=embeddings).rerank(_moment()))
        assert result.error == RERANK_NO_CANDIDATES


# =============================================================================
# Edits
# =============================================================================


class TestEdits:
    """Tests for renaming, captions, and voice notes."""

    def test_choose_place(self) -> None:
        moment = _moment()
        renamed = choose_place(moment, "cafe")

        assert renamed.name == "Café Marly"
        assert renamed.id == moment.id
        assert moment.name == "Louvre Museum"

    def test_choose_unknown_place(self) -> None:
        with pytest.raises(KeyError):
            choose_place(_moment(), "nowhere")

    def test_set_and_clear_caption(self) -> None:
        captioned = set_caption(_moment(), "  First morning  ")
        assert captioned.caption == "First morning"
        assert set_caption(captioned, "").caption is None

    def test_voice_note(self) -> None:
        assert attach_voice_note(_moment(), "notes/0001.m4a").voice_note_ref == "notes/0001.m4a"


# =============================================================================
# Album Helpers
# =============================================================================


class TestAlbumHelpers:
    """Tests for the moments feed and writing edits back."""

    def test_all_moments_latest_first(self, sample_album: TripAlbum) -> None:
        moments = all_moments([sample_album])
        assert len(moments) == 2
        labels = [m.time_label for m in moments]
        assert labels == sorted(labels, reverse=True)

    def test_feed_status(self, sample_album: TripAlbum) -> None:
        assert moments_feed_status([]) == NO_MOMENTS_STATUS
        assert moments_feed_status([sample_album]) is None

    def test_feed_status_without_moments(self, sample_album: TripAlbum) -> None:
        # Albums always carry a moment; a hollow copy stands in for a stale cache.
        hollow = sample_album.model_copy(update={"days": []})
        assert moments_feed_status([hollow]) == NO_MOMENTS_IN_TRIPS_STATUS

    def test_replace_moment(self, sample_album: TripAlbum) -> None:
        original = sample_album.days[0].moments[0]
        edited = set_caption(choose_place(original, "louvre"), "Pyramid at dawn")

        updated = replace_moment([sample_album], edited)

        assert updated[0].find_moment(original.id).caption == "Pyramid at dawn"
        assert updated[0].days[0].summary == "Louvre Museum & more"
        assert sample_album.find_moment(original.id).caption is None

    def test_replace_moment_updates_summary(self, sample_album: TripAlbum) -> None:
        moment = sample_album.days[1].moments[0]
        renamed = moment.model_copy(update={"name": "Montmartre"})

        updated = replace_moment([sample_album], renamed)
        assert updated[0].days[1].summary == "Montmartre & more"

    def test_replace_unknown_moment(self, sample_album: TripAlbum) -> None:
        with pytest.raises(KeyError):
            replace_moment([sample_album], _moment())
