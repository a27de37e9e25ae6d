"""Tests for the bundled collaborators: local photos, JSON places, histogram encoder."""

import asyncio
import io
import json
from datetime import datetime, timezone
from pathlib import Path

import pytest
from fakes import LOUVRE, create_test_image, offset
from PIL import Image

from tripalbum.ai.histogram import ColorHistogramEncoder
from tripalbum.core.models import GeoPoint
from tripalbum.core.similarity import cosine_similarity
from tripalbum.errors import AssetAccessError, EmbeddingError, EmbeddingUnavailableError, PlaceLookupError
from tripalbum.providers.local_files import (
    LocalPhotoProvider,
    _dms_to_decimal,
    _parse_exif_datetime,
    read_photo_metadata,
)
from tripalbum.providers.places_json import JsonPlaceLookup, parse_place

# =============================================================================
# EXIF Helper Tests
# =============================================================================


class TestExifHelpers:
    """Tests for EXIF value conversion."""

    def test_dms_to_decimal(self) -> None:
        assert _dms_to_decimal(((48, 1), (51, 1), (3024, 100)), "N") == pytest.approx(48.8584)

    def test_southern_and_western_are_negative(self) -> None:
        assert _dms_to_decimal((33.0, 51.0, 24.0), "S") == pytest.approx(-33.8567, abs=1e-4)
        assert _dms_to_decimal((151.0, 12.0, 55.0), b"W") < 0

    def test_parse_datetime(self) -> None:
        parsed = _parse_exif_datetime("2023:06:15 10:30:00")
        assert parsed == datetime(2023, 6, 15, 10, 30, tzinfo=timezone.utc)

    def test_parse_datetime_bytes(self) -> None:
        assert _parse_exif_datetime(b"2023:06:15 10:30:00\x00") is not None

    @pytest.mark.parametrize("value", ["1985:01:01 00:00:00", "2999:01:01 00:00:00", "not a date", None, 12])
    def test_implausible_or_invalid_datetimes(self, value) -> None:
        assert _parse_exif_datetime(value) is None


# =============================================================================
# LocalPhotoProvider Tests
# =============================================================================


class TestLocalPhotoProvider:
    """Tests for the directory-backed photo library."""

    def test_lists_images_only(self, photo_dir: Path) -> None:
        ids = asyncio.run(LocalPhotoProvider(photo_dir).list_asset_ids())
        assert ids == ["IMG_0000.jpg", "IMG_0001.jpg", "IMG_0002.jpg", "no_metadata.jpg"]

    def test_nested_ids_use_forward_slashes(self, photo_dir: Path) -> None:
        create_test_image(photo_dir / "day2" / "IMG_0100.jpg")
        create_test_image(photo_dir / ".thumbnails" / "IMG_0100.jpg")

        ids = asyncio.run(LocalPhotoProvider(photo_dir).list_asset_ids())
        assert "day2/IMG_0100.jpg" in ids
        assert not any(i.startswith(".thumbnails") for i in ids)

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(AssetAccessError):
            asyncio.run(LocalPhotoProvider(tmp_path / "nope").list_asset_ids())

    def test_reads_location_and_time(self, photo_dir: Path) -> None:
        provider = LocalPhotoProvider(photo_dir)

        location = asyncio.run(provider.fetch_location("IMG_0002.jpg"))
        timestamp = asyncio.run(provider.fetch_timestamp("IMG_0002.jpg"))

        expected = offset(LOUVRE, north_m=10)
        assert location.latitude == pytest.approx(expected.latitude, abs=1e-5)
        assert location.longitude == pytest.approx(expected.longitude, abs=1e-5)
        assert timestamp == datetime(2023, 6, 15, 10, 20, tzinfo=timezone.utc)

    def test_southern_hemisphere(self, tmp_path: Path) -> None:
        sydney = GeoPoint(latitude=-33.8568, longitude=151.2153)
        path = create_test_image(tmp_path / "opera.jpg", location=sydney)

        _, location = read_photo_metadata(path)
        assert location.latitude == pytest.approx(-33.8568, abs=1e-5)
        assert location.longitude == pytest.approx(151.2153, abs=1e-5)

    def test_photo_without_metadata(self, photo_dir: Path) -> None:
        provider = LocalPhotoProvider(photo_dir)
        assert asyncio.run(provider.fetch_location("no_metadata.jpg")) is None
        assert asyncio.run(provider.fetch_timestamp("no_metadata.jpg")) is None

    def test_unreadable_file(self, photo_dir: Path) -> None:
        (photo_dir / "broken.jpg").write_bytes(b"not really a jpeg")
        provider = LocalPhotoProvider(photo_dir)

        assert asyncio.run(provider.fetch_location("broken.jpg")) is None
        assert asyncio.run(provider.fetch_image("broken.jpg")) is None

    def test_fetch_image(self, photo_dir: Path) -> None:
        image = asyncio.run(LocalPhotoProvider(photo_dir).fetch_image("IMG_0000.jpg"))
        assert isinstance(image, Image.Image)
        assert image.size == (64, 64)


# =============================================================================
# JsonPlaceLookup Tests
# =============================================================================


class TestJsonPlaceLookup:
    """Tests for the JSON file place lookup."""

    def test_parse_flat_entry(self) -> None:
        place = parse_place({"id": "x", "name": "X", "types": ["cafe"], "lat": 1.0, "lng": 2.0})
        assert place.id == "x"
        assert place.category_tags == ["cafe"]
        assert place.location.latitude == 1.0

    def test_parse_nested_entry(self) -> None:
        place = parse_place(
            {"place_id": "y", "name": "Y", "category_tags": ["park"], "location": {"latitude": 3.0, "longitude": 4.0}}
        )
        assert place.id == "y"
        assert place.category_tags == ["park"]
        assert place.location.longitude == 4.0

    @pytest.mark.parametrize(
        "entry",
        [{"name": "No id", "lat": 0, "lng": 0}, {"id": "no-name", "lat": 0, "lng": 0}, {"id": "x", "name": "X"}],
    )
    def test_parse_invalid_entry(self, entry: dict) -> None:
        with pytest.raises(ValueError):
            parse_place(entry)

    def test_filters_by_radius(self, places_file: Path) -> None:
        lookup = JsonPlaceLookup(places_file, search_radius_meters=500)
        found = asyncio.run(lookup.fetch_candidates(LOUVRE))
        assert [p.id for p in found] == ["louvre", "cafe-marly"]

    def test_larger_radius(self, places_file: Path) -> None:
        lookup = JsonPlaceLookup(places_file, search_radius_meters=5000)
        assert len(asyncio.run(lookup.fetch_candidates(LOUVRE))) == 3

    def test_results_envelope_and_bad_entries(self, tmp_path: Path) -> None:
        path = tmp_path / "places.json"
        payload = {
            "results": [
                {"id": "ok", "name": "OK", "lat": LOUVRE.latitude, "lng": LOUVRE.longitude},
                {"id": "bad", "name": "Bad"},
                "not an object",
            ]
        }
        path.write_text(json.dumps(payload), encoding="utf-8")

        found = asyncio.run(JsonPlaceLookup(path).fetch_candidates(LOUVRE))
        assert [p.id for p in found] == ["ok"]

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "places.json"
        path.write_text("[{", encoding="utf-8")
        with pytest.raises(PlaceLookupError):
            asyncio.run(JsonPlaceLookup(path).fetch_candidates(LOUVRE))

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(PlaceLookupError):
            asyncio.run(JsonPlaceLookup(tmp_path / "missing.json").fetch_candidates(LOUVRE))

    def test_wrong_shape(self, tmp_path: Path) -> None:
        path = tmp_path / "places.json"
        path.write_text('"just a string"', encoding="utf-8")
        with pytest.raises(PlaceLookupError):
            asyncio.run(JsonPlaceLookup(path).fetch_candidates(LOUVRE))


# =============================================================================
# ColorHistogramEncoder Tests
# =============================================================================


class TestColorHistogramEncoder:
    """Tests for the model-free image encoder."""

    def test_vector_shape(self) -> None:
        vector = asyncio.run(ColorHistogramEncoder(bins=8).encode_image(Image.new("RGB", (10, 10), "red")))
        assert len(vector) == 24
        assert sum(v * v for v in vector) == pytest.approx(1.0)

    def test_same_colors_match(self) -> None:
        encoder = ColorHistogramEncoder()
        a = asyncio.run(encoder.encode_image(Image.new("RGB", (32, 32), "red")))
        b = asyncio.run(encoder.encode_image(Image.new("RGB", (80, 40), "red")))
        assert cosine_similarity(a, b) == pytest.approx(1.0)

    def test_different_colors_differ(self) -> None:
        encoder = ColorHistogramEncoder()
        red = asyncio.run(encoder.encode_image(Image.new("RGB", (32, 32), "red")))
        blue = asyncio.run(encoder.encode_image(Image.new("RGB", (32, 32), "blue")))
        assert cosine_similarity(red, blue) < 0.85

    def test_accepts_bytes(self) -> None:
        buffer = io.BytesIO()
        Image.new("RGB", (16, 16), "green").save(buffer, format="PNG")
        vector = asyncio.run(ColorHistogramEncoder().encode_image(buffer.getvalue()))
        assert len(vector) == 48

    def test_rejects_garbage(self) -> None:
        encoder = ColorHistogramEncoder()
        with pytest.raises(EmbeddingError):
            asyncio.run(encoder.encode_image(b"garbage"))
        with pytest.raises(EmbeddingError):
            asyncio.run(encoder.encode_image("IMG_0001.jpg"))

    def test_text_unsupported(self) -> None:
        with pytest.raises(EmbeddingUnavailableError) as exc_info:
            asyncio.run(ColorHistogramEncoder().encode_text_batch(["museum"]))
        assert exc_info.value.reason == "text_unsupported"

    def test_invalid_bins(self) -> None:
        with pytest.raises(ValueError):
            ColorHistogramEncoder(bins=10)
