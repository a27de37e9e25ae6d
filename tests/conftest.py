"""Central Pytest Fixtures for Trip Album.

Fixtures included:
- Environment: isolated_home (HOME, cwd and TRIPALBUM_* variables isolated)
- Photo libraries: photo_dir (JPEG files with EXIF time and GPS), places_file
- Stores: album_cache
- Data: sample_album (a small built album)
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Iterator

import pytest
from fakes import LOUVRE, create_test_image, make_asset, offset, unit

from tripalbum.cache import AlbumCache
from tripalbum.config import reset_config
from tripalbum.core.album import AlbumStructureBuilder
from tripalbum.core.highlights import HighlightClusterer
from tripalbum.core.models import PlaceCandidate, RankedPlaceCandidate, TripAlbum
from tripalbum.core.moments import MomentClusterer
from tripalbum.core.results import PlaceIdentification, PlaceStatus

# =============================================================================
# Environment
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Keep config files, caches, and env vars of the real user out of tests."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    for name in list(os.environ):
        if name.upper().startswith("TRIPALBUM_"):
            monkeypatch.delenv(name, raising=False)
    reset_config()
    yield home
    reset_config()

    # The CLI installs its own handlers; give caplog the package logger back.
    package_logger = logging.getLogger("tripalbum")
    package_logger.handlers = []
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


# =============================================================================
# Photo Libraries
# =============================================================================


@pytest.fixture
def photo_dir(tmp_path: Path) -> Path:
    """Three red photos at the Louvre ten minutes apart, plus files to ignore."""
    root = tmp_path / "photos"
    for index in range(3):
        create_test_image(
            root / f"IMG_{index:04d}.jpg",
            color="red",
            exif_datetime=datetime(2023, 6, 15, 10, index * 10, 0),
            location=offset(LOUVRE, north_m=5 * index),
        )
    create_test_image(root / "no_metadata.jpg", color="blue")
    create_test_image(root / ".hidden.jpg", color="green")
    (root / "notes.txt").write_text("not a photo", encoding="utf-8")
    return root


@pytest.fixture
def places_file(tmp_path: Path) -> Path:
    path = tmp_path / "places.json"
    places = [
        {
            "id": "louvre",
            "name": "Louvre Museum",
            "types": ["museum", "tourist_attraction", "point_of_interest"],
            "lat": LOUVRE.latitude,
            "lng": LOUVRE.longitude,
        },
        {
            "place_id": "cafe-marly",
            "name": "Café Marly",
            "types": ["cafe", "restaurant"],
            "location": {"lat": LOUVRE.latitude + 0.0010, "lng": LOUVRE.longitude},
        },
        {
            "id": "eiffel",
            "name": "Eiffel Tower",
            "types": ["tourist_attraction"],
            "lat": 48.8584,
            "lng": 2.2945,
        },
    ]
    path.write_text(json.dumps(places, indent=2), encoding="utf-8")
    return path


# =============================================================================
# Stores and Data
# =============================================================================


@pytest.fixture
def album_cache(tmp_path: Path) -> AlbumCache:
    return AlbumCache(tmp_path / "cache")


@pytest.fixture
def sample_album() -> TripAlbum:
    """Two days: a Louvre visit with a highlight, then a visit with no place."""
    assets = [
        make_asset("a1", LOUVRE, 0, unit(0)),
        make_asset("a2", LOUVRE, 5, unit(5)),
        make_asset("a3", LOUVRE, 10, unit(90)),
        make_asset("b1", offset(LOUVRE, north_m=3000), 60 * 24, unit(0)),
    ]
    clusters = MomentClusterer().cluster(assets)
    louvre = PlaceCandidate(id="louvre", name="Louvre Museum", category_tags=["museum"], location=LOUVRE)
    ranked = RankedPlaceCandidate(place=louvre, distance_meters=0.0, embedding_score=0.5, final_score=1.14)
    named = [
        clusters[0].with_place(PlaceIdentification(PlaceStatus.IDENTIFIED, "Louvre Museum", (ranked,))),
        clusters[1].with_place(PlaceIdentification.no_candidates()),
    ]
    album = AlbumStructureBuilder(HighlightClusterer(0.85)).build(named)
    assert album is not None
    return album
