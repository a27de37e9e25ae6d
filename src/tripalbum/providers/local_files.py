"""Local photo directory provider.

Serves a folder of image files as a photo library. Timestamps and GPS
coordinates come from EXIF, read with Pillow. Files without a usable
timestamp or location are still listed but yield None for the missing value,
so the pipeline drops them during enrichment.

Asset ids are paths relative to the library root, using forward slashes.

Example:
    >>> provider = LocalPhotoProvider(Path("~/Pictures/Japan 2024"))
    >>> ids = await provider.list_asset_ids()
    >>> await provider.fetch_location(ids[0])
    GeoPoint(latitude=35.6586, longitude=139.7454)
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from PIL import Image, UnidentifiedImageError

from tripalbum.core.models import GeoPoint
from tripalbum.errors import AssetAccessError
from tripalbum.providers.base import AssetProvider

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".tif", ".tiff", ".webp", ".heic"}

# EXIF tag ids
EXIF_IFD = 0x8769
GPS_IFD = 0x8825
TAG_DATETIME = 306
TAG_DATETIME_ORIGINAL = 36867
TAG_DATETIME_DIGITIZED = 36868
GPS_LATITUDE_REF = 1
GPS_LATITUDE = 2
GPS_LONGITUDE_REF = 3
GPS_LONGITUDE = 4

EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"
MIN_VALID_DATE = datetime(1990, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class _PhotoMetadata:
    timestamp: datetime | None
    location: GeoPoint | None


def _to_float(value: Any) -> float:
    """EXIF rationals arrive as IFDRational or as (numerator, denominator)."""
    if isinstance(value, tuple) and len(value) == 2:
        return float(value[0]) / float(value[1])
    return float(value)


def _dms_to_decimal(dms: Any, ref: Any) -> float:
    """Convert (degrees, minutes, seconds) to decimal degrees.

    Southern and western references give negative values.
    """
    degrees, minutes, seconds = (_to_float(part) for part in dms)
    decimal = degrees + minutes / 60.0 + seconds / 3600.0
    if isinstance(ref, bytes):
        ref = ref.decode("ascii", errors="ignore")
    if str(ref).strip().upper() in ("S", "W"):
        decimal = -decimal
    return decimal


def _parse_exif_datetime(value: Any) -> datetime | None:
    """Parse "YYYY:MM:DD HH:MM:SS", treating it as UTC."""
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    if not isinstance(value, str):
        return None
    try:
        dt = datetime.strptime(value.strip("\x00 "), EXIF_DATETIME_FORMAT)
    except ValueError:
        logger.debug(f"Could not parse EXIF datetime: {value!r}")
        return None
    dt = dt.replace(tzinfo=timezone.utc)
    if dt < MIN_VALID_DATE or dt > datetime.now(timezone.utc):
        logger.debug(f"Ignoring implausible EXIF datetime: {dt}")
        return None
    return dt


def read_photo_metadata(path: Path) -> tuple[datetime | None, GeoPoint | None]:
    """Read the capture time and GPS position of one image file."""
    try:
        with Image.open(path) as img:
            exif = img.getexif()
            exif_ifd = exif.get_ifd(EXIF_IFD)
            gps_ifd = exif.get_ifd(GPS_IFD)
    except (UnidentifiedImageError, OSError) as e:
        logger.debug(f"Could not read EXIF from {path}: {e}")
        return None, None

    timestamp = None
    for source, tag in (
        (exif_ifd, TAG_DATETIME_ORIGINAL),
        (exif, TAG_DATETIME_ORIGINAL),
        (exif_ifd, TAG_DATETIME_DIGITIZED),
        (exif, TAG_DATETIME),
    ):
        if tag in source:
            timestamp = _parse_exif_datetime(source[tag])
            if timestamp is not None:
                break

    location = None
    if all(key in gps_ifd for key in (GPS_LATITUDE_REF, GPS_LATITUDE, GPS_LONGITUDE_REF, GPS_LONGITUDE)):
        try:
            location = GeoPoint(
                latitude=_dms_to_decimal(gps_ifd[GPS_LATITUDE], gps_ifd[GPS_LATITUDE_REF]),
                longitude=_dms_to_decimal(gps_ifd[GPS_LONGITUDE], gps_ifd[GPS_LONGITUDE_REF]),
            )
        except (TypeError, ValueError, ZeroDivisionError) as e:
            logger.warning(f"Error parsing GPS data in {path}: {e}")

    return timestamp, location


class LocalPhotoProvider(AssetProvider):
    """Photo library backed by a directory tree.

    Hidden files and directories are skipped. Metadata is read once per file
    and cached for the life of the provider.

    Args:
        root: Library directory.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root).expanduser()
        self._metadata: dict[str, _PhotoMetadata] = {}

    def _scan(self) -> list[str]:
        if not self.root.is_dir():
            raise AssetAccessError(f"Photo directory not found: {self.root}")

        asset_ids: list[str] = []
        try:
            for dirpath, dirnames, filenames in os.walk(self.root):
                dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
                for filename in sorted(filenames):
                    if filename.startswith("."):
                        continue
                    if Path(filename).suffix.lower() not in IMAGE_EXTENSIONS:
                        continue
                    relative = (Path(dirpath) / filename).relative_to(self.root)
                    asset_ids.append(relative.as_posix())
        except PermissionError as e:
            raise AssetAccessError(f"Permission denied reading {self.root}", original_error=e) from e
        return asset_ids

    def _path(self, asset_id: str) -> Path:
        return self.root / asset_id

    def _load_metadata(self, asset_id: str) -> _PhotoMetadata:
        if asset_id not in self._metadata:
            timestamp, location = read_photo_metadata(self._path(asset_id))
            self._metadata[asset_id] = _PhotoMetadata(timestamp=timestamp, location=location)
        return self._metadata[asset_id]

    def _load_image(self, asset_id: str) -> Image.Image | None:
        try:
            with Image.open(self._path(asset_id)) as img:
                img.load()
                return img.copy()
        except (UnidentifiedImageError, OSError) as e:
            logger.debug(f"Could not load image {asset_id}: {e}")
            return None

    async def list_asset_ids(self) -> list[str]:
        asset_ids = await asyncio.to_thread(self._scan)
        logger.info(f"Found {len(asset_ids)} images in {self.root}")
        return asset_ids

    async def fetch_image(self, asset_id: str) -> Image.Image | None:
        return await asyncio.to_thread(self._load_image, asset_id)

    async def fetch_location(self, asset_id: str) -> GeoPoint | None:
        metadata = await asyncio.to_thread(self._load_metadata, asset_id)
        return metadata.location

    async def fetch_timestamp(self, asset_id: str) -> datetime | None:
        metadata = await asyncio.to_thread(self._load_metadata, asset_id)
        return metadata.timestamp
