"""Photo library and place lookup collaborators."""

from tripalbum.providers.base import AssetProvider, PlaceLookupProvider, ProgressCallback
from tripalbum.providers.local_files import LocalPhotoProvider
from tripalbum.providers.places_json import JsonPlaceLookup

__all__ = [
    "AssetProvider",
    "JsonPlaceLookup",
    "LocalPhotoProvider",
    "PlaceLookupProvider",
    "ProgressCallback",
]
