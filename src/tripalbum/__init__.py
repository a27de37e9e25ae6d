"""Trip Album - turn geotagged photos into structured trip albums.

Photos are split into trips, grouped into visits ("moments"), each visit is
named after the place it happened at, and similar shots are grouped into
highlights:

    TripAlbum -> Day -> Moment -> Highlight
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
