"""Album structure building.

Turns named visit clusters into the final album tree. Visits are bucketed by
the calendar date they started on, each visit becomes a Moment with its
highlights, and the album gets a title from the best-scoring place names.

Example:
    >>> builder = AlbumStructureBuilder(HighlightClusterer(0.85))
    >>> album = builder.build(named_clusters)
    >>> album.title
    'Louvre Museum & Eiffel Tower'
"""

from __future__ import annotations

import logging
from collections import defaultdict

from tripalbum.core.highlights import HighlightClusterer
from tripalbum.core.models import Day, Moment, POICandidate, TripAlbum
from tripalbum.core.moments import VisitCluster

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
TIME_LABEL_FORMAT = "%H:%M"

GENERIC_ALBUM_TITLE = "A Memorable Trip"
SUMMARY_MOMENT_COUNT = 3
SUMMARY_SUFFIX = " & more"


def summarize_day(moments: list[Moment]) -> str:
    """First three moment names joined by commas, always followed by " & more"."""
    names = [moment.name for moment in moments[:SUMMARY_MOMENT_COUNT]]
    return ", ".join(names) + SUMMARY_SUFFIX


def generate_album_title(days: list[Day]) -> str:
    """Title an album after its two best-scoring distinct place names.

    All place candidates of all moments are sorted by score, highest first,
    and the first two distinct names are used. Without any candidate the
    title falls back to the first date.

    Args:
        days: Album days in chronological order.

    Returns:
        ``"A & B"``, ``"A"``, ``"Trip of {date}"``, ``"Trip from {first date}"``,
        or a generic title when there are no days.
    """
    candidates = [candidate for day in days for moment in day.moments for candidate in moment.poi_candidates]
    candidates.sort(key=lambda candidate: candidate.score, reverse=True)

    names: list[str] = []
    for candidate in candidates:
        if candidate.name not in names:
            names.append(candidate.name)
        if len(names) >= 2:
            break

    if not names:
        if not days:
            return GENERIC_ALBUM_TITLE
        first_date, last_date = days[0].date, days[-1].date
        if first_date == last_date:
            return f"Trip of {first_date}"
        return f"Trip from {first_date}"
    if len(names) == 1:
        return names[0]
    return f"{names[0]} & {names[1]}"


class AlbumStructureBuilder:
    """Assemble named visits into Days and a TripAlbum.

    Args:
        highlight_clusterer: Used to split each visit's photos into highlights.
    """

    def __init__(self, highlight_clusterer: HighlightClusterer) -> None:
        self.highlight_clusterer = highlight_clusterer

    def build_moment(self, cluster: VisitCluster) -> Moment | None:
        """Build a Moment from one named visit.

        Returns None when the visit has no name, no cover photo, or no photo
        with an embedding.
        """
        cover = cluster.cover_asset
        if cluster.identified_name is None or cover is None:
            return None

        highlights, optional_ids = self.highlight_clusterer.cluster(cluster.assets)
        if not highlights and not optional_ids:
            logger.debug(f"Dropping visit at {cluster.start_time.isoformat()}: no embedded photos")
            return None

        return Moment(
            name=cluster.identified_name,
            time_label=cluster.start_time.strftime(TIME_LABEL_FORMAT),
            representative_asset_id=cover.id,
            highlights=highlights,
            optional_asset_ids=optional_ids,
            poi_candidates=[POICandidate.from_ranked(ranked) for ranked in cluster.ranked_candidates],
        )

    def build_days(self, clusters: list[VisitCluster]) -> list[Day]:
        by_date: dict[str, list[VisitCluster]] = defaultdict(list)
        for cluster in clusters:
            by_date[cluster.start_time.strftime(DATE_FORMAT)].append(cluster)

        days: list[Day] = []
        for date_key in sorted(by_date):
            moments = [moment for moment in map(self.build_moment, by_date[date_key]) if moment is not None]
            if not moments:
                continue
            days.append(
                Day(
                    date=date_key,
                    cover_asset_id=moments[0].representative_asset_id,
                    summary=summarize_day(moments),
                    moments=moments,
                )
            )
        return days

    def build(self, clusters: list[VisitCluster]) -> TripAlbum | None:
        """Build the album, or return None when no Day survives."""
        days = self.build_days(clusters)
        if not days:
            return None
        return TripAlbum(title=generate_album_title(days), days=days)
