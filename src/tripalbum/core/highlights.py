"""Highlight clustering.

Within one visit, photos that look alike are grouped into highlights. Each
open group is represented by its first member's embedding. A photo joins the
most similar group when that similarity is above the threshold, otherwise it
starts a new group. Groups of two or more become highlights; single photos
become optional photos.
"""

from __future__ import annotations

import logging

from tripalbum.core.models import Highlight, PhotoAsset
from tripalbum.core.similarity import best_match

logger = logging.getLogger(__name__)


class HighlightClusterer:
    """Group visually similar photos of one visit.

    Args:
        similarity_threshold: Cosine similarity a photo must exceed to join a group.
    """

    def __init__(self, similarity_threshold: float = 0.85) -> None:
        self.similarity_threshold = similarity_threshold

    def cluster(self, assets: list[PhotoAsset]) -> tuple[list[Highlight], list[str]]:
        """Split ``assets`` into highlights and optional photo ids.

        Photos without an embedding are skipped. Optional ids are sorted by
        timestamp, oldest first.

        Returns:
            Tuple of (highlights, optional asset ids).
        """
        embedded = [asset for asset in assets if asset.embedding]
        skipped = len(assets) - len(embedded)
        if skipped:
            logger.debug(f"Skipping {skipped} photos without embeddings")

        groups: list[list[PhotoAsset]] = []
        representatives: list[list[float]] = []

        for asset in embedded:
            index, similarity = best_match(asset.embedding, representatives)
            if index >= 0 and similarity > self.similarity_threshold:
                groups[index].append(asset)
            else:
                groups.append([asset])
                representatives.append(asset.embedding)

        highlights: list[Highlight] = []
        singles: list[PhotoAsset] = []
        for group in groups:
            if len(group) >= 2:
                highlights.append(
                    Highlight(
                        representative_asset_id=group[0].id,
                        asset_ids=[asset.id for asset in group],
                    )
                )
            else:
                singles.append(group[0])

        singles.sort(key=lambda asset: asset.timestamp)
        return highlights, [asset.id for asset in singles]
