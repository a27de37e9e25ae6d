"""Color histogram image encoder.

A lightweight :class:`EmbeddingProvider` that needs no model download. Each
image becomes an L2-normalized RGB histogram, which is good enough to group
near-duplicate shots into highlights. It has no text tower, so place ranking
falls back to distance and category heuristics when it is used.
"""

from __future__ import annotations

import asyncio
import io
import logging
from typing import Any

import numpy as np
from PIL import Image, UnidentifiedImageError

from tripalbum.ai.embeddings import EmbeddingProvider
from tripalbum.errors import EmbeddingError, EmbeddingUnavailableError

logger = logging.getLogger(__name__)

# Images are downscaled before counting; the histogram shape barely changes.
THUMBNAIL_SIZE = (256, 256)


class ColorHistogramEncoder(EmbeddingProvider):
    """Encode images as per-channel color histograms.

    Args:
        bins: Bins per color channel. The vector length is ``3 * bins``.
    """

    name = "color-histogram"

    def __init__(self, bins: int = 16) -> None:
        if bins < 1 or 256 % bins != 0:
            raise ValueError("bins must divide 256")
        self.bins = bins

    def _encode(self, image: Any) -> list[float]:
        if isinstance(image, (bytes, bytearray)):
            try:
                image = Image.open(io.BytesIO(image))
            except (UnidentifiedImageError, OSError) as e:
                raise EmbeddingError("Could not decode image bytes", original_error=e) from e
        if not isinstance(image, Image.Image):
            raise EmbeddingError(f"Unsupported image type: {type(image).__name__}")

        rgb = image.convert("RGB")
        rgb.thumbnail(THUMBNAIL_SIZE)

        # PIL returns 256 counts per channel, R then G then B.
        counts = np.asarray(rgb.histogram(), dtype=np.float64).reshape(3, 256)
        binned = counts.reshape(3, self.bins, 256 // self.bins).sum(axis=2).ravel()

        norm = np.linalg.norm(binned)
        if norm == 0.0:
            raise EmbeddingError("Image has no pixels")
        return (binned / norm).tolist()

    async def encode_image(self, image: Any) -> list[float]:
        return await asyncio.to_thread(self._encode, image)

    async def encode_text_batch(self, prompts: list[str]) -> list[list[float]]:
        raise EmbeddingUnavailableError("text_unsupported")
