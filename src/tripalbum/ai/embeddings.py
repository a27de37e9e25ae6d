"""Embedding provider interface.

An embedding provider maps images and short text prompts into one shared
vector space, so an image can be compared with a place category such as
"art gallery" by cosine similarity.

Implementations signal "cannot serve at all" with
:class:`~tripalbum.errors.EmbeddingUnavailableError` and a failure on a single
input with :class:`~tripalbum.errors.EmbeddingError`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from tripalbum.errors import EmbeddingError, EmbeddingUnavailableError

__all__ = ["EmbeddingError", "EmbeddingProvider", "EmbeddingUnavailableError"]


class EmbeddingProvider(ABC):
    """Abstract base class for image/text embedding models."""

    #: Human-readable model name, used in logs.
    name: str = "embedding"

    @abstractmethod
    async def encode_image(self, image: Any) -> list[float]:
        """Encode one image into a vector.

        Args:
            image: Image object as returned by the asset provider.

        Raises:
            EmbeddingUnavailableError: The model cannot be used.
            EmbeddingError: This image could not be encoded.
        """

    @abstractmethod
    async def encode_text_batch(self, prompts: list[str]) -> list[list[float]]:
        """Encode prompts in one call.

        The result has one vector per prompt, in the same order.

        Raises:
            EmbeddingUnavailableError: Text encoding is not possible.
        """
