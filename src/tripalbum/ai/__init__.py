"""Embedding models and place ranking."""

from tripalbum.ai.embeddings import EmbeddingProvider
from tripalbum.ai.histogram import ColorHistogramEncoder
from tripalbum.ai.ranking import PlaceIdentifier, PlaceRanker

__all__ = ["ColorHistogramEncoder", "EmbeddingProvider", "PlaceIdentifier", "PlaceRanker"]
