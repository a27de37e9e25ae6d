"""Exception hierarchy for Trip Album.

Collaborator failures are raised as these exceptions at the provider
boundary. The pipeline catches them per photo or per visit and turns them into
degraded data, so only cancellation ever escapes a pipeline run.

Example:
    >>> try:
    ...     vectors = await embeddings.encode_text_batch(["museum"])
    ... except EmbeddingUnavailableError as e:
    ...     if e.reason == "text_unsupported":
    ...         vectors = []
"""

from __future__ import annotations

from typing import Any, Literal

EmbeddingUnavailableReason = Literal["not_loaded", "disabled", "text_unsupported", "model_error"]


class TripAlbumError(Exception):
    """Base exception for all Trip Album errors.

    Attributes:
        message: Human-readable error description (safe to log).
        details: Additional error context.
        original_error: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def __str__(self) -> str:
        return self.message


# =============================================================================
# Embeddings
# =============================================================================


class EmbeddingError(TripAlbumError):
    """An embedding could not be computed for one input."""

    pass


class EmbeddingUnavailableError(EmbeddingError):
    """The embedding provider cannot serve requests at all.

    Signals that callers should fall back to distance-only ranking and skip
    highlight clustering for the affected photos.

    Attributes:
        reason: Why embeddings are unavailable.
    """

    default_messages = {
        "not_loaded": "Embedding model is not loaded",
        "disabled": "Embeddings are disabled",
        "text_unsupported": "Embedding provider cannot encode text",
        "model_error": "Embedding model failed",
    }

    def __init__(self, reason: EmbeddingUnavailableReason, message: str | None = None) -> None:
        self.reason = reason
        super().__init__(message or self.default_messages.get(reason, "Embeddings unavailable"))


# =============================================================================
# Providers
# =============================================================================


class PlaceLookupError(TripAlbumError):
    """The place lookup failed or timed out."""

    pass


class AssetAccessError(TripAlbumError):
    """The photo library cannot be read (missing, or permission denied)."""

    pass


class PipelineError(TripAlbumError):
    """Raised by strict pipeline helpers when a run produced nothing.

    Attributes:
        stage: Pipeline stage where the run stopped.
        partial_result: Whatever the run produced before stopping.
    """

    def __init__(self, message: str, stage: str = "", partial_result: Any = None) -> None:
        super().__init__(message, details={"stage": stage})
        self.stage = stage
        self.partial_result = partial_result
