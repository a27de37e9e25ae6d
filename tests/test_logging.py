"""Tests for logging setup and the error hierarchy."""

import logging
from pathlib import Path

import pytest
from rich.logging import RichHandler

from tripalbum.errors import (
    AssetAccessError,
    EmbeddingError,
    EmbeddingUnavailableError,
    PipelineError,
    TripAlbumError,
)
from tripalbum.utils.logging import LogContext, get_logger, log_context, setup_logging


class TestSetupLogging:
    """Tests for setup_logging and get_logger."""

    def test_installs_rich_handler(self) -> None:
        logger = setup_logging("WARNING")

        assert logger.name == "tripalbum"
        assert logger.level == logging.WARNING
        assert logger.propagate is False
        assert [type(h) for h in logger.handlers] == [RichHandler]

    def test_repeat_calls_replace_handlers(self) -> None:
        setup_logging("INFO")
        logger = setup_logging("INFO")
        assert len(logger.handlers) == 1

    def test_log_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "tripalbum.log"
        logger = setup_logging("DEBUG", log_file=log_file)

        get_logger("tripalbum.core.trips").info("Detected 2 trips")
        for handler in logger.handlers:
            handler.flush()

        assert "Detected 2 trips" in log_file.read_text(encoding="utf-8")

    def test_quiets_third_party(self) -> None:
        setup_logging("DEBUG")
        assert logging.getLogger("PIL").level == logging.WARNING

    def test_get_logger_namespaces(self) -> None:
        assert get_logger("tripalbum.cache").name == "tripalbum.cache"
        assert get_logger("plugins").name == "tripalbum.plugins"


class TestLogContext:
    """Tests for the timing context."""

    def test_logs_completion(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="tripalbum"):
            with LogContext("Ranking places") as ctx:
                pass
        assert ctx.elapsed >= 0
        assert "Ranking places completed" in caplog.text

    def test_logs_failure(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="tripalbum"):
            with pytest.raises(ValueError):
                with log_context("Reading photos"):
                    raise ValueError("bad exif")
        assert "Reading photos failed" in caplog.text


class TestErrors:
    """Tests for the exception hierarchy."""

    def test_unavailable_is_embedding_error(self) -> None:
        error = EmbeddingUnavailableError("disabled")
        assert isinstance(error, EmbeddingError)
        assert isinstance(error, TripAlbumError)
        assert error.reason == "disabled"
        assert str(error) == "Embeddings are disabled"

    def test_custom_message(self) -> None:
        assert str(EmbeddingUnavailableError("model_error", "CUDA out of memory")) == "CUDA out of memory"

    def test_original_error_kept(self) -> None:
        cause = PermissionError("denied")
        error = AssetAccessError("Permission denied reading photos", original_error=cause)
        assert error.original_error is cause
        assert error.details == {}

    def test_pipeline_error_stage(self) -> None:
        error = PipelineError("No distinct trips", stage="trips", partial_result=[])
        assert error.stage == "trips"
        assert error.details == {"stage": "trips"}
        assert error.partial_result == []
