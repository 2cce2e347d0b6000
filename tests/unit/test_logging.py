"""
Unit tests for logging infrastructure.

Tests VCSLogger and the repository operation decorators.
"""

import tempfile
from pathlib import Path
from typing import Iterator, List

import pytest
from loguru import logger

from minivcs.logging import (
    VCSLogger,
    get_logger_instance,
    get_vcs_logger,
    initialize_logging,
    log_repository_operation,
    performance_monitor,
    track_repository_operation,
)


@pytest.fixture
def records() -> Iterator[List[dict]]:
    """Capture every record logged at DEBUG or above."""
    captured: List[dict] = []
    logger.add(lambda message: captured.append(message.record), level="DEBUG")
    yield captured


@pytest.fixture(autouse=True)
def reset_log_sinks() -> Iterator[None]:
    yield
    logger.remove()


class TestVCSLogger:
    """Tests for VCSLogger class."""

    def test_logger_initialization(self) -> None:
        """Test logger initialization."""
        with tempfile.TemporaryDirectory() as tmpdir:
            vcs_logger = VCSLogger(
                log_dir=Path(tmpdir),
                level="INFO",
                enable_file_logging=False,
            )
            assert vcs_logger.log_dir == Path(tmpdir)
            assert vcs_logger.level == "INFO"

    def test_file_logging_creates_log_directory(self) -> None:
        """Test that file logging creates the log directory and files."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_dir = Path(tmpdir) / "logs"
            assert not log_dir.exists()

            vcs_logger = VCSLogger(
                log_dir=log_dir,
                level="INFO",
                enable_file_logging=True,
                enable_console_logging=False,
            )
            vcs_logger.logger.info("hello")
            logger.remove()

            assert log_dir.exists()
            assert "hello" in (log_dir / "minivcs.log").read_text()

    def test_no_file_logging_leaves_directory_alone(self) -> None:
        """Test that console-only logging does not touch the filesystem."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_dir = Path(tmpdir) / "logs"

            VCSLogger(log_dir=log_dir, enable_file_logging=False)

            assert not log_dir.exists()

    def test_get_component_logger(self, records: List[dict]) -> None:
        """Test getting a component-specific logger."""
        vcs_logger = VCSLogger(enable_console_logging=False)
        logger.add(lambda message: records.append(message.record), level="DEBUG")

        vcs_logger.get_logger("merge").info("replaying")

        assert records[-1]["extra"]["component"] == "merge"


class TestModuleFunctions:
    """Tests for module-level logging helpers."""

    def test_initialize_logging_sets_global_instance(self) -> None:
        """Test that initialize_logging stores the configured logger."""
        vcs_logger = initialize_logging(level="ERROR", enable_console_logging=False)

        assert get_logger_instance() is vcs_logger
        assert vcs_logger.level == "ERROR"

    def test_log_repository_operation(self, records: List[dict]) -> None:
        """Test structured operation records."""
        log_repository_operation(get_vcs_logger("storage"), "commit", commit_hash="abc")

        record = records[-1]
        assert record["message"] == "Repository operation: commit"
        assert record["extra"]["component"] == "storage"
        assert record["extra"]["commit_hash"] == "abc"
        assert "timestamp" in record["extra"]


class TestTrackRepositoryOperation:
    """Tests for the track_repository_operation decorator."""

    def test_logs_start_and_completion(self, records: List[dict]) -> None:
        """Test that a successful call is logged twice and returns its value."""

        class Repo:
            @track_repository_operation("commit")
            def commit(self, message: str) -> str:
                return f"hash-of-{message}"

        assert Repo().commit("m1") == "hash-of-m1"

        operations = [r["extra"].get("operation") for r in records]
        assert operations == ["commit", "commit_complete"]
        assert records[0]["extra"]["arguments"] == {"message": "m1"}

    def test_reraises_and_logs_errors(self, records: List[dict]) -> None:
        """Test that failures are logged and propagated unchanged."""

        @track_repository_operation("checkout")
        def checkout(ref: str) -> None:
            raise KeyError(ref)

        with pytest.raises(KeyError):
            checkout("nowhere")

        error = records[-1]["extra"]
        assert error["operation"] == "checkout_error"
        assert error["error_type"] == "KeyError"
        assert error["success"] is False


class TestPerformanceMonitor:
    """Tests for the performance_monitor decorator."""

    def test_fast_call_logs_debug(self, records: List[dict]) -> None:
        """Test that a call under the threshold is logged at DEBUG."""

        @performance_monitor(threshold_ms=10_000)
        def quick() -> int:
            return 42

        assert quick() == 42
        assert records[-1]["level"].name == "DEBUG"
        assert records[-1]["extra"]["function"] == "quick"

    def test_slow_call_logs_warning(self, records: List[dict]) -> None:
        """Test that exceeding the threshold is a warning."""

        @performance_monitor(threshold_ms=0.0)
        def slow() -> None:
            sum(range(1000))

        slow()

        assert records[-1]["level"].name == "WARNING"
        assert records[-1]["extra"]["threshold_ms"] == 0.0

    def test_failure_is_propagated(self) -> None:
        """Test that exceptions pass through the monitor."""

        @performance_monitor()
        def broken() -> None:
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            broken()
