"""
Tests for logger functionality.
"""

import pytest
from pathlib import Path
from twget.logger import StructuredLogger, get_logger, reset_logger


class TestStructuredLogger:
    """Test structured logging functionality."""

    def test_logger_creation(self, tmp_path):
        """Logger should be created with default settings."""
        logger = StructuredLogger(
            name="test",
            level="INFO",
            log_dir=tmp_path,
            enable_console=False,
        )

        assert logger.logger.name == "test"
        assert logger.metrics["media_downloaded"] == 0

    def test_log_methods(self, tmp_path):
        """All log level methods should work."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.debug("Debug message")
        logger.info("Info message")
        logger.warning("Warning message")
        logger.error("Error message")
        logger.critical("Critical message")

    def test_log_with_context(self, tmp_path):
        """Context is appended to the message as JSON."""
        logger = StructuredLogger(
            name="test-context",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.info("searching", query="from:alice filter:media", path=Path("/tmp/x"))

        content = next(tmp_path.glob("*.log")).read_text()
        assert 'searching | Context: {"query": "from:alice filter:media", "path": "/tmp/x"}' in content

    def test_metrics_tracking(self, quiet_logger):
        """Metrics should be tracked correctly."""
        quiet_logger.record_account()
        quiet_logger.record_media()
        quiet_logger.record_media()
        quiet_logger.record_download(1024)
        quiet_logger.record_skip()
        quiet_logger.record_patch()
        quiet_logger.record_retweet()
        quiet_logger.record_error("TransferError")
        quiet_logger.record_error("TransferError")

        metrics = quiet_logger.get_metrics()

        assert metrics["accounts_processed"] == 1
        assert metrics["media_seen"] == 2
        assert metrics["media_downloaded"] == 1
        assert metrics["bytes_downloaded"] == 1024
        assert metrics["media_skipped"] == 1
        assert metrics["videos_patched"] == 1
        assert metrics["retweets_filtered"] == 1
        assert metrics["errors_by_type"] == {"TransferError": 2}

    def test_get_metrics_returns_copy(self, quiet_logger):
        quiet_logger.get_metrics()["errors_by_type"]["X"] = 1
        assert quiet_logger.metrics["errors_by_type"] == {}

    def test_log_file_creation(self, tmp_path):
        """Log file should be created in specified directory."""
        logger = StructuredLogger(
            name="test-file",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.info("Test message")

        log_files = list(tmp_path.glob("twget_*.log"))
        assert len(log_files) == 1
        assert "Test message" in log_files[0].read_text()

    def test_metrics_summary(self, tmp_path):
        logger = StructuredLogger(name="test-summary", log_dir=tmp_path, enable_console=False)
        logger.record_download(10)
        logger.record_error("ContainerFormatError")

        logger.log_metrics_summary()

        content = next(tmp_path.glob("*.log")).read_text()
        assert "Media: 1 downloaded, 0 already archived, 0 seen" in content
        assert "ContainerFormatError: 1" in content


class TestGlobalLogger:
    """Test global logger singleton."""

    def test_get_logger_singleton(self, tmp_path):
        """get_logger should return same instance."""
        reset_logger()

        logger1 = get_logger(log_dir=tmp_path, enable_console=False)
        logger2 = get_logger()

        assert logger1 is logger2

    def test_reset_logger(self, tmp_path):
        """reset_logger should create new instance."""
        reset_logger()

        logger1 = get_logger(log_dir=tmp_path, enable_console=False)
        logger1.record_download(5)

        reset_logger()

        logger2 = get_logger(log_dir=tmp_path, enable_console=False)

        assert logger2.metrics["media_downloaded"] == 0
