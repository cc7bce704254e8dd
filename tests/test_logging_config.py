# tests/test_logging_config.py

"""Tests for the per-run logging configuration."""

import logging
import tempfile
import unittest
from pathlib import Path

from pharma_catalog.config.logging_config import setup_logging
from pharma_catalog.config.settings import Settings


class TestLoggingConfig(unittest.TestCase):
    """Verify logging setup behaviour."""

    def setUp(self) -> None:
        """Clean up the pharma_catalog logger before each test."""
        self.root_logger = logging.getLogger("pharma_catalog")
        self._clear_handlers()
        self.addCleanup(self._clear_handlers)
        self.logs_dir = Path(tempfile.mkdtemp()) / "logs"

    def _clear_handlers(self) -> None:
        for handler in list(self.root_logger.handlers):
            handler.close()
            self.root_logger.removeHandler(handler)

    def _flush(self) -> None:
        for handler in self.root_logger.handlers:
            handler.flush()

    def test_setup_creates_log_file(self) -> None:
        """setup_logging returns a path that exists on disk."""
        log_path = setup_logging(self.logs_dir)
        self.assertTrue(log_path.exists())

    def test_log_file_naming_convention(self) -> None:
        """Log file name matches run_YYYYMMDD_HHMMSS.log format."""
        log_path = setup_logging(self.logs_dir)
        self.assertRegex(log_path.name, r"^run_\d{8}_\d{6}\.log$")

    def test_log_file_inside_logs_dir(self) -> None:
        log_path = setup_logging(self.logs_dir)
        self.assertEqual(log_path.parent, self.logs_dir)

    def test_file_handlers_level_debug(self) -> None:
        """The run file and every site file log at DEBUG."""
        setup_logging(self.logs_dir)
        file_handlers = [
            h
            for h in self.root_logger.handlers
            if isinstance(h, logging.FileHandler)
        ]
        self.assertEqual(len(file_handlers), 1 + len(Settings.AVAILABLE_SITES))
        for handler in file_handlers:
            self.assertEqual(handler.level, logging.DEBUG)

    def test_console_handler_level_warning(self) -> None:
        """Console handler should be set to WARNING level."""
        setup_logging(self.logs_dir)
        stream_handlers: list[logging.Handler] = [
            h
            for h in self.root_logger.handlers
            if isinstance(h, logging.StreamHandler)
            and not isinstance(h, logging.FileHandler)
        ]
        self.assertEqual(len(stream_handlers), 1)
        self.assertEqual(stream_handlers[0].level, logging.WARNING)

    def test_repeated_calls_no_duplicate_handlers(self) -> None:
        """Calling setup_logging twice does not duplicate handlers."""
        setup_logging(self.logs_dir)
        count_before = len(self.root_logger.handlers)
        setup_logging(self.logs_dir)
        self.assertEqual(count_before, len(self.root_logger.handlers))

    def test_site_loggers_reach_the_run_file(self) -> None:
        """Per-site child loggers propagate into the run log."""
        log_path = setup_logging(self.logs_dir)
        logging.getLogger("pharma_catalog.ahumada").info("hello tiles")
        self._flush()
        self.assertIn("hello tiles", log_path.read_text(encoding="utf-8"))

    def test_site_file_holds_only_that_site(self) -> None:
        log_path = setup_logging(self.logs_dir)
        logging.getLogger("pharma_catalog.ahumada.pagination").info("page 2")
        logging.getLogger("pharma_catalog.salcobrand").info("page size 96")
        logging.getLogger("pharma_catalog.orchestrator").info("all done")
        self._flush()

        ahumada_log = self.logs_dir / log_path.name.replace(".log", "_ahumada.log")
        text = ahumada_log.read_text(encoding="utf-8")
        self.assertIn("page 2", text)
        self.assertNotIn("page size 96", text)
        self.assertNotIn("all done", text)
        self.assertIn("all done", log_path.read_text(encoding="utf-8"))

    def test_site_files_created_only_when_used(self) -> None:
        log_path = setup_logging(self.logs_dir)
        logging.getLogger("pharma_catalog.cruz_verde").info("48 per page")
        self._flush()
        site_logs = [p.name for p in self.logs_dir.glob(f"{log_path.stem}_*.log")]
        self.assertEqual(
            site_logs, [log_path.name.replace(".log", "_cruz_verde.log")],
        )


if __name__ == "__main__":
    unittest.main()
