"""Logging infrastructure with run context."""
import logging
import os
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional


def get_data_dir() -> Path:
    """Return the SpendScan data directory ($SPENDSCAN_HOME or ~/.spendscan)."""
    override = os.getenv("SPENDSCAN_HOME")
    if override:
        return Path(override)
    return Path.home() / ".spendscan"


class RunContextFilter(logging.Filter):
    """Add run context to log records."""

    def __init__(self):
        super().__init__()
        self.run_id: Optional[str] = None

    def filter(self, record):
        """Add run_id to record."""
        record.run_id = self.run_id or "system"
        return True


class SpendScanLogger:
    """Centralized logging manager."""

    def __init__(self, log_level: str = "INFO", max_file_size_mb: int = 10, backup_count: int = 30):
        self.log_dir = get_data_dir() / "logs"
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.log_file = self.log_dir / "service.log"
        self.run_filter = RunContextFilter()

        self.logger = logging.getLogger("spendscan")
        self.logger.setLevel(getattr(logging, log_level.upper()))
        self.logger.propagate = False

        # Remove existing handlers
        self.logger.handlers.clear()

        file_handler = RotatingFileHandler(
            self.log_file,
            maxBytes=max_file_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)

        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] [run:%(run_id)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

        file_handler.setFormatter(formatter)
        console_handler.setFormatter(formatter)

        file_handler.addFilter(self.run_filter)
        console_handler.addFilter(self.run_filter)

        self.logger.addHandler(file_handler)
        self.logger.addHandler(console_handler)

    def set_run_context(self, run_id: Optional[str]):
        """Set current run context for logging."""
        self.run_filter.run_id = run_id

    def get_logger(self) -> logging.Logger:
        """Get the configured logger."""
        return self.logger


# Global logger instance
_logger_instance: Optional[SpendScanLogger] = None


def get_logger(log_level: str = "INFO") -> logging.Logger:
    """Get or create global logger instance."""
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = SpendScanLogger(log_level)
    return _logger_instance.get_logger()


def set_run_context(run_id: Optional[str]):
    """Set run context for logging."""
    global _logger_instance
    if _logger_instance:
        _logger_instance.set_run_context(run_id)


def configure_logger(log_level: str = "INFO", max_file_size_mb: int = 10, backup_count: int = 30) -> logging.Logger:
    """Rebuild the global logger's handlers from configured values."""
    global _logger_instance
    _logger_instance = SpendScanLogger(log_level, max_file_size_mb, backup_count)
    return _logger_instance.get_logger()
