"""Application settings loader from YAML configuration."""
import os
import yaml
from pathlib import Path
from typing import Any, Dict, Optional
from dataclasses import dataclass

from spendscan.utils.exceptions import ConfigError

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent.parent / "config.yaml"


@dataclass
class AppSettings:
    """Application-wide settings loaded from config.yaml."""

    # App info
    app_name: str = "SpendScan"
    app_version: str = "0.1.0"

    # Logging
    log_level: str = "INFO"
    log_max_file_size_mb: int = 10
    log_backup_count: int = 30

    # Parsing
    line_shape: str = "free_text"

    # LLM
    llm_model_name: str = "gemini-2.5-flash-lite"
    llm_max_concurrency: int = 2
    llm_temperature: float = 0.0

    # Merchant cache
    merchant_cache_fuzzy_threshold: int = 0

    # Retry
    retry_max_retries: int = 3
    retry_initial_delay_seconds: float = 1.0
    retry_backoff_factor: float = 2.0

    # Paths (relative to the data directory)
    database_file: str = "spendscan.db"
    merchant_cache_file: str = "merchant_cache.db"

    @property
    def gemini_api_key(self) -> Optional[str]:
        return os.getenv("GEMINI_API_KEY")

    @classmethod
    def load(cls, config_path: Path = None) -> "AppSettings":
        """Load settings from YAML file."""
        if config_path is None:
            if not DEFAULT_CONFIG_PATH.exists():
                return cls()
            config_path = DEFAULT_CONFIG_PATH

        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid configuration file {config_path}: {e}")

        return cls.from_dict(config)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "AppSettings":
        """Build settings from a parsed YAML mapping; absent keys keep their defaults."""
        defaults = cls()

        def section(name: str) -> Dict[str, Any]:
            value = config.get(name) or {}
            if not isinstance(value, dict):
                raise ConfigError(f"Config section '{name}' must be a mapping")
            return value

        app = section("app")
        logging_cfg = section("logging")
        parsing = section("parsing")
        llm = section("llm")
        cache = section("merchant_cache")
        retry = section("retry")
        paths = section("paths")

        settings = cls(
            app_name=app.get("name", defaults.app_name),
            app_version=str(app.get("version", defaults.app_version)),
            log_level=logging_cfg.get("level", defaults.log_level),
            log_max_file_size_mb=logging_cfg.get("max_file_size_mb", defaults.log_max_file_size_mb),
            log_backup_count=logging_cfg.get("backup_count", defaults.log_backup_count),
            line_shape=parsing.get("line_shape", defaults.line_shape),
            llm_model_name=llm.get("model_name", defaults.llm_model_name),
            llm_max_concurrency=llm.get("max_concurrency", defaults.llm_max_concurrency),
            llm_temperature=llm.get("temperature", defaults.llm_temperature),
            merchant_cache_fuzzy_threshold=cache.get(
                "fuzzy_match_threshold", defaults.merchant_cache_fuzzy_threshold
            ),
            retry_max_retries=retry.get("max_retries", defaults.retry_max_retries),
            retry_initial_delay_seconds=retry.get(
                "initial_delay_seconds", defaults.retry_initial_delay_seconds
            ),
            retry_backoff_factor=retry.get("backoff_factor", defaults.retry_backoff_factor),
            database_file=paths.get("database_file", defaults.database_file),
            merchant_cache_file=paths.get("merchant_cache_file", defaults.merchant_cache_file),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        """Raise ConfigError on out-of-range values."""
        if self.line_shape not in ("free_text", "bank_csv"):
            raise ConfigError(f"Unknown line shape: {self.line_shape}")
        if self.llm_max_concurrency < 1:
            raise ConfigError("LLM max concurrency must be at least 1")
        if self.retry_max_retries < 1:
            raise ConfigError("Retry max retries must be at least 1")
        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigError(f"Unknown log level: {self.log_level}")
        if self.merchant_cache_fuzzy_threshold < 0:
            raise ConfigError("Fuzzy match threshold cannot be negative")


# Global settings instance
_settings: AppSettings = None


def get_settings() -> AppSettings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = AppSettings.load()
    return _settings
