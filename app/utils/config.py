"""
Configuration management for the Retrieve Monitor.

Uses pydantic-settings to load configuration from environment variables
and .env files.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Folder Configuration
    input_folder: Path = Path("/var/lib/retrieve-monitor/input")
    output_folder: Path = Path("/var/lib/retrieve-monitor/output")
    processed_folder: Path = Path("/var/lib/retrieve-monitor/processed")
    logging_folder: Path = Path("/var/lib/retrieve-monitor/logs")
    ingest_folder: Path = Path("/var/lib/retrieve/ingest")

    # Input Configuration
    input_filename: str = "index.csv"
    input_encoding: str = "utf-8-sig"
    delimiter: str = ","

    # Output Configuration
    document_extension: str = "xml"
    root_element: str = "Envelope"
    ingest_prefix_length: int = 36  # width of an envelope id (UUID)

    # Run log Configuration
    event_log_prefix: str = "csv-to-many-xml-log"
    error_log_prefix: str = "ProcessingErrors"

    # Watch Configuration
    arming_delay: float = 1.0  # seconds
    worker_poll_interval: float = 1.0  # seconds

    # Liveness Configuration
    health_check_interval: float = 10.0  # seconds
    watchdog_timeout: float = 30.0  # seconds
    alert_webhook_url: Optional[str] = None

    # API Configuration
    log_level: str = "INFO"
    health_api_enabled: bool = False
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    api_title: str = "Retrieve Monitor"
    api_version: str = "1.0.0"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def get_folders(self) -> list[Path]:
        """All folders the monitor reads from or writes to."""
        return [
            self.input_folder,
            self.output_folder,
            self.processed_folder,
            self.logging_folder,
            self.ingest_folder,
        ]

    def document_name(self, record_id: str, suffix: int) -> str:
        """File name of the document for ``record_id`` and its duplicate suffix."""
        if suffix > 0:
            return f"{record_id}_{suffix}.{self.document_extension}"
        return f"{record_id}.{self.document_extension}"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
