"""Centralized configuration using pydantic-settings."""

from typing import Literal

from pydantic_settings import BaseSettings

from src.exceptions import ConfigError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Google Cloud Storage (audio files and the index object)
    gcs_bucket: str = ""
    gcs_index_object: str = "index.xml"
    gcs_credentials_json: str = ""

    # Audio objects live under this prefix; root uploads get promoted into it
    files_prefix: str = "files/"
    promote_root_objects: bool = True

    # Serving
    base_url: str = "http://localhost:8080"
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    # Feed cache and request bounds
    cache_ttl_seconds: float = 60.0
    read_timeout_seconds: float = 10.0
    process_timeout_seconds: float = 55 * 60

    # Audio delivery: stream bytes through the service or redirect to GCS
    file_delivery: Literal["stream", "redirect"] = "stream"
    signed_url_ttl_seconds: int = 900

    # Channel metadata, only used to seed a brand-new index.xml
    podcast_title: str = ""
    podcast_description: str = ""
    podcast_link: str = ""
    podcast_image_url: str = ""
    podcast_author: str = ""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    def require_bucket(self) -> str:
        """Return the bucket name or fail startup when it is missing."""
        if not self.gcs_bucket:
            raise ConfigError("GCS_BUCKET not set")
        return self.gcs_bucket

    @property
    def seeds_channel(self) -> bool:
        """True when enough channel metadata is set to seed a new feed."""
        return bool(self.podcast_title)


settings = Settings()
