from pathlib import Path
import logging

from croniter import croniter
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tvepg_sync.utils.timezone import validate_timezone_name, validate_utc_offset


logger = logging.getLogger(__name__)


class CustomSettings(BaseSettings):
    """Application settings loaded from environment variables.

    Validates configuration at startup to catch misconfiguration early.
    """

    stream_source_url: str = "https://iptv-org.github.io/iptv/countries/ch.m3u"
    guide_index_url: str = "https://tvepg.eu/de/switzerland"
    guide_channel_path: str = "/de/switzerland/c/"
    guide_source_name: str = "tvepg.eu"
    guide_generator_name: str = "tvepg-sync"
    guide_title_lang: str = "de"
    guide_utc_offset: str = "+0100"  # tvepg.eu lists Swiss local time
    guide_timezone: str = "Europe/Zurich"  # Anchors the guide's "today"

    playlist_output_path: str = "./output/swiss.m3u"
    guide_output_path: str = "./output/epg_swiss.xml"
    id_map_path: str | None = None  # Optional TSV with extra tvg-id -> slug entries

    index_fetch_timeout_sec: float = 30.0
    channel_fetch_timeout_sec: float = 15.0
    fetch_max_retries: int = 1
    courtesy_delay_sec: float = 0.3

    sync_cron: str = "0 5 * * *"  # Daily at 5 AM
    sync_misfire_grace_sec: int = 3600
    scheduler_enabled: bool = True

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("stream_source_url", "guide_index_url")
    @classmethod
    def validate_source_urls(cls, value: str, info) -> str:
        """Validate source URLs are HTTP/HTTPS."""
        if not value.lower().startswith(("http://", "https://")):
            raise ValueError(f"{info.field_name} must be HTTP/HTTPS: {value}")
        return value

    @field_validator("guide_channel_path")
    @classmethod
    def validate_channel_path(cls, value: str) -> str:
        """Channel path must be absolute and end with a slash."""
        if not value.startswith("/"):
            raise ValueError("guide_channel_path must start with '/'")
        return value if value.endswith("/") else f"{value}/"

    @field_validator("guide_utc_offset")
    @classmethod
    def validate_offset(cls, value: str) -> str:
        """Validate the fixed XMLTV offset."""
        return validate_utc_offset(value)

    @field_validator("guide_timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Validate timezone is a known IANA name."""
        return validate_timezone_name(value)

    @field_validator("id_map_path")
    @classmethod
    def validate_id_map_path(cls, value: str | None) -> str | None:
        """Validate the optional mapping file exists."""
        if not value:
            return None
        if not Path(value).is_file():
            raise ValueError(f"id_map_path '{value}' is not a file")
        return value

    @field_validator("index_fetch_timeout_sec", "channel_fetch_timeout_sec")
    @classmethod
    def validate_timeouts(cls, value: float, info) -> float:
        """Ensure fetch timeouts are positive."""
        if value <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return value

    @field_validator("fetch_max_retries")
    @classmethod
    def validate_max_retries(cls, value: int) -> int:
        """At least one attempt per download."""
        if value < 1:
            raise ValueError("fetch_max_retries must be >= 1")
        return value

    @field_validator("courtesy_delay_sec", "sync_misfire_grace_sec")
    @classmethod
    def validate_non_negative(cls, value, info):
        """Ensure delays and grace periods are non-negative."""
        if value < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return value

    @field_validator("sync_cron")
    @classmethod
    def validate_cron_expression(cls, value: str) -> str:
        """Validate cron expression is valid."""
        try:
            croniter(value)
            return value
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Invalid cron expression '{value}': {exc}") from exc

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate log level name."""
        normalized = value.upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if normalized not in allowed:
            raise ValueError(f"log_level must be one of {sorted(allowed)}")
        return normalized

    def log_summary(self) -> None:
        """Log effective configuration."""
        logger.info("Configuration loaded:")
        logger.info("  Stream Source: %s", self.stream_source_url)
        logger.info("  Guide Index: %s", self.guide_index_url)
        logger.info("  Guide Offset: %s (today in %s)", self.guide_utc_offset, self.guide_timezone)
        logger.info("  Playlist Output: %s", self.playlist_output_path)
        logger.info("  Guide Output: %s", self.guide_output_path)
        logger.info("  ID Map Override: %s", self.id_map_path or "none")
        logger.info(
            "  Fetch Timeouts: index=%.0fs channel=%.0fs (attempts: %s)",
            self.index_fetch_timeout_sec,
            self.channel_fetch_timeout_sec,
            self.fetch_max_retries,
        )
        logger.info("  Courtesy Delay: %.2fs", self.courtesy_delay_sec)
        logger.info(
            "  Sync Schedule: %s",
            self.sync_cron if self.scheduler_enabled else "disabled",
        )


settings = CustomSettings()


def setup_logging() -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
