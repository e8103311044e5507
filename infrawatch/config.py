import logging
import os
import sys
from datetime import timedelta
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource


# =============================================================================
# Directory Service Configuration
# =============================================================================


class AwsConfig(BaseModel):
    """AWS client configuration (nested in Config, uses env_nested_delimiter)."""

    region: str = "us-east-1"  # Region used for SSM API calls


class DirectoryConfig(BaseModel):
    """Where the global infrastructure tree lives in the directory service."""

    root_path: str = "/aws/service/global-infrastructure"

    @property
    def regions_path(self) -> str:
        return f"{self.root_path}/regions"

    @property
    def availability_zones_path(self) -> str:
        return f"{self.root_path}/availability-zones"

    @property
    def services_path(self) -> str:
        return f"{self.root_path}/services"


class FetchConfig(BaseModel):
    """Paging and retry behaviour of PagedFetcher.

    All delays are in seconds. Backoff is exponential: base_delay * 2**attempt.
    """

    max_retries: int = Field(default=5, ge=0)  # Whole-operation retries
    per_request_retries: int = Field(default=3, ge=0)  # Retries of a single page request
    base_delay: float = Field(default=0.05, ge=0)
    page_size: int = Field(default=10, ge=1)  # Fixed by the service (SSM maximum is 10)
    pagination_delay: float = Field(default=0.04, ge=0)  # Lower = faster, more throttling
    pagination_delay_increment: float = Field(default=0.025, ge=0)  # Added per outer retry


# =============================================================================
# Batch Processing Configuration
# =============================================================================


class BatchSettings(BaseModel):
    """Size of one concurrent group and the pause between groups."""

    size: int = Field(default=10, ge=1)
    delay: float = Field(default=0.0, ge=0)  # Seconds between groups


class BatchConfig(BaseModel):
    """Per-phase batch settings.

    service_by_region is the primary tuning knob: each region pages through
    roughly a thousand parameters, so values above ~15 tend to trip the
    directory service's rate limit.
    """

    availability_zones: BatchSettings = BatchSettings(size=20, delay=0.1)
    region_names: BatchSettings = BatchSettings(size=10, delay=0.1)
    service_names: BatchSettings = BatchSettings(size=20, delay=0.1)
    service_by_region: BatchSettings = BatchSettings(size=10, delay=0.0)


# =============================================================================
# Cache and Storage Configuration
# =============================================================================


class CacheConfig(BaseModel):
    """Per-region service cache configuration."""

    ttl: timedelta = timedelta(hours=24)
    checkpoint_each_batch: bool = False  # Save the merged cache after every batch

    @field_validator("ttl")
    @classmethod
    def ttl_must_be_positive(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            raise ValueError("ttl must be positive")
        return value


class StorageKeys(BaseModel):
    """Blob keys of the persisted documents."""

    regions: str = "regions.json"
    services: str = "services.json"
    complete: str = "complete-data.json"
    cache: str = ".cache-services-by-region.json"
    change_history: str = "change-history.json"
    previous_snapshot: str = ".previous-snapshot.json"
    history_prefix: str = "history"  # Archived complete-data snapshots


class StorageConfig(BaseModel):
    """Blob storage backend selection (nested in Config, uses env_nested_delimiter)."""

    backend: Literal["local", "s3", "memory"] = "local"
    output_dir: str = "./output"  # Used by the local backend
    bucket: str | None = None  # Required by the s3 backend
    prefix: str = "aws-data"  # Key prefix for the s3 backend
    archive_snapshots: bool = False  # Also write history/complete-data-<ms>.json
    keys: StorageKeys = StorageKeys()


# =============================================================================
# Enrichment, Tracking and Reporting Configuration
# =============================================================================


class FeedConfig(BaseModel):
    """Region launch RSS feed used to enrich region metadata."""

    url: str = "https://docs.aws.amazon.com/global-infrastructure/latest/regions/regions.rss"
    max_redirects: int = 5
    timeout: float = 30.0
    # CloudFront answers 403 without a browser-like user agent
    user_agent: str = "infrawatch/0.1 (python-httpx)"
    accept: str = "application/rss+xml, application/xml, text/xml, */*"


class TrackingConfig(BaseModel):
    """Change tracking configuration."""

    recency_days: int = Field(default=30, ge=0)  # isNew window for first-seen dates


class PerformanceConfig(BaseModel):
    """Runtime thresholds (seconds) for the end-of-run performance rating."""

    excellent_threshold: float = 60.0
    good_threshold: float = 120.0


class LoggingConfig(BaseModel):
    """Logging configuration (nested in Config, uses env_nested_delimiter)."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    @property
    def file(self) -> str | None:
        """Get log file path from INFRAWATCH_LOG_FILE env var."""
        return os.environ.get("INFRAWATCH_LOG_FILE")


# =============================================================================
# Application Configuration
# =============================================================================


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Settings from the YAML file named by INFRAWATCH_CONFIG_FILE.

    A missing file contributes nothing. The file is read once per Config
    instantiation and must contain a mapping at the top level.
    """

    def __init__(self, settings_cls: type[BaseSettings]) -> None:
        super().__init__(settings_cls)
        self._data = self._read(os.environ.get("INFRAWATCH_CONFIG_FILE"))

    @staticmethod
    def _read(config_file: str | None) -> dict[str, Any]:
        if not config_file:
            return {}
        path = Path(config_file).expanduser()
        if not path.is_file():
            return {}
        data = yaml.safe_load(path.read_text()) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping at the top level")
        return data

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return dict(self._data)


class Config(BaseSettings):
    # Sub-configs are BaseModel, so env_nested_delimiter reaches their fields
    aws: AwsConfig = AwsConfig()
    directory: DirectoryConfig = DirectoryConfig()
    fetch: FetchConfig = FetchConfig()
    batch: BatchConfig = BatchConfig()
    cache: CacheConfig = CacheConfig()
    storage: StorageConfig = StorageConfig()
    feed: FeedConfig = FeedConfig()
    tracking: TrackingConfig = TrackingConfig()
    performance: PerformanceConfig = PerformanceConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = {
        "env_prefix": "INFRAWATCH_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",  # INFRAWATCH_STORAGE__BACKEND=s3
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Slot the YAML file in below the environment.

        Earlier sources win: constructor arguments, INFRAWATCH_* variables,
        .env, the YAML file, then secret files.
        """
        yaml_settings = YamlConfigSettingsSource(settings_cls)
        return init_settings, env_settings, dotenv_settings, yaml_settings, file_secret_settings


# Third-party loggers capped at WARNING
_QUIET_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3", "httpx", "httpcore", "asyncio")


def _log_handler(config: LoggingConfig) -> logging.Handler:
    if config.file:
        log_path = Path(config.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_path)
    return logging.StreamHandler(sys.stderr)


def configure_logging(config: LoggingConfig) -> None:
    """Install a single root handler, to INFRAWATCH_LOG_FILE or stderr.

    Call once at startup. Calling again replaces the handler instead of
    stacking a second one.
    """
    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)

    handler = _log_handler(config)
    handler.setLevel(config.level)
    handler.setFormatter(logging.Formatter(config.format, datefmt=config.date_format))
    root.addHandler(handler)
    root.setLevel(config.level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.debug("Logging configured: level=%s, file=%s", config.level, config.file)
