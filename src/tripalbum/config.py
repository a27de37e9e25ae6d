"""Central Configuration System for Trip Album.

This module is the single source of truth for application configuration.
Every component that needs a threshold, a weight, or a path imports it
from here rather than hard-coding it.

The configuration system supports:
- Multi-source configuration (config file > environment variables > defaults)
- Validation of every threshold and weight through pydantic
- A cached singleton for the common case, with a reset hook for tests

Example:
    >>> from tripalbum.config import get_config
    >>>
    >>> cfg = get_config()
    >>> print(cfg.clustering.spatial_threshold_meters)  # 175.0 by default

Config File Format (YAML):
    ```yaml
    clustering:
      spatial_threshold_meters: 175
      temporal_threshold_seconds: 10800
      highlight_similarity_threshold: 0.85

    trips:
      gap_hours: 48
      distance_km: 300
      min_assets: 1

    ranking:
      embedding_weight: 0.3
      distance_weight: 0.7
      distance_decay_meters: 100
      max_candidates: 8

    places:
      search_radius_meters: 500

    paths:
      config_dir: ~/.tripalbum

    debug: false
    verbose: false
    ```
"""

from __future__ import annotations

import functools
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings

from tripalbum.errors import TripAlbumError

logger = logging.getLogger(__name__)

# Moments never persist more place candidates than this.
MAX_POI_CANDIDATES = 8

DEFAULT_GENERIC_TAGS = ("point_of_interest", "establishment", "store")


# =============================================================================
# Exceptions
# =============================================================================


class ConfigError(TripAlbumError):
    """Base exception for configuration errors."""

    pass


class ConfigFileError(ConfigError):
    """Exception raised for YAML config file issues.

    Raised when:
    - Config file exists but cannot be read
    - Config file contains malformed YAML
    - Config file has structural issues
    """

    pass


# =============================================================================
# Configuration Models
# =============================================================================


class ClusteringConfig(BaseModel):
    """Thresholds for moment and highlight clustering.

    Attributes:
        spatial_threshold_meters: Maximum distance from a moment's anchor for a
            photo to join it. Comparison is strict.
        temporal_threshold_seconds: Maximum gap after a moment's last photo for
            a photo to join it. Comparison is strict.
        highlight_similarity_threshold: Minimum cosine similarity (exclusive)
            for a photo to join a highlight group.
    """

    spatial_threshold_meters: float = Field(
        default=175.0, gt=0.0, description="Moment spatial threshold in meters."
    )
    temporal_threshold_seconds: float = Field(
        default=3 * 60 * 60, gt=0.0, description="Moment temporal threshold in seconds."
    )
    highlight_similarity_threshold: float = Field(
        default=0.85, ge=-1.0, le=1.0, description="Highlight cosine similarity threshold."
    )


class TripConfig(BaseModel):
    """Coarse gaps used to split a photo library into trips.

    Attributes:
        gap_hours: A time gap at least this long starts a new trip.
        distance_km: A jump at least this far starts a new trip.
        min_assets: Trips with fewer photos are dropped.
    """

    gap_hours: float = Field(default=48.0, gt=0.0)
    distance_km: float = Field(default=300.0, gt=0.0)
    min_assets: int = Field(default=1, ge=1)


class RankingConfig(BaseModel):
    """Weights and limits for place candidate ranking.

    Attributes:
        embedding_weight: Weight of the image/text similarity score.
        distance_weight: Weight of the distance decay score.
        distance_decay_meters: Scale of the exponential distance decay.
        max_candidates: Number of ranked candidates a moment keeps.
        generic_tags: Category tags too generic to describe a place.
    """

    embedding_weight: float = Field(default=0.3, ge=0.0)
    distance_weight: float = Field(default=0.7, ge=0.0)
    distance_decay_meters: float = Field(default=100.0, gt=0.0)
    max_candidates: int = Field(default=MAX_POI_CANDIDATES, ge=1, le=MAX_POI_CANDIDATES)
    generic_tags: list[str] = Field(default_factory=lambda: list(DEFAULT_GENERIC_TAGS))


class PlacesConfig(BaseModel):
    """Settings for the bundled JSON place lookup.

    Attributes:
        search_radius_meters: Places farther than this from the photo are ignored.
    """

    search_radius_meters: float = Field(default=500.0, gt=0.0)


class PathsConfig(BaseModel):
    """Configuration for application file system paths.

    Attributes:
        config_dir: Base directory for configuration files. Default ~/.tripalbum
        cache_dir: Directory for the album cache. Default: config_dir/cache
        log_dir: Directory for log files. Default: config_dir/logs

    Example:
        >>> paths = PathsConfig()
        >>> paths.ensure_dirs_exist()
    """

    config_dir: Path = Field(
        default_factory=lambda: Path.home() / ".tripalbum",
        description="Base configuration directory.",
    )
    cache_dir: Path | None = Field(
        default=None, description="Album cache directory. Defaults to config_dir/cache."
    )
    log_dir: Path | None = Field(
        default=None, description="Log directory. Defaults to config_dir/logs."
    )

    @field_validator("config_dir", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path:
        """Expand ~ and resolve path."""
        if isinstance(v, (str, Path)):
            return Path(v).expanduser().resolve()
        return v

    @model_validator(mode="after")
    def resolve_defaults(self) -> "PathsConfig":
        """Resolve None defaults relative to config_dir."""
        if self.cache_dir is None:
            object.__setattr__(self, "cache_dir", self.config_dir / "cache")
        else:
            object.__setattr__(self, "cache_dir", Path(self.cache_dir).expanduser().resolve())

        if self.log_dir is None:
            object.__setattr__(self, "log_dir", self.config_dir / "logs")
        else:
            object.__setattr__(self, "log_dir", Path(self.log_dir).expanduser().resolve())

        return self

    def ensure_dirs_exist(self) -> None:
        """Create all configured directories if they don't exist."""
        for directory in [self.config_dir, self.cache_dir, self.log_dir]:
            if directory is not None:
                directory.mkdir(parents=True, exist_ok=True)


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Combines all configuration sections and supports loading from environment
    variables with the TRIPALBUM_ prefix, e.g.
    ``TRIPALBUM_CLUSTERING__SPATIAL_THRESHOLD_METERS=200``.

    Configuration priority (highest wins):
    1. Config file values passed to load_config
    2. Environment variables (TRIPALBUM_*)
    3. In-code defaults
    """

    clustering: ClusteringConfig = Field(default_factory=ClusteringConfig)
    trips: TripConfig = Field(default_factory=TripConfig)
    ranking: RankingConfig = Field(default_factory=RankingConfig)
    places: PlacesConfig = Field(default_factory=PlacesConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    debug: bool = Field(default=False, description="Enable debug mode.")
    verbose: bool = Field(default=False, description="Enable verbose output.")

    model_config = {
        "env_prefix": "TRIPALBUM_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def to_summary(self) -> dict[str, Any]:
        """Flatten the configuration into dotted keys for display."""
        summary: dict[str, Any] = {}
        for section, values in self.model_dump(mode="json").items():
            if isinstance(values, dict):
                for key, value in values.items():
                    summary[f"{section}.{key}"] = value
            else:
                summary[section] = values
        return summary


# =============================================================================
# Loading
# =============================================================================


def _read_config_file(config_file: Path) -> dict[str, Any]:
    """Read a YAML config file, returning an empty dict when unusable."""
    try:
        content = config_file.read_text(encoding="utf-8")
    except OSError as e:
        logger.warning(f"Failed to read config file {config_file}: {type(e).__name__}. Using defaults.")
        return {}

    if not content.strip():
        return {}

    try:
        loaded = yaml.safe_load(content)
    except yaml.YAMLError as e:
        logger.warning(f"Failed to parse config file {config_file}: {e}. Using defaults.")
        return {}

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        logger.warning(f"Config file {config_file} has unexpected format. Using defaults.")
        return {}
    return loaded


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from file, environment, and defaults.

    If no config file is found, uses defaults only (not an error).
    If the config file is malformed, logs a warning and uses defaults.

    Args:
        path: Optional path to config file. If None, searches default locations.

    Returns:
        Fully-populated AppConfig instance.

    Raises:
        ConfigFileError: If an explicitly given path does not exist.

    Example:
        >>> config = load_config()
        >>> config = load_config(Path("./tripalbum.yaml"))
    """
    if path is not None and not Path(path).exists():
        raise ConfigFileError(f"Config file not found: {path}")

    search_paths = [
        path,
        Path("./tripalbum.yaml"),
        Path("./tripalbum.yml"),
        Path.home() / ".tripalbum" / "config.yaml",
        Path.home() / ".tripalbum" / "config.yml",
    ]

    config_data: dict[str, Any] = {}
    for search_path in search_paths:
        if search_path is not None and Path(search_path).exists():
            logger.debug(f"Loading configuration from {search_path}")
            config_data = _read_config_file(Path(search_path))
            break

    # File values are init arguments; pydantic-settings fills the rest from
    # TRIPALBUM_* variables and then from defaults.
    try:
        return AppConfig(**config_data)
    except ValueError as e:
        logger.warning(f"Error parsing config values: {e}. Using defaults.")
        return AppConfig()


@functools.lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Get the cached configuration singleton.

    Returns:
        Cached AppConfig instance.
    """
    return load_config()


def reset_config() -> None:
    """Clear the configuration cache for testing."""
    get_config.cache_clear()
