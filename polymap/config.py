"""Process-level settings: directories, Overpass endpoint, concurrency and logging.

Render geometry and colours are not here; they live in ``models.settings``
and ``models.style`` and are passed to services explicitly.
"""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_OVERPASS_URL = "https://overpass-api.de/api/map"


class AppConfig(BaseModel):
    """Settings read once at the CLI boundary, overridable with POLYMAP_* variables."""

    cache_dir: Path = Field(
        default=Path.home() / ".cache" / "polymap",
        description="Cache directory for downloaded OSM data",
    )
    output_dir: Path = Field(
        default=Path.cwd() / "output",
        description="Where PNG and PDF outputs are written",
    )

    style_path: Optional[Path] = Field(
        default=None,
        description="Style YAML used when none is given on the command line",
    )

    overpass_url: str = Field(default=DEFAULT_OVERPASS_URL, description="Overpass map endpoint")
    http_timeout: float = Field(default=120.0, gt=0, description="HTTP timeout in seconds")

    max_workers: int = Field(default=4, ge=1, description="Concurrent render jobs")

    log_level: str = Field(default="INFO", description="Root log level")

    @classmethod
    def load(cls) -> "AppConfig":
        """Build a config from the environment, falling back to field defaults."""
        style = os.environ.get("POLYMAP_STYLE")
        return cls(
            cache_dir=Path(os.environ.get("POLYMAP_CACHE_DIR", str(cls.model_fields["cache_dir"].default))),
            output_dir=Path(os.environ.get("POLYMAP_OUTPUT_DIR", str(cls.model_fields["output_dir"].default))),
            style_path=Path(style) if style else None,
            overpass_url=os.environ.get("POLYMAP_OVERPASS_URL", DEFAULT_OVERPASS_URL),
            max_workers=int(os.environ.get("POLYMAP_MAX_WORKERS", "4")),
            log_level=os.environ.get("POLYMAP_LOG_LEVEL", "INFO").upper(),
        )

    def ensure_directories(self) -> None:
        """Create the cache and output directories."""
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.output_dir.mkdir(parents=True, exist_ok=True)


_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Config for this process, loaded from the environment on first use."""
    global _config
    if _config is None:
        _config = AppConfig.load()
    return _config
