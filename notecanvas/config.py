"""Application settings and logging setup."""

import json
import logging
import os
import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

from notecanvas.viewport import ZoomLimits

ENV_API_BASE_URL = "NOTECANVAS_API_BASE_URL"
ENV_LOG_LEVEL = "NOTECANVAS_LOG_LEVEL"

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"


def get_config_dir() -> Path:
    """Get the application config directory."""
    return Path.home() / ".config" / "notecanvas"


def get_settings_path() -> Path:
    return get_config_dir() / "settings.json"


@dataclass
class Settings:
    """Tunable behaviour of the canvas and the note store connection."""
    api_base_url: str = "http://localhost:3000"
    request_timeout: float = 10.0
    log_level: str = "WARNING"

    # Gesture timing and thresholds
    long_press_ms: int = 500
    double_tap_ms: int = 200
    tap_slop_px: float = 10.0

    # Zoom
    wheel_zoom_step: float = 1.1
    min_zoom: float = 0.1
    max_zoom: float = 10.0

    # New child placement relative to its parent
    child_offset_x: float = 100.0
    child_offset_y: float = 100.0

    node_padding: float = 8.0

    @property
    def zoom_limits(self) -> ZoomLimits:
        return ZoomLimits(self.min_zoom, self.max_zoom)

    def to_json(self) -> str:
        return json.dumps(asdict(self), indent=2)

    @classmethod
    def from_json(cls, data: Optional[str]) -> "Settings":
        if not data:
            return cls()
        try:
            d = json.loads(data)
            # Ignore keys written by other versions
            known = {f.name for f in cls.__dataclass_fields__.values()}
            return cls(**{k: v for k, v in d.items() if k in known})
        except (json.JSONDecodeError, TypeError, AttributeError):
            return cls()


def load_settings(path: Optional[Path] = None) -> Settings:
    """Read the settings file if present, then apply environment overrides."""
    path = path or get_settings_path()
    settings = Settings()
    if path.exists():
        settings = Settings.from_json(path.read_text(encoding="utf-8", errors="replace"))

    base_url = os.environ.get(ENV_API_BASE_URL)
    if base_url:
        settings.api_base_url = base_url
    log_level = os.environ.get(ENV_LOG_LEVEL)
    if log_level:
        settings.log_level = log_level.upper()
    return settings


def configure_logging(level: str = "WARNING") -> None:
    """Send log records for the notecanvas package to stderr."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root = logging.getLogger("notecanvas")
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))
    root.propagate = False
