"""Settings and API key loading."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml

from .exceptions import ConfigError
from .models import DIRECTIONS, INBOUND

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://realtime.mbta.com/developer/api/v2"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "busarrivals" / "config.yaml"
DEFAULT_TIMEOUT = 10.0


@dataclass
class Settings:
    """Resolved runtime settings."""
    api_key: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    timezone: Optional[str] = None  # IANA name; None means local time
    routes: List[str] = field(default_factory=list)  # Default interest set
    direction: str = INBOUND

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigError(
                "No API key configured. Pass --api-key, set BUSARRIVALS_API_KEY, "
                f"or add api_key to {DEFAULT_CONFIG_PATH}"
            )
        return self.api_key


def load_yaml_config(path: Path) -> dict:
    """Read a YAML settings file; the root must be a mapping."""
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config root must be a mapping: {path}")
    return data


def load_settings(path: Optional[Path] = None, api_key: Optional[str] = None) -> Settings:
    """
    Resolve settings from arguments, environment, config file and defaults.

    Args:
        path: Explicit config file. Falls back to $BUSARRIVALS_CONFIG, then to
              ~/.config/busarrivals/config.yaml if it exists.
        api_key: Explicit API key, overriding every other source.

    Returns:
        Settings object.

    Raises:
        ConfigError: If an explicitly named file is unreadable or a value is invalid.
    """
    if path is None and os.environ.get("BUSARRIVALS_CONFIG"):
        path = Path(os.environ["BUSARRIVALS_CONFIG"])

    data: dict = {}
    if path is not None:
        data = load_yaml_config(path)
        logger.debug(f"Loaded config from {path}")
    elif DEFAULT_CONFIG_PATH.exists():
        data = load_yaml_config(DEFAULT_CONFIG_PATH)
        logger.debug(f"Loaded config from {DEFAULT_CONFIG_PATH}")

    settings = Settings()
    settings.api_key = api_key or os.environ.get("BUSARRIVALS_API_KEY") or data.get("api_key")
    settings.base_url = os.environ.get("BUSARRIVALS_BASE_URL") or data.get("base_url") or DEFAULT_BASE_URL
    settings.timezone = os.environ.get("BUSARRIVALS_TIMEZONE") or data.get("timezone")

    try:
        settings.timeout = float(data.get("timeout", DEFAULT_TIMEOUT))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid timeout in config: {data.get('timeout')!r}") from e

    routes = data.get("routes", [])
    if isinstance(routes, str):
        routes = routes.split(",")
    settings.routes = [str(route).strip() for route in routes if str(route).strip()]

    direction = data.get("direction", INBOUND)
    if direction not in DIRECTIONS:
        raise ConfigError(f"direction must be one of {', '.join(DIRECTIONS)}, got {direction!r}")
    settings.direction = direction

    return settings
