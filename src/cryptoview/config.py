from dataclasses import dataclass, field, is_dataclass
from pathlib import Path
import sys
import tomllib
from typing import Any, ClassVar, TypeVar

from loguru import logger

# --- Constants ---
APP_NAME = "cryptoview"
# Use a platform-agnostic user config directory
if sys.platform == "win32":
    CONFIG_DIR = Path.home() / "AppData" / "Roaming" / APP_NAME
else:
    CONFIG_DIR = Path.home() / ".config" / APP_NAME

CONFIG_FILE = CONFIG_DIR / "config.toml"

COINGECKO_API_URL = "https://api.coingecko.com/api/v3"

# --- Dataclass Models for Settings ---
T = TypeVar("T")


@dataclass
class GeneralSettings:
    """General application settings."""

    log_level_console: str = "INFO"
    log_level_file: str = "DEBUG"
    # An empty string disables the file sink.
    log_directory: str = str(CONFIG_DIR / "logs")


@dataclass
class APISettings:
    """Settings for the upstream market data API.

    The query parameters are fixed configuration rather than runtime inputs;
    they live here so they can be overridden for testing or another venue.
    """

    base_url: str = COINGECKO_API_URL
    vs_currency: str = "usd"
    category: str = "layer-1"
    order: str = "market_cap_desc"
    per_page: int = 50
    price_change_percentage: str = "24h"
    precision: int = 6
    history_days: int = 7
    history_interval: str = "daily"
    request_timeout_s: float = 20.0
    activation_timeout_s: float = 30.0


@dataclass
class ChartSettings:
    """Settings for the price history chart."""

    window_size: int = 7


@dataclass
class Settings:
    """Root container for all application settings."""

    general: GeneralSettings = field(default_factory=GeneralSettings)
    api: APISettings = field(default_factory=APISettings)
    chart: ChartSettings = field(default_factory=ChartSettings)

    _instance: ClassVar["Settings | None"] = None

    @classmethod
    def get_instance(cls) -> "Settings":
        """Returns the singleton instance of the Settings object."""
        if cls._instance is None:
            cls._instance = load_config()
        return cls._instance


def _update_dataclass(dc_instance: T, data: dict[str, Any]) -> T:
    """Recursively updates a dataclass instance from a dictionary."""
    for f in field_names(dc_instance):
        if f not in data:
            continue
        field_value = getattr(dc_instance, f)
        if is_dataclass(field_value):
            if isinstance(data[f], dict):
                _update_dataclass(field_value, data[f])
            else:
                logger.warning(f"Ignoring non-table value for section '{f}'.")
        else:
            setattr(dc_instance, f, data[f])
    return dc_instance


def field_names(dc_instance: Any) -> list[str]:
    """Helper to get field names from a dataclass instance."""
    return [f.name for f in dc_instance.__dataclass_fields__.values()]


def load_config(path: Path = CONFIG_FILE) -> Settings:
    """Loads settings from a TOML file, merging them over the defaults.

    A missing file is not an error: the defaults are used and nothing is
    written to disk.

    Args:
        path: The path to the configuration file.

    Returns:
        A populated Settings object.
    """
    settings_obj = Settings()
    logger.info(f"Loading configuration from '{path}'...")

    if not path.exists():
        logger.info("Configuration file not found. Using default settings.")
        return settings_obj

    try:
        with path.open("rb") as f:
            user_config = tomllib.load(f)
        _update_dataclass(settings_obj, user_config)
        logger.success("Successfully loaded user configuration.")
    except tomllib.TOMLDecodeError as e:
        logger.error(f"Error decoding TOML from '{path}': {e}")
        logger.warning("Using default settings due to configuration error.")
        settings_obj = Settings()
    except OSError as e:
        logger.error(f"Could not read configuration file '{path}': {e}")
        logger.warning("Using default settings due to configuration error.")
        settings_obj = Settings()

    return settings_obj


# --- Global Singleton Instance ---
# Other modules can simply `from cryptoview.config import settings`
settings = Settings.get_instance()
