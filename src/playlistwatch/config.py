import configparser
import logging
import os
from pathlib import Path
from typing import Dict

import validators

from .constants import AppMetadata, ExpiryConstants, FileSystemConstants, RefreshConstants

# --- Core Application Details ---
APP_NAME = AppMetadata.NAME

logger = logging.getLogger(APP_NAME + ".config")

# --- Default Configuration Values ---
DEFAULT_CONFIG: Dict[str, Dict[str, str]] = {
    "Playlist": {
        "url": AppMetadata.DEFAULT_PLAYLIST_URL,
        "timeout_seconds": str(RefreshConstants.DEFAULT_FETCH_TIMEOUT),
        "user_agent": AppMetadata.USER_AGENT,
    },
    "Refresh": {
        "auto_refresh": "true",
        "interval_seconds": str(RefreshConstants.DEFAULT_INTERVAL),
        "online_refresh_delay": str(RefreshConstants.DEFAULT_ONLINE_DELAY),
    },
    "Cache": {
        "snapshot_max_age_seconds": str(ExpiryConstants.SNAPSHOT_MAX_AGE_SECONDS),
        "database_file": FileSystemConstants.DATABASE_FILE_NAME,
    },
    "StreamList": {
        "sort_by": "viewers",  # viewers, name, status
        "sort_order": "desc",  # asc, desc
        "show_offline_streams": "false",
    },
    "Logging": {
        "level": "INFO",
    },
}


# --- Paths ---
def get_user_config_dir() -> Path:
    """Gets the platform-specific user configuration directory for the app."""
    if os.name == "nt":  # Windows
        app_data = os.getenv("APPDATA")
        if app_data:
            return Path(app_data) / APP_NAME
    else:  # Linux, macOS, etc.
        xdg_config_home = os.getenv("XDG_CONFIG_HOME")
        if xdg_config_home:
            return Path(xdg_config_home) / APP_NAME
        else:
            return Path.home() / ".config" / APP_NAME
    return Path(Path.home(), f".{APP_NAME}")  # Fallback


USER_CONFIG_DIR = get_user_config_dir()
CONFIG_FILE_PATH = USER_CONFIG_DIR / FileSystemConstants.CONFIG_FILE_NAME

# --- Config Loading and Management ---
config_parser = configparser.ConfigParser()


def _apply_defaults(parser: configparser.ConfigParser) -> None:
    for section, options in DEFAULT_CONFIG.items():
        if section not in parser:
            parser.add_section(section)
        for key, value in options.items():
            parser.set(section, key, str(value))


def create_default_config_file() -> bool:
    """Creates the config.ini file with default values if it doesn't exist.

    Returns:
        True if file was created, False if it already existed
    """
    if not CONFIG_FILE_PATH.exists():
        CONFIG_FILE_PATH.parent.mkdir(parents=True, exist_ok=True)
        temp_parser = configparser.ConfigParser()
        for section, options in DEFAULT_CONFIG.items():
            temp_parser[section] = {}
            for key, value in options.items():
                temp_parser[section][key] = str(value)

        try:
            with open(CONFIG_FILE_PATH, "w", encoding="utf-8") as configfile:
                temp_parser.write(configfile)
            logger.info(f"Created default configuration file at {CONFIG_FILE_PATH}")
            return True
        except IOError as e:
            logger.error(f"Could not write default config file: {e}", exc_info=True)
            return False
    return False


def load_config() -> None:
    """Loads configuration from file, falling back to defaults."""
    global config_parser

    try:
        CONFIG_FILE_PATH.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(
            f"Could not create config directory {CONFIG_FILE_PATH.parent}: {e}",
            exc_info=True,
        )

    create_default_config_file()

    config_parser = configparser.ConfigParser()
    try:
        if CONFIG_FILE_PATH.exists():
            config_parser.read(CONFIG_FILE_PATH, encoding="utf-8")
        else:
            _apply_defaults(config_parser)
    except configparser.Error as e:
        logger.error(
            f"Could not parse config file {CONFIG_FILE_PATH}: {e}. Using defaults.",
            exc_info=True,
        )
        config_parser = configparser.ConfigParser()
        _apply_defaults(config_parser)


# --- Accessor Functions for Configuration Values ---
# Missing sections/keys and unparseable values fall back to DEFAULT_CONFIG.


def _get_float(section: str, key: str) -> float:
    default = float(DEFAULT_CONFIG[section][key])
    try:
        return config_parser.getfloat(section, key, fallback=default)
    except ValueError:
        logger.warning(f"Invalid number for [{section}] {key}; using {default}")
        return default


def _get_bool(section: str, key: str) -> bool:
    default = DEFAULT_CONFIG[section][key].lower() == "true"
    try:
        return config_parser.getboolean(section, key, fallback=default)
    except ValueError:
        logger.warning(f"Invalid boolean for [{section}] {key}; using {default}")
        return default


def get_playlist_url() -> str:
    """Get the playlist URL, falling back to the default when it is not a valid URL."""
    default = DEFAULT_CONFIG["Playlist"]["url"]
    url = config_parser.get("Playlist", "url", fallback=default).strip()
    if not validators.url(url):
        logger.warning(f"Configured playlist URL '{url}' is invalid; using default.")
        return default
    return url


def get_fetch_timeout() -> float:
    """Get the HTTP timeout for the playlist fetch in seconds."""
    timeout = _get_float("Playlist", "timeout_seconds")
    return max(
        RefreshConstants.MIN_FETCH_TIMEOUT,
        min(timeout, RefreshConstants.MAX_FETCH_TIMEOUT),
    )


def get_user_agent() -> str:
    return config_parser.get(
        "Playlist", "user_agent", fallback=DEFAULT_CONFIG["Playlist"]["user_agent"]
    )


def get_auto_refresh_enabled() -> bool:
    """Whether the periodic refresh is enabled."""
    return _get_bool("Refresh", "auto_refresh")


def get_refresh_interval() -> float:
    """Get the auto-refresh interval in seconds, clamped to sane bounds."""
    interval = _get_float("Refresh", "interval_seconds")
    return max(
        RefreshConstants.MIN_INTERVAL, min(interval, RefreshConstants.MAX_INTERVAL)
    )


def get_online_refresh_delay() -> float:
    return max(0.0, _get_float("Refresh", "online_refresh_delay"))


def get_snapshot_max_age_seconds() -> float:
    """Get the staleness bound for the persisted snapshot."""
    return max(0.0, _get_float("Cache", "snapshot_max_age_seconds"))


def get_database_path() -> Path:
    """Get the snapshot database path; relative names live in the config dir."""
    name = config_parser.get(
        "Cache", "database_file", fallback=DEFAULT_CONFIG["Cache"]["database_file"]
    )
    path = Path(name).expanduser()
    if not path.is_absolute():
        path = USER_CONFIG_DIR / path
    return path


def get_sort_by() -> str:
    value = config_parser.get(
        "StreamList", "sort_by", fallback=DEFAULT_CONFIG["StreamList"]["sort_by"]
    ).strip().lower()
    if value not in ("viewers", "name", "status"):
        logger.warning(f"Unknown sort_by '{value}'; using viewers.")
        return "viewers"
    return value


def get_sort_order() -> str:
    value = config_parser.get(
        "StreamList", "sort_order", fallback=DEFAULT_CONFIG["StreamList"]["sort_order"]
    ).strip().lower()
    if value not in ("asc", "desc"):
        logger.warning(f"Unknown sort_order '{value}'; using desc.")
        return "desc"
    return value


def get_show_offline_streams() -> bool:
    return _get_bool("StreamList", "show_offline_streams")


def get_log_level() -> str:
    level = config_parser.get(
        "Logging", "level", fallback=DEFAULT_CONFIG["Logging"]["level"]
    ).strip().upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        return DEFAULT_CONFIG["Logging"]["level"]
    return level


def set_auto_refresh_enabled(enabled: bool) -> None:
    """Persist the auto-refresh flag to config.ini."""
    if not config_parser.has_section("Refresh"):
        config_parser.add_section("Refresh")
    config_parser.set("Refresh", "auto_refresh", "true" if enabled else "false")
    try:
        with open(CONFIG_FILE_PATH, "w", encoding="utf-8") as configfile:
            config_parser.write(configfile)
        logger.info(f"Auto-refresh set to {enabled}")
    except IOError as e:
        logger.error(f"Could not save auto_refresh to config: {e}", exc_info=True)


# Load config when module is imported
load_config()
