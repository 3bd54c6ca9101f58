"""
Application constants and limits.

This module centralizes the magic numbers, URL templates and storage keys
used by the parser, normalizer and registry.
"""


# --- Playlist Format ---
class PlaylistFormat:
    """Structural markers of the playlist text format."""

    METADATA_PREFIX = "#EXTINF:"
    URL_PREFIX = "https://"
    TOKEN_QUERY_PARAM = "token"


# --- Descriptor Heuristics ---
class DescriptorDefaults:
    """Fallback values used when a descriptor does not carry a field."""

    LIVE_MARKER = "[LIVE]"
    UNKNOWN_HANDLE = "Unknown"
    DEFAULT_CATEGORY = "Just Chatting"
    STREAM_ID_LENGTH = 10


# --- Derived URL Templates ---
class UrlTemplates:
    """Fixed templates with the stream handle substituted."""

    THUMBNAIL = "https://static-cdn.jtvnw.net/previews-ttv/live_user_{handle}-320x180.jpg"
    CHAT = "https://www.twitch.tv/embed/{handle}/chat?darkpopout"
    SHARE = "https://twitch.tv/{handle}"


# --- Expiry & Cache ---
class ExpiryConstants:
    """Access-token expiry and snapshot staleness bounds."""

    SAFETY_MARGIN_SECONDS = 300  # Flag a URL expired 5 minutes early
    SNAPSHOT_MAX_AGE_SECONDS = 300  # Persisted snapshots older than this are dropped


# --- Refresh Scheduling ---
class RefreshConstants:
    """Scheduler defaults and limits (seconds)."""

    DEFAULT_INTERVAL = 30.0
    MIN_INTERVAL = 5.0
    MAX_INTERVAL = 3600.0
    DEFAULT_ONLINE_DELAY = 1.0
    DEFAULT_FETCH_TIMEOUT = 15.0
    MIN_FETCH_TIMEOUT = 1.0
    MAX_FETCH_TIMEOUT = 120.0


# --- Storage Keys ---
class StorageKeys:
    """Keys of the persisted snapshot entries."""

    STREAMS_DATA = "twitch_streams_data"
    SELECTED_STREAM = "selected_stream"


# --- File System Constants ---
class FileSystemConstants:
    """File system and path constants."""

    LOGS_DIR_NAME = "logs"

    CONFIG_FILE_NAME = "config.ini"
    DATABASE_FILE_NAME = "playlistwatch.db"
    LOG_FILE_NAME = "playlistwatch.log"


# --- Application Metadata ---
class AppMetadata:
    """Application metadata constants."""

    NAME = "playlistwatch"
    VERSION = "0.1.0"
    DESCRIPTION = "Browse and play live streams listed in a remote playlist file."
    DEFAULT_PLAYLIST_URL = (
        "https://raw.githubusercontent.com/Durgaa17/twitch-finder/refs/heads/main/output/twitch_all.m3u8"
    )
    USER_AGENT = f"{NAME}/{VERSION}"


# --- Logging Constants ---
class LoggingConstants:
    """Logging configuration constants."""

    DEFAULT_LOG_LEVEL = "INFO"
    FILE_LOG_LEVEL = "DEBUG"
    CONSOLE_LOG_LEVEL = "INFO"

    FILE_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(module)s.%(funcName)s:%(lineno)d - %(message)s"
    CONSOLE_LOG_FORMAT = "%(levelname)s: %(message)s"

    MAX_LOG_SIZE = 1024 * 1024  # 1MB
    BACKUP_COUNT = 3
