"""
playlistwatch custom exceptions.

Defines the error taxonomy for playlist fetching and snapshot persistence,
plus the helper the player collaborator uses to turn a playback failure into
a cause-specific message.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class PlaylistError(Exception):
    """
    Base exception class for all playlist-related errors.

    Carries the playlist URL and, for HTTP failures, the response status so
    the error can be logged or published as structured data.
    """

    def __init__(self, message: str, url: Optional[str] = None,
                 status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for structured logging/events."""
        return {
            'error_type': self.__class__.__name__,
            'message': str(self),
            'url': self.url,
            'status_code': self.status_code,
        }


class PlaylistFetchError(PlaylistError):
    """Raised when the playlist could not be retrieved."""

    def __init__(self, message: str = "Failed to fetch playlist", **kwargs):
        super().__init__(message, **kwargs)


class PlaylistNetworkError(PlaylistFetchError):
    """
    Raised for transport-level failures.

    This includes DNS resolution failures, refused or reset connections and
    TLS errors.
    """

    def __init__(self, message: str = "Network connectivity issue", **kwargs):
        super().__init__(message, **kwargs)


class PlaylistTimeoutError(PlaylistFetchError):
    """Raised when the playlist request exceeds the configured timeout."""

    def __init__(self, message: str = "Playlist request timed out", **kwargs):
        super().__init__(message, **kwargs)


class PlaylistHTTPError(PlaylistFetchError):
    """Raised when the server answers with a non-success status."""

    def __init__(self, message: str = "Playlist server returned an error", **kwargs):
        super().__init__(message, **kwargs)


class PlaylistDecodeError(PlaylistFetchError):
    """Raised when the response body cannot be decoded as text."""

    def __init__(self, message: str = "Playlist body could not be decoded", **kwargs):
        super().__init__(message, **kwargs)


class SnapshotStoreError(Exception):
    """Raised when the snapshot database cannot be opened or written."""


def categorize_fetch_error(error: Exception, url: Optional[str] = None) -> PlaylistError:
    """
    Map an exception raised while fetching into the playlist error taxonomy.

    Args:
        error: The exception raised by httpx or by body decoding
        url: The playlist URL that was requested

    Returns:
        PlaylistError: The most specific matching subclass
    """
    if isinstance(error, PlaylistError):
        return error
    if isinstance(error, httpx.TimeoutException):
        return PlaylistTimeoutError(f"Playlist request timed out: {error}", url=url)
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return PlaylistHTTPError(
            f"HTTP error! status: {status}", url=url, status_code=status
        )
    if isinstance(error, httpx.TransportError):
        return PlaylistNetworkError(f"Network connectivity issue: {error}", url=url)
    if isinstance(error, UnicodeDecodeError):
        return PlaylistDecodeError(f"Playlist body could not be decoded: {error}", url=url)

    logger.debug(f"Uncategorized fetch error {type(error).__name__}: {error}")
    return PlaylistFetchError(f"Failed to fetch playlist: {error}", url=url)


# --- Playback failures (reported by the player collaborator) ---


class PlaybackFailureKind(str, Enum):
    """Cause of a failed playback attempt."""

    PERMISSION_DENIED = "permission_denied"
    NETWORK = "network"
    EXPIRED_URL = "expired_url"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class PlaybackFailure:
    kind: PlaybackFailureKind
    message: str
    suggest_refresh: bool = False


PLAYBACK_MESSAGES = {
    PlaybackFailureKind.PERMISSION_DENIED: "Autoplay was blocked. Press play to start the stream.",
    PlaybackFailureKind.NETWORK: "Network error while loading the stream. Check your connection.",
    PlaybackFailureKind.EXPIRED_URL: "The stream URL has expired. Refresh the stream list to get a new one.",
    PlaybackFailureKind.UNKNOWN: "Failed to play stream. The stream may be offline or the URL may have expired.",
}


def classify_playback_failure(error_text: str, stream: Any = None,
                              now: Optional[float] = None) -> PlaybackFailure:
    """
    Classify a playback failure from the player's error text.

    A stream whose URL is expired at ``now`` (wall clock when omitted) is
    reported as EXPIRED_URL regardless of the text, since re-fetching the
    playlist fixes it.
    """
    text = (error_text or "").lower()

    if stream is not None and stream.is_expired_at(time.time() if now is None else now):
        kind = PlaybackFailureKind.EXPIRED_URL
    elif "notallowederror" in text or "permission" in text or "autoplay" in text:
        kind = PlaybackFailureKind.PERMISSION_DENIED
    elif "403" in text or "410" in text or "expired" in text:
        kind = PlaybackFailureKind.EXPIRED_URL
    elif "network" in text or "timeout" in text or "connection" in text:
        kind = PlaybackFailureKind.NETWORK
    else:
        kind = PlaybackFailureKind.UNKNOWN

    return PlaybackFailure(
        kind=kind,
        message=PLAYBACK_MESSAGES[kind],
        suggest_refresh=kind is PlaybackFailureKind.EXPIRED_URL,
    )
