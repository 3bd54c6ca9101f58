"""
Descriptor heuristics.

A descriptor is the free text after the first comma of an ``#EXTINF:`` line,
e.g. ``alice [LIVE] - Just Chatting - 120 viewers``. It has no schema, so
every field is recovered with a precedence of explicit markers first and
inference last.
"""

import re
from typing import List

from .constants import DescriptorDefaults
from .models import StreamStatus

VIEWERS_RE = re.compile(r"(\d[\d,]*)\s*viewers?\b", re.IGNORECASE)
OFFLINE_RE = re.compile(r"\boffline\b", re.IGNORECASE)
BRACKET_RE = re.compile(r"\[[^\]]*\]")
TRAILING_MARKER_RE = re.compile(
    r"\s*-\s*(?:\d[\d,]*\s*viewers?|offline)\s*$", re.IGNORECASE
)
MARKER_SEGMENT_RE = re.compile(r"^(?:\d[\d,]*\s*viewers?|offline)$", re.IGNORECASE)
SEGMENT_SEPARATOR_RE = re.compile(r"\s+-\s+")


def extract_viewer_count(descriptor: str) -> int:
    """First integer followed by "viewers" (case-insensitive), 0 when absent."""
    match = VIEWERS_RE.search(descriptor or "")
    if not match:
        return 0
    digits = match.group(1).replace(",", "")
    return int(digits) if digits else 0


def has_live_marker(descriptor: str) -> bool:
    return DescriptorDefaults.LIVE_MARKER in (descriptor or "")


def has_offline_marker(descriptor: str) -> bool:
    return OFFLINE_RE.search(descriptor or "") is not None


def classify_status(descriptor: str, viewer_count: int) -> StreamStatus:
    """
    Classify a descriptor as live, offline or unknown.

    Precedence: a case-sensitive ``[LIVE]`` tag, then the word "offline",
    then a positive viewer count (many producers omit the tag but always
    report viewers), otherwise unknown.
    """
    if has_live_marker(descriptor):
        return StreamStatus.LIVE
    if has_offline_marker(descriptor):
        return StreamStatus.OFFLINE
    if viewer_count > 0:
        return StreamStatus.LIVE
    return StreamStatus.UNKNOWN


def _strip_markers(descriptor: str) -> str:
    text = BRACKET_RE.sub(" ", descriptor or "")
    text = " ".join(text.split())
    previous = None
    while previous != text:
        previous = text
        text = TRAILING_MARKER_RE.sub("", text).strip()
    return text


def extract_handle(descriptor: str) -> str:
    """Leading token of the descriptor once brackets and trailing markers are gone."""
    tokens = _strip_markers(descriptor).split()
    if not tokens:
        return DescriptorDefaults.UNKNOWN_HANDLE
    return tokens[0]


def _segments(descriptor: str) -> List[str]:
    text = " ".join(BRACKET_RE.sub(" ", descriptor or "").split())
    return [segment.strip() for segment in SEGMENT_SEPARATOR_RE.split(text)]


def extract_category(descriptor: str) -> str:
    """
    First `` - ``-separated segment after the handle that is not a status
    or viewer marker, e.g. "Just Chatting" in
    ``alice [LIVE] - Just Chatting - 120 viewers``.
    """
    for segment in _segments(descriptor)[1:]:
        if segment and not MARKER_SEGMENT_RE.match(segment):
            return segment
    return DescriptorDefaults.DEFAULT_CATEGORY
