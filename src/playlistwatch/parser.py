"""
Playlist parser.

Turns playlist text into an ordered list of RawEntry records. The parser only
decides record boundaries: a record opens on an ``#EXTINF:`` line and closes on
the next non-blank ``https://`` line. Everything else is skipped, so unknown
directives and malformed lines never raise.
"""

import logging
from typing import List, Optional, Tuple

from . import config
from .constants import PlaylistFormat
from .descriptor import classify_status, extract_viewer_count
from .models import RawEntry, StreamStatus

logger = logging.getLogger(config.APP_NAME + ".parser")


def parse_metadata_line(line: str) -> str:
    """
    Return the descriptor of an ``#EXTINF:`` line.

    The duration before the first comma is discarded; without a comma the
    whole remainder is the descriptor.
    """
    remainder = line[len(PlaylistFormat.METADATA_PREFIX):]
    _duration, sep, descriptor = remainder.partition(",")
    if not sep:
        return remainder.strip()
    return descriptor.strip()


def parse_playlist(text: str) -> List[RawEntry]:
    """
    Parse playlist text into RawEntry records in source order.

    Args:
        text: The playlist body

    Returns:
        One RawEntry per metadata line that is followed by a URL line.
        A metadata line superseded by another metadata line, or left open at
        end of input, yields nothing.
    """
    if not isinstance(text, str):
        raise TypeError(f"playlist text must be str, not {type(text).__name__}")

    entries: List[RawEntry] = []
    pending: Optional[Tuple[int, str]] = None
    dropped = 0

    for line_number, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line:
            continue

        if line.startswith(PlaylistFormat.METADATA_PREFIX):
            if pending is not None:
                dropped += 1
                logger.debug(f"Dropping metadata on line {pending[0]}: no URL before line {line_number}")
            pending = (line_number, parse_metadata_line(line))
        elif line.startswith(PlaylistFormat.URL_PREFIX) and pending is not None:
            metadata_line, name = pending
            pending = None
            viewer_count = extract_viewer_count(name)
            entries.append(
                RawEntry(
                    name=name,
                    is_live=classify_status(name, viewer_count) is StreamStatus.LIVE,
                    viewer_count=viewer_count,
                    url=line,
                    line_number=metadata_line,
                )
            )

    if pending is not None:
        dropped += 1
        logger.debug(f"Dropping metadata on line {pending[0]}: end of input before URL")

    logger.debug(f"Parsed {len(entries)} playlist entries ({dropped} dropped)")
    return entries


# Short alias used by the registry and tests
parse = parse_playlist
