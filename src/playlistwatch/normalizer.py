"""
Stream normalizer.

Builds the canonical Stream entity from a parsed RawEntry: descriptor fields,
deterministic id, derived URLs and the access-token expiry.
"""

import hashlib
import html
import logging
from typing import Iterable, List, Optional
from urllib.parse import parse_qs, quote, urlparse

from pydantic import BaseModel, ConfigDict, ValidationError

from . import config
from .constants import DescriptorDefaults, PlaylistFormat, UrlTemplates
from .descriptor import (
    classify_status,
    extract_category,
    extract_handle,
    extract_viewer_count,
)
from .models import RawEntry, Stream, StreamStatus

logger = logging.getLogger(config.APP_NAME + ".normalizer")


class AccessToken(BaseModel):
    """Decoded ``token`` query parameter. Only ``expires`` is used."""

    model_config = ConfigDict(extra="allow")

    expires: Optional[int] = None


def generate_stream_id(name: str) -> str:
    """Deterministic short id: SHA-256 of the descriptor, hex, truncated."""
    digest = hashlib.sha256(name.encode("utf-8")).hexdigest()
    return digest[:DescriptorDefaults.STREAM_ID_LENGTH]


def parse_token(url: str) -> Optional[AccessToken]:
    """
    Decode the access token carried in the URL's ``token`` query parameter.

    Returns None when the parameter is missing or its payload is not a JSON
    object; neither case is an error.
    """
    try:
        query = parse_qs(urlparse(url).query)
    except ValueError:
        return None

    values = query.get(PlaylistFormat.TOKEN_QUERY_PARAM)
    if not values:
        return None

    try:
        return AccessToken.model_validate_json(values[0])
    except ValidationError:
        logger.debug(f"Malformed access token in URL: {url[:80]}")
        return None


def extract_expiry(url: str) -> Optional[int]:
    """Epoch-seconds expiry of the URL's access token, if determinable."""
    token = parse_token(url)
    return token.expires if token is not None else None


def build_thumbnail_url(handle: str) -> str:
    return UrlTemplates.THUMBNAIL.format(handle=quote(handle, safe=""))


def build_chat_url(handle: str) -> str:
    return UrlTemplates.CHAT.format(handle=quote(handle, safe=""))


def build_share_url(handle: str) -> str:
    return UrlTemplates.SHARE.format(handle=quote(handle, safe=""))


def normalize(entry: RawEntry) -> Stream:
    """Build the canonical Stream for one playlist entry."""
    name = entry.name
    viewer_count = extract_viewer_count(name)
    status = classify_status(name, viewer_count)
    handle = extract_handle(name)

    return Stream(
        id=generate_stream_id(name),
        raw_name=name,
        handle=handle,
        display_name=handle,
        safe_display_name=html.escape(handle, quote=True),
        category=extract_category(name),
        viewer_count=viewer_count,
        is_live=status is StreamStatus.LIVE,
        status=status,
        playback_url=entry.url,
        expires_at=extract_expiry(entry.url),
        thumbnail_url=build_thumbnail_url(handle),
        chat_url=build_chat_url(handle),
        share_url=build_share_url(handle),
    )


def normalize_all(entries: Iterable[RawEntry]) -> List[Stream]:
    """Normalize a parsed batch, preserving order."""
    return [normalize(entry) for entry in entries]
