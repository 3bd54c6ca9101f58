"""
Data models for playlistwatch.

This module defines the core data structures used throughout the application
using Pydantic for validation, serialization, and type safety.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import DescriptorDefaults, ExpiryConstants


class StreamStatus(str, Enum):
    """Enumeration of possible stream statuses with string serialization support."""

    LIVE = "live"
    OFFLINE = "offline"
    EXPIRED = "expired"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


class StatusFilter(str, Enum):
    ALL = "all"
    LIVE = "live"
    OFFLINE = "offline"  # Anything not classified live


class SortKey(str, Enum):
    VIEWERS = "viewers"
    NAME = "name"
    STATUS = "status"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class RawEntry(BaseModel):
    """One playlist record: a metadata line closed by its URL line."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., description="Descriptor text after the first comma")
    is_live: bool = Field(default=False)
    viewer_count: int = Field(default=0, ge=0)
    url: str = Field(..., min_length=1, description="Playback URL closing the record")
    line_number: int = Field(default=0, ge=0, description="Line of the #EXTINF: tag")


class Stream(BaseModel):
    """Canonical stream entity owned by the registry."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
    )

    id: str = Field(..., min_length=1, description="Deterministic digest of raw_name")
    raw_name: str = Field(..., description="Descriptor as it appeared in the playlist")
    handle: str = Field(default=DescriptorDefaults.UNKNOWN_HANDLE, min_length=1)
    display_name: str = Field(default=DescriptorDefaults.UNKNOWN_HANDLE)
    safe_display_name: str = Field(default=DescriptorDefaults.UNKNOWN_HANDLE)
    category: str = Field(default=DescriptorDefaults.DEFAULT_CATEGORY)
    viewer_count: int = Field(default=0, ge=0)
    is_live: bool = Field(default=False)
    status: StreamStatus = Field(default=StreamStatus.UNKNOWN)
    playback_url: str = Field(..., min_length=1)
    expires_at: Optional[int] = Field(
        default=None, description="Access-token expiry in epoch seconds"
    )
    thumbnail_url: str = Field(default="")
    chat_url: str = Field(default="")
    share_url: str = Field(default="")

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: StreamStatus) -> StreamStatus:
        """EXPIRED is computed at read time and never stored."""
        if v is StreamStatus.EXPIRED:
            raise ValueError("status cannot be stored as expired")
        return v

    def is_expired_at(self, now: float) -> bool:
        """Whether the playback URL is within the safety margin of expiring at ``now``."""
        if self.expires_at is None:
            return False
        return now >= self.expires_at - ExpiryConstants.SAFETY_MARGIN_SECONDS

    @property
    def is_expired(self) -> bool:
        return self.is_expired_at(time.time())

    def effective_status_at(self, now: float) -> StreamStatus:
        if self.is_expired_at(now):
            return StreamStatus.EXPIRED
        return self.status

    @property
    def effective_status(self) -> StreamStatus:
        return self.effective_status_at(time.time())

    def seconds_until_expiry(self, now: Optional[float] = None) -> Optional[float]:
        """Seconds left before the raw expiry instant (negative once past), or None."""
        if self.expires_at is None:
            return None
        current = time.time() if now is None else now
        return self.expires_at - current

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Stream":
        return cls.model_validate(data)


class QueryOptions(BaseModel):
    """Filter and sort options accepted by ``StreamRegistry.query``."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    status_filter: StatusFilter = Field(default=StatusFilter.ALL)
    search_text: Optional[str] = Field(default=None)
    min_viewers: Optional[int] = Field(default=None, ge=0)
    sort_key: SortKey = Field(default=SortKey.VIEWERS)
    sort_order: SortOrder = Field(default=SortOrder.DESC)

    @field_validator("search_text")
    @classmethod
    def validate_search_text(cls, v: Optional[str]) -> Optional[str]:
        """Blank search text disables the search filter."""
        if v is None or not v.strip():
            return None
        return v


class StreamStatistics(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: int = Field(default=0, ge=0)
    live: int = Field(default=0, ge=0)
    offline: int = Field(default=0, ge=0)
    expired: int = Field(default=0, ge=0)
    total_viewers: int = Field(default=0, ge=0)


class RegistrySnapshot(BaseModel):
    """Persisted form of the registry state."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    streams: List[Stream] = Field(default_factory=list)
    current_stream_id: Optional[str] = Field(default=None, alias="currentStreamId")
    timestamp_millis: int = Field(..., ge=0, alias="timestampMillis")

    def age_seconds(self, now: float) -> float:
        return now - self.timestamp_millis / 1000.0

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


@dataclass
class RefreshOutcome:
    """Result of one ``StreamRegistry.refresh`` call."""

    success: bool
    streams: List[Stream] = field(default_factory=list)
    error: Optional[Exception] = None
    from_snapshot: bool = False
    coalesced: bool = False
