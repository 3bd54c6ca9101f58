"""
Unit tests for the pydantic models.
"""
import pytest
from pydantic import ValidationError

from playlistwatch.models import (
    QueryOptions,
    RawEntry,
    RegistrySnapshot,
    SortKey,
    StatusFilter,
    Stream,
    StreamStatus,
)


def make_stream(**overrides) -> Stream:
    data = {
        "id": "abc123def0",
        "raw_name": "alice [LIVE] - 120 viewers",
        "handle": "alice",
        "display_name": "alice",
        "safe_display_name": "alice",
        "viewer_count": 120,
        "is_live": True,
        "status": StreamStatus.LIVE,
        "playback_url": "https://h/a.m3u8",
        "expires_at": 10_000,
    }
    data.update(overrides)
    return Stream(**data)


class TestRawEntry:
    def test_requires_url(self):
        with pytest.raises(ValidationError):
            RawEntry(name="alice", url="")

    def test_rejects_negative_viewers(self):
        with pytest.raises(ValidationError):
            RawEntry(name="alice", url="https://h/a", viewer_count=-1)

    def test_frozen(self):
        entry = RawEntry(name="alice", url="https://h/a")
        with pytest.raises(ValidationError):
            entry.name = "bob"


class TestStreamExpiry:
    def test_flips_at_safety_margin(self):
        stream = make_stream(expires_at=10_000)

        assert stream.is_expired_at(9_699) is False
        assert stream.is_expired_at(9_700) is True

    def test_no_expiry_never_expires(self):
        stream = make_stream(expires_at=None)

        assert stream.is_expired_at(1e12) is False
        assert stream.seconds_until_expiry(0) is None

    def test_effective_status(self):
        stream = make_stream(expires_at=10_000)

        assert stream.effective_status_at(0) is StreamStatus.LIVE
        assert stream.effective_status_at(9_800) is StreamStatus.EXPIRED
        assert stream.status is StreamStatus.LIVE

    def test_effective_status_uses_wall_clock(self):
        assert make_stream(expires_at=None).effective_status is StreamStatus.LIVE
        assert make_stream(expires_at=1_000).effective_status is StreamStatus.EXPIRED
        assert make_stream(expires_at=1_000).is_expired is True

    def test_seconds_until_expiry(self):
        stream = make_stream(expires_at=10_000)
        assert stream.seconds_until_expiry(9_000) == 1_000
        assert stream.seconds_until_expiry(11_000) == -1_000

    def test_expired_status_cannot_be_stored(self):
        with pytest.raises(ValidationError):
            make_stream(status=StreamStatus.EXPIRED)

    def test_dict_round_trip(self):
        stream = make_stream()
        assert Stream.from_dict(stream.to_dict()) == stream


class TestQueryOptions:
    def test_defaults(self):
        opts = QueryOptions()
        assert opts.status_filter is StatusFilter.ALL
        assert opts.sort_key is SortKey.VIEWERS
        assert opts.search_text is None

    def test_blank_search_is_none(self):
        assert QueryOptions(search_text="   ").search_text is None

    def test_search_is_stripped(self):
        assert QueryOptions(search_text="  ali ").search_text == "ali"

    def test_string_enums(self):
        opts = QueryOptions(status_filter="live", sort_key="name", sort_order="asc")
        assert opts.status_filter is StatusFilter.LIVE

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            QueryOptions(colour="red")

    def test_negative_min_viewers_rejected(self):
        with pytest.raises(ValidationError):
            QueryOptions(min_viewers=-5)


class TestRegistrySnapshot:
    def test_json_uses_storage_keys(self):
        snapshot = RegistrySnapshot(
            streams=[make_stream()], current_stream_id="abc123def0", timestamp_millis=5_000
        )

        raw = snapshot.to_json()

        assert '"currentStreamId":"abc123def0"' in raw
        assert '"timestampMillis":5000' in raw
        restored = RegistrySnapshot.model_validate_json(raw)
        assert restored.streams == snapshot.streams
        assert restored.current_stream_id == "abc123def0"

    def test_age(self):
        snapshot = RegistrySnapshot(timestamp_millis=5_000)
        assert snapshot.age_seconds(305.0) == 300.0
