"""
Stream registry.

Owns the authoritative list of Stream entities and the selected stream.
Lifecycle: construct -> ``await init()`` (restore snapshot) -> operate
(refresh / query / select) -> ``await dispose()``.

The registry is single-threaded and cooperative. ``refresh`` is the only
suspending operation, and at most one fetch is ever in flight: a refresh
requested while another is running joins it instead of issuing a second GET.
"""

import asyncio
import logging
import time
from dataclasses import replace
from typing import Any, Callable, List, Optional

from pydantic import ValidationError

from . import config
from .constants import ExpiryConstants, StorageKeys
from .database import SnapshotDatabase
from .events import (
    EventBus,
    PlayStream,
    StopStream,
    StreamChanged,
    StreamsError,
    StreamsUpdated,
)
from .exceptions import PlaylistError, PlaylistFetchError, SnapshotStoreError
from .models import (
    QueryOptions,
    RefreshOutcome,
    RegistrySnapshot,
    SortKey,
    SortOrder,
    StatusFilter,
    Stream,
    StreamStatistics,
)
from .normalizer import normalize_all
from .parser import parse_playlist
from .playlist_client import PlaylistClient

logger = logging.getLogger(config.APP_NAME + ".registry")


class StreamRegistry:
    """
    In-memory stream store with snapshot persistence and typed events.

    Args:
        client: Playlist fetcher (anything with ``async fetch(force) -> str``)
        database: Snapshot store. None keeps state in memory only.
        bus: Event bus; a private one is created when omitted
        clock: Wall-clock source in epoch seconds, injectable for tests
        snapshot_max_age: Persisted snapshots older than this are ignored
    """

    def __init__(
        self,
        client: PlaylistClient,
        database: Optional[SnapshotDatabase] = None,
        bus: Optional[EventBus] = None,
        clock: Callable[[], float] = time.time,
        snapshot_max_age: float = ExpiryConstants.SNAPSHOT_MAX_AGE_SECONDS,
    ):
        self.client = client
        self.database = database
        self.bus = bus or EventBus()
        self._clock = clock
        self.snapshot_max_age = snapshot_max_age

        self._streams: List[Stream] = []
        self._selected: Optional[Stream] = None
        self._inflight: Optional["asyncio.Task[RefreshOutcome]"] = None
        self._last_refreshed_at: Optional[float] = None
        self._data_timestamp: Optional[float] = None  # When the collection was fetched
        self._disposed = False

    # --- State accessors ---

    @property
    def streams(self) -> List[Stream]:
        """Copy of the current collection in playlist order."""
        return list(self._streams)

    @property
    def selected(self) -> Optional[Stream]:
        return self._selected

    @property
    def is_refreshing(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    @property
    def last_refreshed_at(self) -> Optional[float]:
        """Epoch seconds of the last successful fetch, or None."""
        return self._last_refreshed_at

    def now(self) -> float:
        """Current time according to the registry clock."""
        return self._clock()

    def get_stream(self, stream_id: str) -> Optional[Stream]:
        for stream in self._streams:
            if stream.id == stream_id:
                return stream
        return None

    # --- Lifecycle ---

    async def init(self) -> None:
        """Restore the persisted snapshot and selection, if still fresh."""
        snapshot = self._load_snapshot()
        if snapshot is None or not snapshot.streams:
            logger.info("No usable snapshot to restore")
            return

        self._streams = list(snapshot.streams)
        self._data_timestamp = snapshot.timestamp_millis / 1000.0
        logger.info(f"Restored {len(self._streams)} streams from snapshot")
        self.bus.publish(StreamsUpdated(streams=self.streams, from_snapshot=True))
        self._restore_selection(snapshot.current_stream_id)

    async def dispose(self) -> None:
        """Cancel any in-flight refresh and drop all subscribers."""
        self._disposed = True
        task = self._inflight
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._inflight = None
        self.bus.clear()
        logger.debug("Registry disposed")

    # --- Refresh ---

    async def refresh(self, force: bool = False) -> RefreshOutcome:
        """
        Fetch, parse and normalize the playlist, then swap the collection.

        A call made while a refresh is already running waits for that refresh
        and returns its outcome with ``coalesced=True``; no second fetch is made.

        Args:
            force: Bypass HTTP caches for this fetch. The snapshot staleness
                bound still applies when falling back.
        """
        if self._disposed:
            raise RuntimeError("refresh() called on a disposed registry")

        if self.is_refreshing:
            logger.debug("Refresh already in flight; joining it")
            outcome = await asyncio.shield(self._inflight)
            return replace(outcome, coalesced=True)

        task = asyncio.ensure_future(self._run_refresh(force))
        self._inflight = task
        task.add_done_callback(self._clear_inflight)
        return await asyncio.shield(task)

    def _clear_inflight(self, task: "asyncio.Task[RefreshOutcome]") -> None:
        if self._inflight is task:
            self._inflight = None

    async def _run_refresh(self, force: bool) -> RefreshOutcome:
        started = time.perf_counter()
        try:
            text = await self.client.fetch(force=force)
            streams = normalize_all(parse_playlist(text))
        except PlaylistError as e:
            return self._handle_refresh_failure(e)
        except Exception as e:
            logger.error(f"Unexpected error during refresh: {e}", exc_info=True)
            error = PlaylistFetchError(
                f"Failed to load playlist: {type(e).__name__}: {e}",
                url=getattr(self.client, "url", None),
            )
            error.__cause__ = e
            return self._handle_refresh_failure(error)

        self._replace_streams(streams)
        self._last_refreshed_at = self._data_timestamp = self._clock()
        self._persist_snapshot()
        logger.info(
            f"Loaded {len(streams)} streams in {time.perf_counter() - started:.3f}s"
        )
        self.bus.publish(StreamsUpdated(streams=self.streams))
        return RefreshOutcome(success=True, streams=self.streams)

    def _handle_refresh_failure(self, error: PlaylistError) -> RefreshOutcome:
        logger.warning(f"Failed to load streams: {error}")
        from_snapshot = False

        if not self._streams:
            snapshot = self._load_snapshot()
            if snapshot is not None and snapshot.streams:
                self._streams = list(snapshot.streams)
                self._data_timestamp = snapshot.timestamp_millis / 1000.0
                from_snapshot = True
                logger.info(f"Falling back to {len(self._streams)} cached streams")
                self.bus.publish(StreamsUpdated(streams=self.streams, from_snapshot=True))
                self._restore_selection(snapshot.current_stream_id)

        self.bus.publish(StreamsError(error=error))
        return RefreshOutcome(
            success=False,
            streams=self.streams,
            error=error,
            from_snapshot=from_snapshot,
        )

    def _replace_streams(self, streams: List[Stream]) -> None:
        """Swap the collection and re-resolve the selection by id."""
        self._streams = list(streams)
        if self._selected is None:
            return

        current = self.get_stream(self._selected.id)
        if current is None:
            logger.info(f"Selected stream {self._selected.id} is gone; clearing selection")
            self._selected = None
            self._persist_selection()
            self.bus.publish(StreamChanged(stream=None))
        else:
            self._selected = current

    # --- Query ---

    def query(self, options: Optional[QueryOptions] = None, **overrides: Any) -> List[Stream]:
        """
        Filter and sort the collection without mutating it.

        Filters are conjunctive. ``overrides`` are QueryOptions fields applied
        on top of ``options``, e.g. ``query(status_filter="live")``.
        """
        opts = options or QueryOptions()
        if overrides:
            opts = QueryOptions.model_validate({**opts.model_dump(), **overrides})

        results = [stream for stream in self._streams if self._matches(stream, opts)]
        return self._sort(results, opts.sort_key, opts.sort_order)

    @staticmethod
    def _matches(stream: Stream, opts: QueryOptions) -> bool:
        if opts.status_filter is StatusFilter.LIVE and not stream.is_live:
            return False
        if opts.status_filter is StatusFilter.OFFLINE and stream.is_live:
            return False
        if opts.min_viewers is not None and stream.viewer_count < opts.min_viewers:
            return False
        if opts.search_text:
            needle = opts.search_text.lower()
            if needle not in stream.handle.lower() and needle not in stream.category.lower():
                return False
        return True

    @staticmethod
    def _sort(streams: List[Stream], key: SortKey, order: SortOrder) -> List[Stream]:
        reverse = order is SortOrder.DESC
        if key is SortKey.NAME:
            return sorted(streams, key=lambda s: s.handle.lower(), reverse=reverse)

        by_viewers = sorted(streams, key=lambda s: s.viewer_count, reverse=reverse)
        if key is SortKey.STATUS:
            # Live entries always lead; viewer order is kept within each group
            return sorted(by_viewers, key=lambda s: not s.is_live)
        return by_viewers

    # --- Selection & playback ---

    def select(self, stream_id: str) -> Optional[Stream]:
        """
        Make ``stream_id`` the selected stream.

        Unknown ids are ignored (no event). Re-selecting the current stream
        returns it without an event.
        """
        stream = self.get_stream(stream_id)
        if stream is None:
            logger.debug(f"Ignoring selection of unknown stream id {stream_id}")
            return None
        if self._selected is not None and self._selected.id == stream.id:
            return self._selected

        self._selected = stream
        self._persist_selection()
        self._persist_snapshot()
        self.bus.publish(StreamChanged(stream=stream))
        logger.info(f"Selected stream {stream.handle} ({stream.id})")
        return stream

    def clear_selection(self) -> None:
        if self._selected is None:
            return
        self._selected = None
        self._persist_selection()
        self._persist_snapshot()
        self.bus.publish(StreamChanged(stream=None))

    def play(self, stream_id: str) -> Optional[Stream]:
        """Select ``stream_id`` and ask the player to start it."""
        stream = self.select(stream_id)
        if stream is None:
            return None
        now = self._clock()
        if stream.is_expired_at(now):
            logger.warning(f"Playback URL for {stream.handle} is expired; a refresh is advised")
        self.bus.publish(PlayStream(stream=stream, requested_at=now))
        return stream

    def stop(self) -> None:
        self.bus.publish(StopStream())

    # --- Statistics ---

    def get_statistics(self) -> StreamStatistics:
        """
        Counts over the current collection.

        ``live`` excludes expired URLs; ``expired`` ignores classification;
        ``offline`` is the remainder; ``total_viewers`` sums the live subset.
        """
        now = self._clock()
        live = [s for s in self._streams if s.is_live and not s.is_expired_at(now)]
        expired = sum(1 for s in self._streams if s.is_expired_at(now))
        total = len(self._streams)
        return StreamStatistics(
            total=total,
            live=len(live),
            offline=total - len(live) - expired,
            expired=expired,
            total_viewers=sum(s.viewer_count for s in live),
        )

    # --- Persistence ---

    def _persist_snapshot(self) -> None:
        """Write the bulk snapshot, stamped with when its data was fetched."""
        if self.database is None or self._data_timestamp is None:
            return
        snapshot = RegistrySnapshot(
            streams=self._streams,
            current_stream_id=self._selected.id if self._selected else None,
            timestamp_millis=int(self._data_timestamp * 1000),
        )
        try:
            self.database.set(StorageKeys.STREAMS_DATA, snapshot.to_json())
        except SnapshotStoreError as e:
            logger.warning(f"Could not persist stream snapshot: {e}")

    def _persist_selection(self) -> None:
        if self.database is None:
            return
        try:
            if self._selected is None:
                self.database.delete(StorageKeys.SELECTED_STREAM)
            else:
                self.database.set(
                    StorageKeys.SELECTED_STREAM, self._selected.model_dump_json()
                )
        except SnapshotStoreError as e:
            logger.warning(f"Could not persist selected stream: {e}")

    def _load_snapshot(self) -> Optional[RegistrySnapshot]:
        """Read the bulk snapshot, discarding it when corrupt or stale."""
        if self.database is None:
            return None
        raw = self.database.get(StorageKeys.STREAMS_DATA)
        if raw is None:
            return None
        try:
            snapshot = RegistrySnapshot.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring corrupt stream snapshot: {e.error_count()} errors")
            return None

        age = snapshot.age_seconds(self._clock())
        if age > self.snapshot_max_age:
            logger.info(f"Ignoring stream snapshot that is {age:.0f}s old")
            return None
        return snapshot

    def _restore_selection(self, fallback_id: Optional[str]) -> None:
        """Resolve the persisted selection against the current collection."""
        stream_id = fallback_id
        if self.database is not None:
            raw = self.database.get(StorageKeys.SELECTED_STREAM)
            if raw is not None:
                try:
                    stream_id = Stream.model_validate_json(raw).id
                except ValidationError:
                    logger.warning("Ignoring corrupt selected stream entry")

        if not stream_id:
            return
        stream = self.get_stream(stream_id)
        if stream is None:
            logger.debug(f"Persisted selection {stream_id} not in collection")
            return
        self._selected = stream
        self.bus.publish(StreamChanged(stream=stream))
