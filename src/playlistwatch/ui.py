"""
Terminal presentation for playlistwatch.

A consumer of the registry's query API and events; holds no stream state.
"""

import logging
import time
from typing import List, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.styles import Style
from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from . import config
from .events import PlayStream, StreamChanged, StreamsError, StreamsUpdated
from .exceptions import classify_playback_failure
from .models import Stream, StreamStatistics, StreamStatus

logger = logging.getLogger(config.APP_NAME + ".ui")

custom_theme = Theme({
    "info": "dim cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "green",
    "highlight": "bold magenta",
    "dimmed": "dim",
    "title": "bold white on blue",
    "live": "bold red",
    "offline": "dim",
    "expired": "yellow",
})
console = Console(theme=custom_theme)

prompt_style = Style.from_dict({
    "prompt-prefix": "bg:#111111 #ansicyan",
})

STATUS_STYLES = {
    StreamStatus.LIVE: "live",
    StreamStatus.OFFLINE: "offline",
    StreamStatus.EXPIRED: "expired",
    StreamStatus.UNKNOWN: "offline",
}


def format_viewer_count(count: int) -> str:
    """Formats the viewer count nicely (e.g., 1234 -> 1.2K)."""
    if count < 1000:
        return f"{count}"
    elif count < 1_000_000:
        return f"{count / 1000:.1f}K"
    else:
        return f"{count / 1_000_000:.1f}M"


def status_label(stream: Stream, now: Optional[float] = None) -> Text:
    status = stream.effective_status_at(time.time() if now is None else now)
    # Unknown is shown as offline
    label = "OFFLINE" if status is StreamStatus.UNKNOWN else status.value.upper()
    return Text(label, style=STATUS_STYLES[status])


def build_stream_table(streams: List[Stream], title: str = "Streams",
                       selected_id: Optional[str] = None,
                       now: Optional[float] = None) -> Table:
    """Render streams as a numbered rich table."""
    table = Table(title=title, title_style="title", expand=False)
    table.add_column("#", justify="right", style="bold white")
    table.add_column("Streamer", style="bold cyan")
    table.add_column("Category")
    table.add_column("Status")
    table.add_column("Viewers", justify="right", style="bold red")

    if now is None:
        now = time.time()
    for index, stream in enumerate(streams, start=1):
        marker = "▶ " if stream.id == selected_id else ""
        table.add_row(
            str(index),
            Text(marker + stream.display_name),
            Text(stream.category),
            status_label(stream, now),
            format_viewer_count(stream.viewer_count),
        )
    return table


def display_streams(streams: List[Stream], title: str = "Streams",
                    selected_id: Optional[str] = None,
                    now: Optional[float] = None) -> None:
    if not streams:
        console.print("No streams match the current filters.", style="dimmed")
        return
    console.print(build_stream_table(streams, title=title, selected_id=selected_id, now=now))


def display_statistics(stats: StreamStatistics) -> None:
    text = Text()
    text.append(f"{stats.total} streams", style="bold white")
    text.append(" | ", style="dimmed").append(f"{stats.live} live", style="live")
    text.append(" | ", style="dimmed").append(f"{stats.offline} offline", style="offline")
    if stats.expired:
        text.append(" | ", style="dimmed").append(f"{stats.expired} expired", style="expired")
    text.append(" | ", style="dimmed").append(
        f"{format_viewer_count(stats.total_viewers)} viewers", style="info"
    )
    console.print(text)


def display_empty_state() -> None:
    """First-run failure with no cache: explicit empty state with a retry hint."""
    console.print("No streams available.", style="warning")
    console.print("The playlist could not be loaded. Run again with --force to retry.", style="dimmed")


async def prompt_stream_number(count: int) -> Optional[int]:
    """
    Ask for a 1-based stream number. Returns a 0-based index or None.

    Awaited on the caller's event loop.
    """
    session = PromptSession(style=prompt_style)
    try:
        answer = await session.prompt_async(
            [("class:prompt-prefix", f" Play stream [1-{count}] (Enter to skip): ")],
        )
    except (EOFError, KeyboardInterrupt):
        console.print("\nSelection cancelled.", style="warning")
        return None

    answer = answer.strip()
    if not answer:
        return None
    if not answer.isdigit() or not 1 <= int(answer) <= count:
        console.print(f"Invalid choice '{answer}'.", style="error")
        return None
    return int(answer) - 1


# --- Event handlers ---


def on_streams_updated(event: StreamsUpdated) -> None:
    source = "cache" if event.from_snapshot else "playlist"
    logger.debug(f"{len(event.streams)} streams loaded from {source}")
    if event.from_snapshot:
        console.print(f"Showing {len(event.streams)} cached streams.", style="info")


def on_streams_error(event: StreamsError) -> None:
    console.print(f"Failed to load streams: {event.error}", style="error")


def on_stream_changed(event: StreamChanged) -> None:
    if event.stream is None:
        console.print("Selection cleared.", style="dimmed")
    else:
        console.print(f"Selected {event.stream.display_name}.", style="info")


def on_play_stream(event: PlayStream) -> None:
    """Stand-in player: print the playback details."""
    stream = event.stream
    now = time.time() if event.requested_at is None else event.requested_at
    if stream.is_expired_at(now):
        failure = classify_playback_failure("", stream, now=now)
        console.print(failure.message, style="warning")
    console.print(f"Now playing: {stream.display_name}", style="success")
    console.print(f"  Playback URL: {stream.playback_url}", style="dimmed", soft_wrap=True)
    console.print(f"  Chat:         {stream.chat_url}", style="dimmed")
    console.print(f"  Share:        {stream.share_url}", style="dimmed")
