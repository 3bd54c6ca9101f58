import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from . import config, ui
from .app import PlaylistWatchApp
from .constants import AppMetadata
from .events import EventKind
from .models import QueryOptions, SortKey, SortOrder, StatusFilter


def setup_logging(level: str) -> None:
    """Sets up logging configuration for the application."""
    from .logging_config import setup_logging as setup_enhanced_logging

    setup_enhanced_logging(log_level=level, enable_console=True, enable_colors=True)
    logging.getLogger(config.APP_NAME).info("Logging system initialized")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=config.APP_NAME,
        description=AppMetadata.DESCRIPTION,
    )
    parser.add_argument("--live-only", action="store_true",
                        default=not config.get_show_offline_streams(),
                        help="Only show live streams (default from config)")
    parser.add_argument("--all", dest="live_only", action="store_false",
                        help="Show offline streams too")
    parser.add_argument("--search", help="Filter by streamer or category")
    parser.add_argument("--min-viewers", type=int, help="Hide streams below this viewer count")
    parser.add_argument("--sort", choices=[k.value for k in SortKey],
                        default=config.get_sort_by())
    parser.add_argument("--order", choices=[o.value for o in SortOrder],
                        default=config.get_sort_order())
    parser.add_argument("--force", action="store_true",
                        help="Bypass HTTP caches when fetching the playlist")
    parser.add_argument("--watch", action="store_true",
                        help="Keep running and redraw on every refresh")
    parser.add_argument("--select", metavar="STREAM_ID",
                        help="Play the stream with this id without prompting")
    parser.add_argument("--no-prompt", action="store_true",
                        help="Do not ask which stream to play")
    parser.add_argument("--auto-refresh", choices=["on", "off"],
                        help="Turn periodic refresh on or off and save the choice")
    parser.add_argument("--log-level", default=config.get_log_level())
    return parser


def query_options_from_args(args: argparse.Namespace) -> QueryOptions:
    return QueryOptions(
        status_filter=StatusFilter.LIVE if args.live_only else StatusFilter.ALL,
        search_text=args.search,
        min_viewers=args.min_viewers,
        sort_key=SortKey(args.sort),
        sort_order=SortOrder(args.order),
    )


def render(app: PlaylistWatchApp, options: QueryOptions) -> List:
    registry = app.registry
    streams = registry.query(options)
    selected = registry.selected
    ui.display_streams(streams, title="--- Streams ---",
                       selected_id=selected.id if selected else None, now=registry.now())
    ui.display_statistics(registry.get_statistics())
    return streams


async def run(args: argparse.Namespace) -> int:
    options = query_options_from_args(args)
    app = PlaylistWatchApp()
    try:
        bus = app.bus
        bus.subscribe(EventKind.STREAMS_UPDATED, ui.on_streams_updated)
        bus.subscribe(EventKind.STREAMS_ERROR, ui.on_streams_error)
        bus.subscribe(EventKind.STREAM_CHANGED, ui.on_stream_changed)
        bus.subscribe(EventKind.PLAY_STREAM, ui.on_play_stream)

        if args.auto_refresh:
            app.set_auto_refresh(args.auto_refresh == "on")

        outcome = await app.start(force=args.force, run_scheduler=args.watch)
        if outcome is not None and not outcome.streams:
            ui.display_empty_state()
            if not args.watch:
                return 1

        streams = render(app, options)

        if args.select:
            if app.registry.play(args.select) is None:
                ui.console.print(f"No stream with id '{args.select}'.", style="error")
                return 1
        elif streams and not args.no_prompt and not args.watch and sys.stdin.isatty():
            index = await ui.prompt_stream_number(len(streams))
            if index is not None:
                app.registry.play(streams[index].id)

        if args.watch:
            bus.subscribe(EventKind.STREAMS_UPDATED, lambda _event: render(app, options))
            ui.console.print("Watching for updates. Press Ctrl+C to exit.", style="dimmed")
            while True:
                await asyncio.sleep(3600)
        return 0
    finally:
        await app.close()


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    logger = logging.getLogger(config.APP_NAME)
    logger.info("playlistwatch started.")

    try:
        exit_code = asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("Application interrupted by user (KeyboardInterrupt).")
        ui.console.print("\nInterrupted. Goodbye!", style="info")
        exit_code = 0
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
