"""CLI entry point for feedterm."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from urllib.parse import urlparse

from feedterm.app import App
from feedterm.config import Config, ConfigError, FeedSource, load_config

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="feedterm",
        description="Terminal feed reader",
    )
    parser.add_argument("urls", nargs="*", help="Feed URLs to show in addition to the configured feeds")
    parser.add_argument("-c", "--config", help="Config file (default: $FEEDTERM_CONFIG or ~/.config/feedterm/config.json)")
    parser.add_argument("-t", "--tick-rate", type=float, help="Ticks per second")
    parser.add_argument("-f", "--frame-rate", type=float, help="Frames per second")
    parser.add_argument("--mouse", action=argparse.BooleanOptionalAction, default=None, help="Capture mouse events")
    parser.add_argument("--paste", action=argparse.BooleanOptionalAction, default=None, help="Enable bracketed paste")
    parser.add_argument("--log-file", default="feedterm.log", help="Log file (the terminal is owned by the UI)")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Log level")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> Config:
    """Load the config file and apply command-line overrides."""
    config = load_config(args.config)
    overrides: dict[str, object] = {}
    if args.tick_rate is not None:
        overrides["tick_rate"] = args.tick_rate
    if args.frame_rate is not None:
        overrides["frame_rate"] = args.frame_rate
    if args.mouse is not None:
        overrides["mouse"] = args.mouse
    if args.paste is not None:
        overrides["paste"] = args.paste
    if args.urls:
        overrides["feeds"] = [
            *config.feeds,
            *(FeedSource(title=urlparse(url).netloc or url, url=url) for url in args.urls),
        ]
    if not overrides:
        return config
    try:
        return Config.model_validate({**config.model_dump(), **overrides})
    except ValueError as e:
        raise ConfigError(f"invalid command-line option: {e}") from e


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        filename=args.log_file,
        level=getattr(logging, args.log_level),
        format=LOG_FORMAT,
    )

    try:
        config = build_config(args)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        asyncio.run(App(config).run())
    except KeyboardInterrupt:
        return 130
    except Exception as e:
        # The terminal has been restored by the time we get here
        logging.getLogger(__name__).exception("feedterm crashed")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
