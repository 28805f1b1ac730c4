"""Command-line entry point printing changes below a directory."""
from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import List, Optional

from .config import ConfigError, WatchConfig, load_config
from .fs import LocalFileSystem
from .pattern import PatternError
from .watcher import Watcher, WatcherError

logger = logging.getLogger("globwatch")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="globwatch",
        description="Watch a directory for files matching a glob pattern",
    )
    parser.add_argument("directory", nargs="?", help="Directory to watch")
    parser.add_argument("--pattern", help="Pattern of files to watch (default: **/*)")
    parser.add_argument(
        "--interval",
        type=float,
        help="Seconds between change detection passes (default: 1.0)",
    )
    parser.add_argument("--config", help="Path to an optional YAML configuration file")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )

    config = WatchConfig()
    if args.config:
        try:
            config = load_config(Path(args.config))
        except ConfigError as exc:
            logger.error("%s", exc)
            raise SystemExit(2) from exc

    if args.directory:
        config.root_path = Path(args.directory).resolve()
    if args.pattern is not None:
        config.pattern = args.pattern
    if args.interval is not None:
        config.poll_interval = args.interval

    if config.root_path is None:
        print(f"{parser.prog}: missing directory", file=sys.stderr)
        parser.print_usage(sys.stderr)
        raise SystemExit(1)

    try:
        watcher = Watcher(
            LocalFileSystem(config.root_path),
            config.pattern,
            config.poll_interval,
            buffer_size=config.buffer_size,
        )
    except (PatternError, ValueError) as exc:
        print(f"{parser.prog}: unable to create watcher: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc

    try:
        watcher.start()
    except WatcherError as exc:
        print(f"{parser.prog}: unable to start watcher: {exc}", file=sys.stderr)
        raise SystemExit(3) from exc

    stop = threading.Event()
    signal.signal(signal.SIGINT, lambda signum, frame: stop.set())
    signal.signal(signal.SIGTERM, lambda signum, frame: stop.set())

    printers = [
        threading.Thread(target=_print_events, args=(watcher,), daemon=True),
        threading.Thread(target=_print_errors, args=(watcher, parser.prog), daemon=True),
    ]
    for printer in printers:
        printer.start()

    stop.wait()
    watcher.close()
    for printer in printers:
        printer.join()


def _print_events(watcher: Watcher) -> None:
    for event in watcher.events:
        print("%8s %s" % (event.event_type.value, event.path), flush=True)


def _print_errors(watcher: Watcher, prog: str) -> None:
    for error in watcher.errors:
        print(f"{prog}: failed to detect changes: {error}", file=sys.stderr, flush=True)


if __name__ == "__main__":
    main()
