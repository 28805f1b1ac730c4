"""Polling file watcher driven by glob patterns with a recursive wildcard."""
from .channel import Channel, ChannelClosed
from .events import Event, EventType
from .fs import FileSystem, LocalFileSystem, WalkEntry, WalkError
from .pattern import Pattern, PatternError, Token, TokenType, compile, glob, match
from .watcher import Watcher, WatcherError, WatcherState, WatcherStats, diff_modtimes

__all__ = [
    "Channel",
    "ChannelClosed",
    "Event",
    "EventType",
    "FileSystem",
    "LocalFileSystem",
    "Pattern",
    "PatternError",
    "Token",
    "TokenType",
    "WalkEntry",
    "WalkError",
    "Watcher",
    "WatcherError",
    "WatcherState",
    "WatcherStats",
    "compile",
    "diff_modtimes",
    "glob",
    "match",
]
