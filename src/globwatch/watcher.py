"""Polling watcher reporting created, modified and deleted files."""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from .channel import Channel
from .events import Event, EventType
from .fs import FileSystem, WalkError
from .pattern import Pattern, compile

logger = logging.getLogger(__name__)

ModTimes = Dict[str, float]
Observed = Dict[str, Optional[float]]

DEFAULT_INTERVAL = 1.0
DEFAULT_BUFFER_SIZE = 10
# Upper bound on how long an external cancel event goes unnoticed.
CANCEL_POLL_INTERVAL = 0.05


class WatcherError(RuntimeError):
    """Raised when a watcher cannot be started or is used in the wrong state."""


class WatcherState(str, Enum):
    """Lifecycle of a :class:`Watcher`."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"
    RUNNING = "running"
    CLOSED = "closed"


@dataclass
class WatcherStats:
    """Counters kept by the watcher for observability."""

    ticks: int = 0
    events_emitted: int = 0
    errors_reported: int = 0


class Watcher:
    """Polls a file system and reports changes to files matching a pattern.

    Events are published on :attr:`events` and non-fatal errors on
    :attr:`errors`. Both channels are bounded; the watch loop blocks while
    either is full, so consumers must drain both of them.

    Example:
        watcher = Watcher(LocalFileSystem("/project"), "**/*_test.py", 0.5)
        watcher.start()
        for event in watcher.events:
            print(event)
    """

    def __init__(
        self,
        fs: FileSystem,
        pattern: Union[str, Pattern],
        interval: float = DEFAULT_INTERVAL,
        *,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        if buffer_size < 1:
            raise ValueError("buffer_size must be at least 1")

        self._fs = fs
        self._pattern = compile(pattern) if isinstance(pattern, str) else pattern
        self._interval = float(interval)
        self._modtimes: ModTimes = {}
        self._events: Channel[Event] = Channel(buffer_size)
        self._errors: Channel[Exception] = Channel(buffer_size)
        self._state = WatcherState.UNINITIALIZED
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._stats = WatcherStats()

    @property
    def pattern(self) -> Pattern:
        return self._pattern

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def events(self) -> Channel[Event]:
        return self._events

    @property
    def errors(self) -> Channel[Exception]:
        return self._errors

    @property
    def state(self) -> WatcherState:
        return self._state

    @property
    def stats(self) -> WatcherStats:
        return self._stats

    def initialize(self) -> None:
        """Record the current modification times without emitting events.

        Raises:
            WatcherError: if the tree cannot be walked or a file cannot be stat'ed
        """

        with self._state_lock:
            if self._state is not WatcherState.UNINITIALIZED:
                raise WatcherError(f"cannot initialize a watcher in state {self._state.value}")
            self._modtimes = self._seed()
            self._state = WatcherState.READY
        logger.debug("Seeded watcher for %r with %s files", self._pattern.pattern, len(self._modtimes))

    def start(self) -> None:
        """Start watching until :meth:`close` is called."""

        self.start_with_cancel(None)

    def start_with_cancel(self, cancel: Optional[threading.Event]) -> None:
        """Start watching until :meth:`close` is called or ``cancel`` is set.

        The initial state is determined synchronously so that startup errors
        reach the caller; change detection then runs on a daemon thread.
        """

        if self._state is WatcherState.UNINITIALIZED:
            self.initialize()

        with self._state_lock:
            if self._state is not WatcherState.READY:
                raise WatcherError(f"cannot start a watcher in state {self._state.value}")
            self._state = WatcherState.RUNNING
            self._thread = threading.Thread(
                target=self._run,
                args=(cancel,),
                name=f"globwatch-{self._pattern.pattern}",
                daemon=True,
            )
            self._thread.start()

    def close(self, timeout: Optional[float] = None) -> None:
        """Stop watching and close both channels.

        Waits for an in-flight tick to finish. Closing a closed watcher does
        nothing.
        """

        with self._state_lock:
            if self._state is WatcherState.CLOSED:
                return
            thread = self._thread
            self._stop_event.set()
            if thread is None:
                self._shutdown()
                return

        thread.join(timeout)
        if thread.is_alive():
            logger.warning("Watcher for %r did not stop within %s seconds", self._pattern.pattern, timeout)

    def tick(self) -> List[Event]:
        """Run a single change detection pass and return the emitted events.

        Only valid on an initialized watcher whose loop is not running.
        """

        if self._state is not WatcherState.READY:
            raise WatcherError(f"cannot tick a watcher in state {self._state.value}")
        return self._tick()

    def _run(self, cancel: Optional[threading.Event]) -> None:
        logger.info("Watching %r every %ss", self._pattern.pattern, self._interval)
        try:
            started_at = time.monotonic()
            while self._wait_for_next_tick(started_at, cancel):
                started_at = time.monotonic()
                self._tick()
        finally:
            with self._state_lock:
                self._shutdown()
            logger.info(
                "Watcher stopped after %s ticks, %s events, %s errors",
                self._stats.ticks,
                self._stats.events_emitted,
                self._stats.errors_reported,
            )

    def _shutdown(self) -> None:
        self._state = WatcherState.CLOSED
        self._modtimes = {}
        self._events.close()
        self._errors.close()

    def _wait_for_next_tick(self, started_at: float, cancel: Optional[threading.Event]) -> bool:
        """Sleep until the next tick is due; return False if the loop should stop."""

        while True:
            if cancel is not None and cancel.is_set():
                return False
            remaining = self._interval - (time.monotonic() - started_at)
            if remaining <= 0:
                return not self._stop_event.is_set()
            if cancel is not None:
                remaining = min(remaining, CANCEL_POLL_INTERVAL)
            if self._stop_event.wait(remaining):
                return False

    def _seed(self) -> ModTimes:
        try:
            names = self._pattern.glob(self._fs)
        except WalkError as exc:
            raise WatcherError(f"failed to determine initial state: {exc}") from exc

        modtimes: ModTimes = {}
        for name in names:
            try:
                modtimes[name] = self._fs.modtime(name)
            except OSError as exc:
                raise WatcherError(f"failed to determine initial state of {name!r}: {exc}") from exc
        return modtimes

    def _tick(self) -> List[Event]:
        self._stats.ticks += 1
        try:
            names = self._pattern.glob(self._fs)
        except WalkError as exc:
            self._report(exc)
            return []

        observed: Observed = {}
        for name in names:
            try:
                observed[name] = self._fs.modtime(name)
            except OSError as exc:
                observed[name] = None
                self._report(exc)

        events, self._modtimes = diff_modtimes(self._modtimes, observed)
        for event in events:
            logger.debug("%s %s", event.event_type.value, event.path)
            self._events.put(event)
        self._stats.events_emitted += len(events)
        return events

    def _report(self, exc: Exception) -> None:
        logger.warning("Change detection for %r failed: %s", self._pattern.pattern, exc)
        self._stats.errors_reported += 1
        self._errors.put(exc)


def diff_modtimes(known: ModTimes, observed: Observed) -> Tuple[List[Event], ModTimes]:
    """Compare known modification times with a fresh observation.

    ``observed`` maps every currently matching path to its modification time,
    or to ``None`` if it could not be stat'ed; such paths keep their known
    state. Returns the events in emission order together with the new state.
    ``known`` is left untouched.
    """

    events: List[Event] = []
    updated: ModTimes = dict(known)

    for path, mtime in observed.items():
        if mtime is None:
            continue
        previous = known.get(path)
        if previous is None:
            updated[path] = mtime
            events.append(Event(EventType.CREATED, path))
        elif mtime > previous:
            updated[path] = mtime
            events.append(Event(EventType.MODIFIED, path))

    for path in known:
        if path not in observed:
            del updated[path]
            events.append(Event(EventType.DELETED, path))

    return events, updated
