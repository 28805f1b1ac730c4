"""Bounded, closable hand-off between the watch loop and its consumers."""
from __future__ import annotations

import queue
import threading
import time
from collections import deque
from typing import Deque, Generic, Iterator, Optional, TypeVar

T = TypeVar("T")


class ChannelClosed(Exception):
    """Raised when putting to a closed channel or reading a drained one."""


class Channel(Generic[T]):
    """A bounded FIFO with blocking puts.

    Producers block while the channel is full, so consumers must keep
    draining it. Once closed, remaining items can still be read; after that
    readers get :class:`ChannelClosed` and iteration stops.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("channel capacity must be at least 1")
        self._capacity = capacity
        self._items: Deque[T] = deque()
        self._closed = False
        self._lock = threading.Lock()
        self._not_empty = threading.Condition(self._lock)
        self._not_full = threading.Condition(self._lock)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def put(self, item: T) -> None:
        """Append ``item``, waiting for free space if necessary."""

        with self._not_full:
            while len(self._items) >= self._capacity and not self._closed:
                self._not_full.wait()
            if self._closed:
                raise ChannelClosed("put to closed channel")
            self._items.append(item)
            self._not_empty.notify()

    def get(self, timeout: Optional[float] = None) -> T:
        """Remove and return the oldest item.

        Raises:
            ChannelClosed: if the channel is closed and drained
            queue.Empty: if ``timeout`` elapses first
        """

        deadline = None if timeout is None else time.monotonic() + timeout
        with self._not_empty:
            while not self._items:
                if self._closed:
                    raise ChannelClosed("channel closed")
                if deadline is None:
                    self._not_empty.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise queue.Empty
                self._not_empty.wait(remaining)
            item = self._items.popleft()
            self._not_full.notify()
            return item

    def close(self) -> None:
        """Close the channel and wake every waiter. Closing twice is harmless."""

        with self._lock:
            self._closed = True
            self._not_empty.notify_all()
            self._not_full.notify_all()

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.get()
            except ChannelClosed:
                return
