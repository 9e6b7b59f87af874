"""Broadcast event bus used to report progress of long-running operations."""

from __future__ import annotations

import threading
import weakref
from collections import deque
from dataclasses import dataclass
from pathlib import Path

DEFAULT_CAPACITY = 100


@dataclass(frozen=True)
class Event:
    """Base class of everything published on an :class:`EventBus`."""


@dataclass(frozen=True)
class ScanStarted(Event):
    dirs: tuple[Path, ...]


@dataclass(frozen=True)
class CargoTomlFound(Event):
    path: Path


@dataclass(frozen=True)
class RustScriptFound(Event):
    path: Path


@dataclass(frozen=True)
class WorkspaceFound(Event):
    path: Path


@dataclass(frozen=True)
class DependencyUpdated(Event):
    path: Path
    from_version: str
    to_version: str


@dataclass(frozen=True)
class CommandStarted(Event):
    command: str


@dataclass(frozen=True)
class CommandFinished(Event):
    command: str
    success: bool


@dataclass(frozen=True)
class KargoOutputLine(Event):
    line: str
    is_error: bool


@dataclass(frozen=True)
class KargoCommandStarted(Event):
    subcommand: str
    args: tuple[str, ...]


@dataclass(frozen=True)
class KargoCommandFinished(Event):
    subcommand: str
    success: bool
    summary: str


@dataclass(frozen=True)
class VendorStarted(Event):
    path: Path


@dataclass(frozen=True)
class VendorFinished(Event):
    path: Path


@dataclass(frozen=True)
class ErrorEvent(Event):
    message: str


@dataclass(frozen=True)
class InfoEvent(Event):
    message: str


@dataclass(frozen=True)
class RollbackStarted(Event):
    path: Path


@dataclass(frozen=True)
class RollbackFinished(Event):
    path: Path


class Subscription:
    """A receiver of the events published on a bus after it subscribed.

    It holds at most ``capacity`` pending events; when full, the oldest
    pending event is dropped and ``lagged`` is incremented.
    """

    def __init__(self, capacity: int) -> None:
        self._queue: deque[Event] = deque(maxlen=capacity)
        self._lock = threading.Lock()
        self.lagged = 0

    def _push(self, event: Event) -> None:
        with self._lock:
            if len(self._queue) == self._queue.maxlen:
                self.lagged += 1
            self._queue.append(event)

    def receive(self) -> Event | None:
        """Return the oldest pending event, or None if there is none."""
        with self._lock:
            return self._queue.popleft() if self._queue else None

    def drain(self) -> list[Event]:
        """Return all pending events in publication order and clear them."""
        with self._lock:
            events = list(self._queue)
            self._queue.clear()
        return events

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue)


class EventBus:
    """Publishes each event to every live subscription."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._subscribers: weakref.WeakSet[Subscription] = weakref.WeakSet()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def subscribe(self) -> Subscription:
        subscription = Subscription(self._capacity)
        with self._lock:
            self._subscribers.add(subscription)
        return subscription

    def publish(self, event: Event) -> int:
        """Deliver ``event`` and return how many subscriptions received it."""
        with self._lock:
            subscribers = list(self._subscribers)
        for subscription in subscribers:
            subscription._push(event)
        return len(subscribers)