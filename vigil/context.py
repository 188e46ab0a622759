"""
Execution context — who is calling, where state lives, and what time it is.

The store and the clock are injected per request so that the contract never
reaches for process-wide handles.
"""
import time
from dataclasses import dataclass, field
from typing import Protocol

from .storage.store import Store


class Clock(Protocol):
    def current_time(self) -> int:
        """Return the current time as an unsigned 64-bit integer."""
        ...


class SystemClock:
    """Wall clock, in whole seconds since the epoch."""

    def current_time(self) -> int:
        return int(time.time())


class FixedClock:
    """A clock that only moves when told to."""

    def __init__(self, now: int = 0):
        self.now = now

    def current_time(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@dataclass
class ExecutionContext:
    """Context of a single request.

    Attributes:
        caller: Authenticated identity of the current request.
        store: Confidential key-value store holding every secret.
        clock: Source of the current time.
    """
    caller: str
    store: Store
    clock: Clock = field(default_factory=SystemClock)
