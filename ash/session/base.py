"""
Shared session types: lifecycle state, one-shot signals, results.
"""

from __future__ import annotations
import threading
import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Optional

from ..config import HostProfile


class SessionState(Enum):
    """Interactive session lifecycle states."""
    RUNNING = auto()
    CANCELLING = auto()
    CLOSED = auto()


class OneShot:
    """
    A signal that fires at most once and carries one value.

    Each concurrent source (shell exit, cancellation) owns its own
    OneShot, so nothing else is shared between threads.
    """

    def __init__(self):
        self._event = threading.Event()
        self._value: Any = None
        self._fired_at: Optional[float] = None

    @property
    def fired(self) -> bool:
        return self._event.is_set()

    @property
    def value(self) -> Any:
        return self._value

    @property
    def fired_at(self) -> Optional[float]:
        """time.monotonic() of the firing, or None."""
        return self._fired_at

    def fire(self, value: Any = None) -> bool:
        """Fire with value. Returns False if it had already fired."""
        if self._event.is_set():
            return False
        self._value = value
        self._fired_at = time.monotonic()
        self._event.set()
        return True


class CancelToken:
    """
    Cooperative cancellation, usually triggered from a signal handler.

    cancel() only fires a one-shot signal. Nothing waits on it: the
    handler may interrupt a thread holding a lock, so waiters poll
    `cancelled` instead.
    """

    def __init__(self):
        self._signal = OneShot()

    @property
    def cancelled(self) -> bool:
        return self._signal.fired

    @property
    def cancelled_at(self) -> Optional[float]:
        return self._signal.fired_at

    @property
    def reason(self) -> Optional[str]:
        return self._signal.value

    def cancel(self, reason: str = "cancelled") -> None:
        self._signal.fire(reason)


@dataclass(frozen=True)
class SessionOutcome:
    """
    How an interactive session ended.

    A finished session is "completed", not "succeeded": the remote exit
    status is reported but never turned into an error.
    """
    cancelled: bool = False
    exit_status: Optional[int] = None

    @property
    def completed(self) -> bool:
        return not self.cancelled


@dataclass(frozen=True)
class SessionResult:
    """Outcome plus the profile to persist (may carry a new password)."""
    profile: HostProfile
    outcome: SessionOutcome
