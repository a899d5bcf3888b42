"""Lifecycle state machine of the safety core and its event queue."""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Deque, Optional

from th25ctrl.common_types import ControlError, ErrorCode, LifecycleState


class LifecycleEventKind(Enum):
    """Events that drive the lifecycle state machine."""

    INIT_REQUESTED = auto()
    SELF_CHECK_PASSED = auto()
    SELF_CHECK_FAILED = auto()
    PRESCRIPTION_RECEIVED = auto()
    PRESCRIPTION_VALIDATED = auto()
    PRESCRIPTION_RESET = auto()
    BEAM_ON_REQUESTED = auto()
    BEAM_OFF_COMPLETED = auto()
    DOSE_TARGET_REACHED = auto()
    CRITICAL_ALARM_RAISED = auto()
    SHUTDOWN_REQUESTED = auto()


@dataclass(frozen=True)
class LifecycleEvent:
    """An event with an optional error code attached."""

    kind: LifecycleEventKind
    error_code: Optional[ErrorCode] = None


class InProcessQueue:
    """Bounded FIFO queue for one producer and one consumer.

    Like a ring buffer that keeps one slot free, it holds at most
    ``capacity - 1`` items.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 2:
            raise ValueError("capacity must be at least 2")
        self._capacity = capacity
        self._items: Deque[Any] = deque()
        self._lock = threading.Lock()

    def capacity(self) -> int:
        """Return the configured capacity."""
        return self._capacity

    def try_publish(self, item: Any) -> bool:
        """Append ``item``; return False if the queue is full."""
        with self._lock:
            if len(self._items) >= self._capacity - 1:
                return False
            self._items.append(item)
            return True

    def try_consume(self) -> Any:
        """Remove and return the oldest item, or None if the queue is empty."""
        with self._lock:
            if not self._items:
                return None
            return self._items.popleft()

    def approximate_size(self) -> int:
        """Return the number of queued items."""
        with self._lock:
            return len(self._items)

    def empty_approx(self) -> bool:
        """Return whether the queue is empty."""
        return self.approximate_size() == 0


_L = LifecycleState
_E = LifecycleEventKind

_TRANSITIONS = {
    (_L.INIT, _E.INIT_REQUESTED): _L.SELF_CHECK,
    (_L.SELF_CHECK, _E.SELF_CHECK_PASSED): _L.IDLE,
    (_L.SELF_CHECK, _E.SELF_CHECK_FAILED): _L.ERROR,
    (_L.IDLE, _E.PRESCRIPTION_RECEIVED): _L.PRESCRIPTION_SET,
    (_L.PRESCRIPTION_SET, _E.PRESCRIPTION_VALIDATED): _L.READY,
    (_L.PRESCRIPTION_SET, _E.PRESCRIPTION_RESET): _L.IDLE,
    (_L.READY, _E.BEAM_ON_REQUESTED): _L.BEAM_ON,
    (_L.READY, _E.PRESCRIPTION_RESET): _L.IDLE,
    (_L.BEAM_ON, _E.BEAM_OFF_COMPLETED): _L.IDLE,
    (_L.BEAM_ON, _E.DOSE_TARGET_REACHED): _L.IDLE,
    (_L.BEAM_ON, _E.CRITICAL_ALARM_RAISED): _L.HALTED,
}

_TERMINAL_STATES = frozenset({LifecycleState.HALTED, LifecycleState.ERROR})


class SafetyCoreOrchestrator:
    """Drives the lifecycle state machine from an event queue."""

    def __init__(self, events: InProcessQueue) -> None:
        self._events = events
        self._lock = threading.Lock()
        self._state = LifecycleState.INIT
        self._shutdown_requested = threading.Event()

    @staticmethod
    def next_state(
        from_state: LifecycleState, event: LifecycleEventKind
    ) -> Optional[LifecycleState]:
        """Return the state reached by ``event`` from ``from_state``, or None.

        SHUTDOWN_REQUESTED leads to HALTED from every state.
        """
        if event == LifecycleEventKind.SHUTDOWN_REQUESTED:
            return LifecycleState.HALTED
        return _TRANSITIONS.get((from_state, event))

    @staticmethod
    def is_transition_allowed(from_state: LifecycleState, event: LifecycleEventKind) -> bool:
        """Return whether ``event`` is allowed in ``from_state``."""
        return SafetyCoreOrchestrator.next_state(from_state, event) is not None

    def current_state(self) -> LifecycleState:
        """Return the current lifecycle state."""
        with self._lock:
            return self._state

    def shutdown(self) -> None:
        """Ask the event loop to stop; the state is left unchanged."""
        self._shutdown_requested.set()

    def init_subsystems(self) -> None:
        """Move from INIT to SELF_CHECK.

        Raises ControlError(INTERNAL_UNEXPECTED_STATE) if not in INIT.
        """
        with self._lock:
            if self._state != LifecycleState.INIT:
                raise ControlError(ErrorCode.INTERNAL_UNEXPECTED_STATE)
            self._state = LifecycleState.SELF_CHECK

    def handle_event(self, event: LifecycleEvent) -> None:
        """Apply one event; a forbidden transition halts the machine."""
        with self._lock:
            resolved = self.next_state(self._state, event.kind)
            if resolved is None:
                resolved = LifecycleState.HALTED
            self._state = resolved
        if resolved in _TERMINAL_STATES:
            self._shutdown_requested.set()

    def run_event_loop(self) -> int:
        """Process events until shutdown; return 1 if halted or in error, else 0."""
        while not self._shutdown_requested.is_set():
            event = self._events.try_consume()
            if event is not None:
                self.handle_event(event)
            else:
                time.sleep(0)
        return 1 if self.current_state() in _TERMINAL_STATES else 0