"""Dose accumulation from beam pulses and detection of the dose target."""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass

from th25ctrl.common_types import (
    ControlError,
    DoseCGy,
    ErrorCode,
    LifecycleState,
    PulseCount,
    PulseCounter,
)

DOSE_TARGET_MIN_CGY = 0.01
DOSE_TARGET_MAX_CGY = 10000.0

_UINT64_LIMIT = 1 << 64
_UINT64_MAX = _UINT64_LIMIT - 1
_TARGET_ALLOWED_STATES = frozenset({LifecycleState.PRESCRIPTION_SET, LifecycleState.READY})


@dataclass(frozen=True, order=True)
class DoseRatePerPulse:
    """Dose delivered per beam pulse, in cGy/pulse."""

    value: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", float(self.value))


def is_dose_target_in_range(target: DoseCGy) -> bool:
    """Return whether a dose target lies within 0.01 to 10000.0 cGy."""
    return DOSE_TARGET_MIN_CGY <= target.value <= DOSE_TARGET_MAX_CGY


def _target_pulses(target: DoseCGy, rate: DoseRatePerPulse) -> int | None:
    """Convert a dose to a whole pulse count, or None if it cannot be held."""
    if not rate.value > 0.0 or not math.isfinite(rate.value):
        return None
    if not target.value >= 0.0 or not math.isfinite(target.value):
        return None
    pulses = target.value / rate.value
    if not math.isfinite(pulses) or pulses < 0.0 or pulses >= _UINT64_LIMIT:
        return None
    return int(pulses)


class DoseManager:
    """Accumulates pulses and flags when the prescribed dose is reached."""

    def __init__(self, rate: DoseRatePerPulse) -> None:
        self._rate = rate
        self._lock = threading.Lock()
        self._accumulated = PulseCounter()
        self._target_pulses = _UINT64_MAX
        self._target_set = False
        self._target_reached = False

    def set_dose_target(self, target: DoseCGy, lifecycle_state: LifecycleState) -> None:
        """Set a new dose target and restart accumulation from zero.

        Raises ControlError with INTERNAL_UNEXPECTED_STATE outside the
        PRESCRIPTION_SET and READY states, DOSE_OUT_OF_RANGE for a target
        outside the permitted range, and DOSE_OVERFLOW when the target cannot
        be expressed as a pulse count.
        """
        if lifecycle_state not in _TARGET_ALLOWED_STATES:
            raise ControlError(ErrorCode.INTERNAL_UNEXPECTED_STATE)
        if not is_dose_target_in_range(target):
            raise ControlError(ErrorCode.DOSE_OUT_OF_RANGE)
        pulses = _target_pulses(target, self._rate)
        if pulses is None:
            raise ControlError(ErrorCode.DOSE_OVERFLOW)

        with self._lock:
            self._accumulated.reset()
            self._target_reached = False
            self._target_pulses = pulses
            self._target_set = True

    def on_dose_pulse(self, pulse_delta: PulseCount) -> None:
        """Add pulses to the accumulation and check the target."""
        with self._lock:
            before = self._accumulated.fetch_add(pulse_delta)
            after = (before.value + pulse_delta.value) & _UINT64_MAX
            if self._target_set and after >= self._target_pulses:
                self._target_reached = True

    def current_accumulated(self) -> DoseCGy:
        """Return the accumulated dose."""
        return self.pulse_count_to_dose(self._accumulated.load())

    def current_target(self) -> DoseCGy:
        """Return the target dose as held in whole pulses, or zero if unset."""
        with self._lock:
            if not self._target_set:
                return DoseCGy(0.0)
            pulses = self._target_pulses
        return DoseCGy(pulses * self._rate.value)

    def is_target_reached(self) -> bool:
        """Return whether the accumulated pulses have reached the target."""
        with self._lock:
            return self._target_reached

    def pulse_count_to_dose(self, count: PulseCount) -> DoseCGy:
        """Convert a pulse count to a dose at this manager's rate."""
        return DoseCGy(count.value * self._rate.value)

    def reset(self) -> None:
        """Clear the target and the accumulation."""
        with self._lock:
            self._target_set = False
            self._target_reached = False
            self._target_pulses = _UINT64_MAX
            self._accumulated.reset()

    def target_pulses(self) -> int:
        """Return the target as a pulse count (the 64-bit maximum when unset)."""
        with self._lock:
            return self._target_pulses