"""Shared enumerations, unit-safe value types and the pulse counter."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import IntEnum

_UINT64_LIMIT = 1 << 64
_UINT64_MASK = _UINT64_LIMIT - 1


class LifecycleState(IntEnum):
    """Lifecycle of the safety core."""

    INIT = 0
    SELF_CHECK = 1
    IDLE = 2
    PRESCRIPTION_SET = 3
    READY = 4
    BEAM_ON = 5
    HALTED = 6
    ERROR = 7


class TreatmentMode(IntEnum):
    """Treatment modes of the machine."""

    ELECTRON = 1
    XRAY = 2
    LIGHT = 3


class BeamState(IntEnum):
    """States of the electron beam."""

    OFF = 0
    ARMING = 1
    ON = 2
    STOPPING = 3


class ErrorCode(IntEnum):
    """Error codes; the upper eight bits name the category."""

    MODE_INVALID_TRANSITION = 0x0101
    MODE_POSITION_MISMATCH = 0x0102
    MODE_BEAM_ON_NOT_ALLOWED = 0x0103

    BEAM_ON_NOT_PERMITTED = 0x0201
    BEAM_OFF_TIMEOUT = 0x0202
    ELECTRON_GUN_CURRENT_OUT_OF_RANGE = 0x0203

    DOSE_OUT_OF_RANGE = 0x0301
    DOSE_TARGET_EXCEEDED = 0x0302
    DOSE_SENSOR_FAILURE = 0x0303
    DOSE_OVERFLOW = 0x0304

    TURNTABLE_OUT_OF_POSITION = 0x0401
    TURNTABLE_SENSOR_DISCREPANCY = 0x0402
    TURNTABLE_MOVE_TIMEOUT = 0x0403

    MAGNET_CURRENT_DEVIATION = 0x0501
    MAGNET_CURRENT_SENSOR_FAILURE = 0x0502

    IPC_CHANNEL_CLOSED = 0x0601
    IPC_MESSAGE_TOO_LARGE = 0x0602
    IPC_DESERIALIZATION_FAILURE = 0x0603
    IPC_QUEUE_OVERFLOW = 0x0604

    AUTH_REQUIRED = 0x0701
    AUTH_INVALID = 0x0702
    AUTH_EXPIRED = 0x0703

    INTERNAL_ASSERTION = 0xFF01
    INTERNAL_QUEUE_FULL = 0xFF02
    INTERNAL_UNEXPECTED_STATE = 0xFF03


class Severity(IntEnum):
    """Alarm severity; CRITICAL may never be bypassed."""

    CRITICAL = 0
    HIGH = 1
    MEDIUM = 2
    LOW = 3


def error_category(code: ErrorCode) -> int:
    """Return the category byte (upper eight bits) of an error code."""
    return (int(code) >> 8) & 0xFF


_CRITICAL_CATEGORIES = frozenset({0x01, 0x02, 0x03, 0xFF})
_HIGH_CATEGORIES = frozenset({0x04, 0x06})
_MEDIUM_CATEGORIES = frozenset({0x05, 0x07})


def severity_of(code: ErrorCode) -> Severity:
    """Return the severity assigned to an error code's category."""
    category = error_category(code)
    if category in _CRITICAL_CATEGORIES:
        return Severity.CRITICAL
    if category in _HIGH_CATEGORIES:
        return Severity.HIGH
    if category in _MEDIUM_CATEGORIES:
        return Severity.MEDIUM
    return Severity.LOW


class ControlError(Exception):
    """Raised when a control operation is refused; carries an ErrorCode."""

    def __init__(self, code: ErrorCode) -> None:
        self.code = ErrorCode(code)
        self.severity = severity_of(self.code)
        super().__init__(f"{self.code.name} (0x{int(self.code):04X}, {self.severity.name})")


class _Quantity:
    """Mixin that stores a float value, so units never mix by accident."""

    value: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", float(self.value))


@dataclass(frozen=True, order=True)
class EnergyMeV(_Quantity):
    """Electron energy in MeV."""

    value: float


@dataclass(frozen=True, order=True)
class EnergyMV(_Quantity):
    """X-ray energy in MV."""

    value: float


@dataclass(frozen=True, order=True)
class DoseCGy(_Quantity):
    """Dose in centigray. Dose only accumulates; there is no subtraction."""

    value: float

    def add_dose(self, delta: DoseCGy) -> DoseCGy:
        """Return a new dose with ``delta`` added."""
        return DoseCGy(self.value + delta.value)


@dataclass(frozen=True, order=True)
class MagnetCurrentA(_Quantity):
    """Bending magnet current in amperes."""

    value: float


@dataclass(frozen=True, order=True)
class PositionMm(_Quantity):
    """Turntable position in millimetres."""

    value: float

    def abs_diff(self, other: PositionMm) -> PositionMm:
        """Return the absolute distance to ``other``."""
        return PositionMm(abs(self.value - other.value))


@dataclass(frozen=True, order=True)
class ElectronGunCurrentMA(_Quantity):
    """Electron gun current in milliamperes."""

    value: float


@dataclass(frozen=True, order=True)
class PulseCount:
    """Snapshot of a pulse count (unsigned 64-bit)."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError("pulse count must be an integer")
        if not 0 <= self.value < _UINT64_LIMIT:
            raise ValueError("pulse count must fit in an unsigned 64-bit integer")


class PulseCounter:
    """Thread-safe accumulating pulse counter with 64-bit wrap-around."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._accumulated = 0

    def fetch_add(self, delta: PulseCount) -> PulseCount:
        """Add ``delta`` and return the count held *before* the addition."""
        with self._lock:
            before = self._accumulated
            self._accumulated = (before + delta.value) & _UINT64_MASK
        return PulseCount(before)

    def load(self) -> PulseCount:
        """Return the current count."""
        with self._lock:
            return PulseCount(self._accumulated)

    def reset(self) -> None:
        """Set the count back to zero."""
        with self._lock:
            self._accumulated = 0