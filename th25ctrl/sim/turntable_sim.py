"""Simulated turntable with three independent sensors and fault injection."""

from __future__ import annotations

import threading
from enum import IntEnum

from th25ctrl.common_types import PositionMm

TURNTABLE_MIN_MM = -100.0
TURNTABLE_MAX_MM = 100.0
TURNTABLE_SENSOR_NOISE_ABS_MM = 0.1
SENSOR_COUNT = 3

_UINT32_LIMIT = 1 << 32
_LCG_MULTIPLIER = 1664525
_LCG_INCREMENT = 1013904223


class SensorId(IntEnum):
    """The three independent position sensors."""

    SENSOR0 = 0
    SENSOR1 = 1
    SENSOR2 = 2


class FaultMode(IntEnum):
    """Fault injected into a sensor."""

    NONE = 0
    STUCK_AT = 1
    DELAY = 2
    NO_RESPONSE = 3


class TurntableSim:
    """Stores the commanded turntable position and simulates sensor readings.

    Per sensor fault modes: NONE reports the command (with optional noise of
    up to 0.1 mm), STUCK_AT reports a frozen value, DELAY reports the previous
    command and NO_RESPONSE reports 0.0 mm.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._commanded = 0.0
        self._previous_commanded = 0.0
        self._fault_modes = [FaultMode.NONE] * SENSOR_COUNT
        self._stuck_at_values = [0.0] * SENSOR_COUNT
        self._noise_enabled = False
        self._rng_state = 0

    def command_position(self, target: PositionMm) -> None:
        """Command a position, saturated to -100.0 to +100.0 mm."""
        clamped = self.clamp_to_range(target)
        with self._lock:
            self._previous_commanded = self._commanded
            self._commanded = clamped.value

    def read_sensor(self, sensor: SensorId) -> PositionMm:
        """Return the reading of ``sensor`` according to its fault mode."""
        index = self.sensor_index(sensor)
        with self._lock:
            mode = self._fault_modes[index]
            if mode is FaultMode.STUCK_AT:
                return PositionMm(self._stuck_at_values[index])
            if mode is FaultMode.DELAY:
                return PositionMm(self._previous_commanded)
            if mode is FaultMode.NO_RESPONSE:
                return PositionMm(0.0)
            reading = self._commanded
            if self._noise_enabled:
                self._rng_state = (
                    self._rng_state * _LCG_MULTIPLIER + _LCG_INCREMENT
                ) % _UINT32_LIMIT
                unit = self._rng_state / _UINT32_LIMIT
                reading += (2.0 * unit - 1.0) * TURNTABLE_SENSOR_NOISE_ABS_MM
        return PositionMm(reading)

    def inject_fault(self, sensor: SensorId, mode: FaultMode) -> None:
        """Set the fault mode of ``sensor``."""
        index = self.sensor_index(sensor)
        with self._lock:
            self._fault_modes[index] = FaultMode(mode)

    def inject_stuck_at_value(self, sensor: SensorId, value: PositionMm) -> None:
        """Set the value ``sensor`` reports while STUCK_AT."""
        index = self.sensor_index(sensor)
        with self._lock:
            self._stuck_at_values[index] = value.value

    def enable_sensor_noise(self, seed: int) -> None:
        """Enable sensor noise, seeding the generator with ``seed``."""
        if isinstance(seed, bool) or not isinstance(seed, int):
            raise TypeError("seed must be an integer")
        if not 0 <= seed < _UINT32_LIMIT:
            raise ValueError("seed must fit in an unsigned 32-bit integer")
        with self._lock:
            self._rng_state = seed
            self._noise_enabled = True

    def disable_sensor_noise(self) -> None:
        """Disable sensor noise."""
        with self._lock:
            self._noise_enabled = False

    def is_sensor_noise_enabled(self) -> bool:
        """Return whether sensor noise is enabled."""
        with self._lock:
            return self._noise_enabled

    def current_commanded(self) -> PositionMm:
        """Return the stored (saturated) commanded position."""
        with self._lock:
            return PositionMm(self._commanded)

    def current_fault_mode(self, sensor: SensorId) -> FaultMode:
        """Return the fault mode of ``sensor``."""
        index = self.sensor_index(sensor)
        with self._lock:
            return self._fault_modes[index]

    @staticmethod
    def is_position_in_range(position: PositionMm) -> bool:
        """Return whether a position lies within -100.0 to +100.0 mm."""
        return TURNTABLE_MIN_MM <= position.value <= TURNTABLE_MAX_MM

    @staticmethod
    def clamp_to_range(position: PositionMm) -> PositionMm:
        """Saturate a position to -100.0 to +100.0 mm."""
        if position.value < TURNTABLE_MIN_MM:
            return PositionMm(TURNTABLE_MIN_MM)
        if position.value > TURNTABLE_MAX_MM:
            return PositionMm(TURNTABLE_MAX_MM)
        return position

    @staticmethod
    def sensor_index(sensor: SensorId) -> int:
        """Return the array index of ``sensor``."""
        return int(SensorId(sensor))