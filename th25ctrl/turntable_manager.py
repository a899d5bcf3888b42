"""Turntable positioning with three independent position sensors."""

from __future__ import annotations

import threading
from dataclasses import dataclass

from th25ctrl.common_types import ControlError, ErrorCode, PositionMm

ELECTRON_POSITION_MM = PositionMm(0.0)
XRAY_POSITION_MM = PositionMm(50.0)
LIGHT_POSITION_MM = PositionMm(-50.0)

IN_POSITION_TOLERANCE_MM = 0.5
SENSOR_DISCREPANCY_THRESHOLD_MM = 1.0

TURNTABLE_MIN_MM = -100.0
TURNTABLE_MAX_MM = 100.0


@dataclass(frozen=True)
class TurntablePosition:
    """Readings of the three turntable position sensors."""

    sensor_0: PositionMm
    sensor_1: PositionMm
    sensor_2: PositionMm

    def median(self) -> PositionMm:
        """Return the median of the three readings."""
        return PositionMm(
            TurntableManager.compute_median(
                self.sensor_0.value, self.sensor_1.value, self.sensor_2.value
            )
        )

    def has_discrepancy(self, threshold: float = SENSOR_DISCREPANCY_THRESHOLD_MM) -> bool:
        """Return whether the spread of the readings exceeds ``threshold``."""
        return TurntableManager.has_discrepancy_values(
            self.sensor_0.value, self.sensor_1.value, self.sensor_2.value, threshold
        )


class TurntableManager:
    """Holds the commanded turntable position and the latest sensor readings."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._target = 0.0
        self._readings = (0.0, 0.0, 0.0)

    def move_to(self, target: PositionMm) -> None:
        """Command the turntable to ``target``.

        Raises ControlError(TURNTABLE_OUT_OF_POSITION) for a target outside
        -100.0 to +100.0 mm.
        """
        if not self.is_position_in_range(target):
            raise ControlError(ErrorCode.TURNTABLE_OUT_OF_POSITION)
        with self._lock:
            self._target = target.value

    def read_position(self) -> TurntablePosition:
        """Return a consistent snapshot of the three sensor readings."""
        with self._lock:
            s0, s1, s2 = self._readings
        return TurntablePosition(PositionMm(s0), PositionMm(s1), PositionMm(s2))

    def inject_sensor_readings(
        self, sensor_0: PositionMm, sensor_1: PositionMm, sensor_2: PositionMm
    ) -> None:
        """Record new readings for all three sensors."""
        with self._lock:
            self._readings = (sensor_0.value, sensor_1.value, sensor_2.value)

    def is_in_position(self, expected: PositionMm) -> bool:
        """Return whether the sensors agree and their median is near ``expected``."""
        position = self.read_position()
        if position.has_discrepancy():
            return False
        return position.median().abs_diff(expected).value <= IN_POSITION_TOLERANCE_MM

    def current_target(self) -> PositionMm:
        """Return the commanded position."""
        with self._lock:
            return PositionMm(self._target)

    @staticmethod
    def compute_median(a: float, b: float, c: float) -> float:
        """Return the median of three values."""
        return sorted((a, b, c))[1]

    @staticmethod
    def has_discrepancy_values(a: float, b: float, c: float, threshold: float) -> bool:
        """Return whether max minus min of three values exceeds ``threshold``."""
        values = (a, b, c)
        return max(values) - min(values) > threshold

    @staticmethod
    def is_position_in_range(position: PositionMm) -> bool:
        """Return whether a position lies within -100.0 to +100.0 mm."""
        return TURNTABLE_MIN_MM <= position.value <= TURNTABLE_MAX_MM