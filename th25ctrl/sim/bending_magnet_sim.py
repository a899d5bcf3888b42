"""Simulated bending magnet: commanded current with optional measurement noise."""

from __future__ import annotations

import threading

from th25ctrl.common_types import MagnetCurrentA

BENDING_MAGNET_MIN_A = 0.0
BENDING_MAGNET_MAX_A = 500.0
BENDING_MAGNET_NOISE_FRACTION = 0.02

_UINT32_LIMIT = 1 << 32
_LCG_MULTIPLIER = 1664525
_LCG_INCREMENT = 1013904223


def _check_seed(seed: int) -> int:
    if isinstance(seed, bool) or not isinstance(seed, int):
        raise TypeError("seed must be an integer")
    if not 0 <= seed < _UINT32_LIMIT:
        raise ValueError("seed must fit in an unsigned 32-bit integer")
    return seed


class BendingMagnetSim:
    """Stores the commanded magnet current and reports a measured value.

    Commands outside 0.0 to 500.0 A saturate at the nearest limit. With noise
    enabled, each reading deviates from the command by up to 2%.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._commanded = 0.0
        self._noise_enabled = False
        self._rng_state = 0

    def set_current(self, commanded: MagnetCurrentA) -> None:
        """Command a current, saturated to the physical range."""
        clamped = self.clamp_to_range(commanded)
        with self._lock:
            self._commanded = clamped.value

    def read_actual_current(self) -> MagnetCurrentA:
        """Return the measured current, with noise if enabled, within range."""
        with self._lock:
            commanded = self._commanded
            if self._noise_enabled:
                self._rng_state = (
                    self._rng_state * _LCG_MULTIPLIER + _LCG_INCREMENT
                ) % _UINT32_LIMIT
                unit = self._rng_state / _UINT32_LIMIT
                noise = (2.0 * unit - 1.0) * BENDING_MAGNET_NOISE_FRACTION
                measured = commanded * (1.0 + noise)
            else:
                measured = commanded
        return self.clamp_to_range(MagnetCurrentA(measured))

    def enable_noise(self, seed: int) -> None:
        """Enable measurement noise, seeding the generator with ``seed``."""
        seed = _check_seed(seed)
        with self._lock:
            self._rng_state = seed
            self._noise_enabled = True

    def disable_noise(self) -> None:
        """Disable measurement noise; readings equal the command again."""
        with self._lock:
            self._noise_enabled = False

    def is_noise_enabled(self) -> bool:
        """Return whether measurement noise is enabled."""
        with self._lock:
            return self._noise_enabled

    def current_commanded(self) -> MagnetCurrentA:
        """Return the stored (saturated) commanded current."""
        with self._lock:
            return MagnetCurrentA(self._commanded)

    @staticmethod
    def is_current_in_range(current: MagnetCurrentA) -> bool:
        """Return whether a current lies within 0.0 to 500.0 A."""
        return BENDING_MAGNET_MIN_A <= current.value <= BENDING_MAGNET_MAX_A

    @staticmethod
    def clamp_to_range(current: MagnetCurrentA) -> MagnetCurrentA:
        """Saturate a current to 0.0 to 500.0 A."""
        if current.value < BENDING_MAGNET_MIN_A:
            return MagnetCurrentA(BENDING_MAGNET_MIN_A)
        if current.value > BENDING_MAGNET_MAX_A:
            return MagnetCurrentA(BENDING_MAGNET_MAX_A)
        return current