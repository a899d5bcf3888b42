"""Bending magnet current management: energy-to-current map and tolerance checks."""

from __future__ import annotations

import threading
from typing import Union

from th25ctrl.common_types import (
    ControlError,
    EnergyMeV,
    EnergyMV,
    ErrorCode,
    MagnetCurrentA,
    TreatmentMode,
)

MAGNET_CURRENT_MIN_A = 0.0
MAGNET_CURRENT_MAX_A = 500.0
MAGNET_TOLERANCE_FRACTION = 0.05

ELECTRON_ENERGY_MIN_MEV = 1.0
ELECTRON_ENERGY_MAX_MEV = 25.0
XRAY_ENERGY_MIN_MV = 5.0
XRAY_ENERGY_MAX_MV = 25.0

ELECTRON_SLOPE_A_PER_MEV = 2.5
ELECTRON_INTERCEPT_A = 0.0
XRAY_SLOPE_A_PER_MV = 10.0
XRAY_INTERCEPT_A = 0.0


def is_electron_energy_in_range(energy: EnergyMeV) -> bool:
    """Return whether an electron energy lies within 1.0 to 25.0 MeV."""
    return ELECTRON_ENERGY_MIN_MEV <= energy.value <= ELECTRON_ENERGY_MAX_MEV


def is_xray_energy_in_range(energy: EnergyMV) -> bool:
    """Return whether an X-ray energy lies within 5.0 to 25.0 MV."""
    return XRAY_ENERGY_MIN_MV <= energy.value <= XRAY_ENERGY_MAX_MV


class EnergyMagnetMap:
    """Linear map from beam energy to the target bending magnet current."""

    @staticmethod
    def compute_target_current_electron(energy: EnergyMeV) -> MagnetCurrentA:
        """Return the magnet current for an electron energy."""
        return MagnetCurrentA(ELECTRON_SLOPE_A_PER_MEV * energy.value + ELECTRON_INTERCEPT_A)

    @staticmethod
    def compute_target_current_xray(energy: EnergyMV) -> MagnetCurrentA:
        """Return the magnet current for an X-ray energy."""
        return MagnetCurrentA(XRAY_SLOPE_A_PER_MV * energy.value + XRAY_INTERCEPT_A)


class BendingMagnetManager:
    """Holds the commanded and measured magnet current and checks the deviation."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._target_current = 0.0
        self._actual_current = 0.0
        self._target_set = False

    def set_current_for_energy(
        self, mode: TreatmentMode, energy: Union[EnergyMeV, EnergyMV]
    ) -> None:
        """Set the target current for ``energy`` in ``mode``.

        Raises ControlError(MODE_INVALID_TRANSITION) when the energy type does
        not match the mode or lies out of range, and
        ControlError(MAGNET_CURRENT_DEVIATION) when the resulting current is
        outside the permitted magnet range.
        """
        if isinstance(energy, EnergyMeV):
            if mode != TreatmentMode.ELECTRON or not is_electron_energy_in_range(energy):
                raise ControlError(ErrorCode.MODE_INVALID_TRANSITION)
            target = EnergyMagnetMap.compute_target_current_electron(energy)
        elif isinstance(energy, EnergyMV):
            if mode != TreatmentMode.XRAY or not is_xray_energy_in_range(energy):
                raise ControlError(ErrorCode.MODE_INVALID_TRANSITION)
            target = EnergyMagnetMap.compute_target_current_xray(energy)
        else:
            raise TypeError("energy must be EnergyMeV or EnergyMV")

        if not self.is_current_in_range(target):
            raise ControlError(ErrorCode.MAGNET_CURRENT_DEVIATION)

        with self._lock:
            self._target_current = target.value
            self._target_set = True

    def current_actual(self) -> MagnetCurrentA:
        """Return the last measured current."""
        with self._lock:
            return MagnetCurrentA(self._actual_current)

    def is_within_tolerance(self) -> bool:
        """Return whether the measured current is within 5% of the target.

        Always False while no target has been set.
        """
        with self._lock:
            if not self._target_set:
                return False
            target = MagnetCurrentA(self._target_current)
            actual = MagnetCurrentA(self._actual_current)
        return self.is_current_within_tolerance(target, actual)

    def inject_actual_current(self, actual: MagnetCurrentA) -> None:
        """Record a measured current."""
        with self._lock:
            self._actual_current = actual.value

    def current_target(self) -> MagnetCurrentA:
        """Return the target current."""
        with self._lock:
            return MagnetCurrentA(self._target_current)

    def is_target_set(self) -> bool:
        """Return whether a target current has been set."""
        with self._lock:
            return self._target_set

    @staticmethod
    def is_current_in_range(current: MagnetCurrentA) -> bool:
        """Return whether a current lies within 0.0 to 500.0 A."""
        return MAGNET_CURRENT_MIN_A <= current.value <= MAGNET_CURRENT_MAX_A

    @staticmethod
    def is_current_within_tolerance(
        target: MagnetCurrentA,
        actual: MagnetCurrentA,
        fraction: float = MAGNET_TOLERANCE_FRACTION,
    ) -> bool:
        """Return whether ``actual`` deviates from ``target`` by at most ``fraction``.

        A zero target only accepts an actual current of exactly zero.
        """
        if target.value == 0.0:
            return actual.value == 0.0
        deviation = abs(actual.value - target.value) / abs(target.value)
        return deviation <= fraction