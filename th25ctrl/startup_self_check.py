"""Four-item self-check performed at start-up before any treatment."""

from __future__ import annotations

import threading

from th25ctrl.bending_magnet_manager import BendingMagnetManager
from th25ctrl.common_types import (
    ControlError,
    DoseCGy,
    ElectronGunCurrentMA,
    ErrorCode,
    MagnetCurrentA,
)
from th25ctrl.dose_manager import DoseManager
from th25ctrl.turntable_manager import LIGHT_POSITION_MM, TurntableManager

ELECTRON_GUN_ZERO_TOLERANCE_MA = 0.01
BENDING_MAGNET_ZERO_TOLERANCE_A = 0.01


class StartupSelfCheck:
    """Checks electron gun, turntable, bending magnet and dose counter at start-up."""

    def __init__(
        self,
        turntable: TurntableManager,
        bending_magnet: BendingMagnetManager,
        dose_manager: DoseManager,
    ) -> None:
        self._turntable = turntable
        self._bending_magnet = bending_magnet
        self._dose_manager = dose_manager
        self._lock = threading.Lock()
        self._electron_gun_current_ma = 0.0

    def perform_self_check(self) -> None:
        """Run the four checks in beam-path order, stopping at the first failure.

        Raises ControlError with ELECTRON_GUN_CURRENT_OUT_OF_RANGE,
        TURNTABLE_OUT_OF_POSITION, MAGNET_CURRENT_DEVIATION or
        INTERNAL_UNEXPECTED_STATE for the gun, turntable, magnet and dose
        checks respectively.
        """
        if not self.is_electron_gun_in_zero(self.current_electron_gun_current()):
            raise ControlError(ErrorCode.ELECTRON_GUN_CURRENT_OUT_OF_RANGE)
        if not self._turntable.is_in_position(LIGHT_POSITION_MM):
            raise ControlError(ErrorCode.TURNTABLE_OUT_OF_POSITION)
        if not self.is_bending_magnet_in_zero(self._bending_magnet.current_actual()):
            raise ControlError(ErrorCode.MAGNET_CURRENT_DEVIATION)
        if not self.is_dose_zero(self._dose_manager.current_accumulated()):
            raise ControlError(ErrorCode.INTERNAL_UNEXPECTED_STATE)

    def inject_electron_gun_current(self, actual: ElectronGunCurrentMA) -> None:
        """Record a measured electron gun current."""
        with self._lock:
            self._electron_gun_current_ma = actual.value

    def current_electron_gun_current(self) -> ElectronGunCurrentMA:
        """Return the recorded electron gun current."""
        with self._lock:
            return ElectronGunCurrentMA(self._electron_gun_current_ma)

    @staticmethod
    def is_electron_gun_in_zero(
        current: ElectronGunCurrentMA,
        tolerance_ma: float = ELECTRON_GUN_ZERO_TOLERANCE_MA,
    ) -> bool:
        """Return whether the gun current's magnitude is below ``tolerance_ma``."""
        return abs(current.value) < tolerance_ma

    @staticmethod
    def is_bending_magnet_in_zero(
        current: MagnetCurrentA,
        tolerance_a: float = BENDING_MAGNET_ZERO_TOLERANCE_A,
    ) -> bool:
        """Return whether the magnet current's magnitude is below ``tolerance_a``."""
        return abs(current.value) < tolerance_a

    @staticmethod
    def is_dose_zero(dose: DoseCGy) -> bool:
        """Return whether the dose is exactly zero."""
        return dose.value == 0.0