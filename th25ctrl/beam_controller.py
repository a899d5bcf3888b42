"""Beam on/off control with a one-shot beam-on permission."""

from __future__ import annotations

import threading

from th25ctrl.common_types import BeamState, ControlError, ErrorCode, LifecycleState


class BeamController:
    """Owns the beam state; each permission allows exactly one beam-on."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = BeamState.OFF
        self._beam_on_permitted = False

    def current_state(self) -> BeamState:
        """Return the current beam state."""
        return self._state

    def set_beam_on_permission(self, permitted: bool) -> None:
        """Grant or withdraw the beam-on permission."""
        with self._lock:
            self._beam_on_permitted = bool(permitted)

    def is_beam_on_permitted(self) -> bool:
        """Return whether a beam-on request would currently be permitted."""
        return self._beam_on_permitted

    def request_beam_on(self, lifecycle_state: LifecycleState) -> None:
        """Switch the beam on, consuming the permission.

        Raises ControlError(BEAM_ON_NOT_PERMITTED) unless the lifecycle is
        READY, the beam is OFF and permission has been granted. A refused
        request leaves both the beam state and the permission unchanged.
        """
        with self._lock:
            allowed = (
                lifecycle_state == LifecycleState.READY
                and self._state == BeamState.OFF
                and self._beam_on_permitted
            )
            if not allowed:
                raise ControlError(ErrorCode.BEAM_ON_NOT_PERMITTED)
            self._state = BeamState.ARMING
            self._beam_on_permitted = False
            self._state = BeamState.ON

    def request_beam_off(self) -> None:
        """Switch the beam off from any state and withdraw the permission."""
        with self._lock:
            if self._state == BeamState.ON:
                self._state = BeamState.STOPPING
            self._state = BeamState.OFF
            self._beam_on_permitted = False