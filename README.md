# th25ctrl

A learning-scale control core for a virtual medical linear accelerator. It
models the safety-relevant pieces of a treatment machine in plain Python,
with no dependencies outside the standard library.

## Modules

- `th25ctrl.common_types` — the enums `LifecycleState`, `TreatmentMode`,
  `BeamState`, `ErrorCode` and `Severity`; `error_category` (the upper byte of
  an error code) and `severity_of`; unit-safe frozen value types
  (`EnergyMeV`, `EnergyMV`, `DoseCGy` with `add_dose`, `MagnetCurrentA`,
  `PositionMm` with `abs_diff`, `ElectronGunCurrentMA`, `PulseCount`); and a
  thread-safe `PulseCounter` (`fetch_add`, `load`, `reset`) that wraps at
  2**64. Refused operations raise `ControlError`, whose `code` and
  `severity` attributes say why.
- `th25ctrl.safety_core_orchestrator` — `SafetyCoreOrchestrator`, the
  lifecycle state machine, fed by `LifecycleEvent`s (kinds in
  `LifecycleEventKind`) from an `InProcessQueue`, a bounded FIFO that holds at
  most `capacity - 1` items. `SHUTDOWN_REQUESTED` halts from any state; any
  other disallowed transition also forces `HALTED`. `run_event_loop` returns
  1 if it ended in `HALTED` or `ERROR`, otherwise 0.
- `th25ctrl.beam_controller` — `BeamController`. Beam-on requires the
  `READY` lifecycle state, the beam `OFF` and a granted permission; each
  permission allows exactly one beam-on, and beam-off clears it.
- `th25ctrl.dose_manager` — `DoseManager` and `DoseRatePerPulse`. A dose
  target (0.01 to 10000.0 cGy, settable only in `PRESCRIPTION_SET` or `READY`)
  is turned into a whole pulse count; `on_dose_pulse` accumulates pulses and
  `is_target_reached` reports when the target is met.
- `th25ctrl.bending_magnet_manager` — `BendingMagnetManager` and
  `EnergyMagnetMap`: electron energy (1–25 MeV, 2.5 A/MeV) or X-ray energy
  (5–25 MV, 10 A/MV) mapped to a magnet current, with a ±5 % tolerance check
  against the measured current.
- `th25ctrl.turntable_manager` — `TurntableManager` and `TurntablePosition`:
  three position sensors, median-of-three, and a discrepancy check (spread
  above 1.0 mm). A position counts as reached only when the sensors agree and
  the median is within 0.5 mm of the expected position.
- `th25ctrl.startup_self_check` — `StartupSelfCheck`, the four-item power-on
  check (electron gun current, turntable at the light position, bending
  magnet current, accumulated dose), raising on the first failure.
- `th25ctrl.sim.bending_magnet_sim` — `BendingMagnetSim`, a simulated magnet
  that saturates commands to 0–500 A and can add up to ±2 % seeded noise.
- `th25ctrl.sim.turntable_sim` — `TurntableSim`, a simulated turntable with
  three sensors (`SensorId`), ±0.1 mm seeded noise and per-sensor fault
  injection (`FaultMode`: `STUCK_AT`, `DELAY`, `NO_RESPONSE`).

## Installation

```
pip install .
```

Tests need the `test` extra:

```
pip install ".[test]"
pytest
```

## Example

```python
from th25ctrl.beam_controller import BeamController
from th25ctrl.common_types import ControlError, LifecycleState

beam = BeamController()
beam.set_beam_on_permission(True)
beam.request_beam_on(LifecycleState.READY)   # beam is now ON
beam.request_beam_off()                      # back to OFF, permission cleared

try:
    beam.request_beam_on(LifecycleState.READY)
except ControlError as exc:
    print(exc.code.name)                     # BEAM_ON_NOT_PERMITTED
```

```python
from th25ctrl.bending_magnet_manager import BendingMagnetManager
from th25ctrl.common_types import EnergyMeV, MagnetCurrentA, TreatmentMode

magnet = BendingMagnetManager()
magnet.set_current_for_energy(TreatmentMode.ELECTRON, EnergyMeV(10.0))  # 25 A
magnet.inject_actual_current(MagnetCurrentA(25.0))
assert magnet.is_within_tolerance()
```

## What it does not do

- The components are independent. The orchestrator only changes lifecycle
  state; it does not call the beam controller, the dose manager or the other
  managers, and the dose manager does not switch the beam off itself when the
  target is reached.
- The managers take their measured values through `inject_*` methods; they
  are not connected to the simulators, and the simulators do not model
  movement or settling time.
- There is no command-line program, no user interface, no audit log and no
  persistent storage; the package is used as a library.