import pytest

from th25ctrl.common_types import ControlError, DoseCGy, ErrorCode, LifecycleState, PulseCount
from th25ctrl.dose_manager import (
    DOSE_TARGET_MAX_CGY,
    DOSE_TARGET_MIN_CGY,
    DoseManager,
    DoseRatePerPulse,
    is_dose_target_in_range,
)

UINT64_MAX = 2**64 - 1
READY = LifecycleState.READY


def make_manager(rate=1.0):
    return DoseManager(DoseRatePerPulse(rate))


@pytest.fixture
def dm():
    return make_manager()


@pytest.fixture
def targeted(dm):
    dm.set_dose_target(DoseCGy(5.0), READY)
    return dm


def _expect_error(manager, target, state, code):
    with pytest.raises(ControlError) as info:
        manager.set_dose_target(DoseCGy(target), state)
    assert info.value.code == code


def _assert_cleared(manager):
    assert manager.current_target().value == 0.0
    assert not manager.is_target_reached()
    assert manager.target_pulses() == UINT64_MAX


def test_initial_state(dm):
    assert dm.current_accumulated().value == 0.0
    _assert_cleared(dm)


def test_range_constants_bound_the_range_check():
    assert (DOSE_TARGET_MIN_CGY, DOSE_TARGET_MAX_CGY) == (0.01, 10000.0)
    assert is_dose_target_in_range(DoseCGy(DOSE_TARGET_MIN_CGY))
    assert is_dose_target_in_range(DoseCGy(DOSE_TARGET_MAX_CGY))


@pytest.mark.parametrize(
    "value, expected", [(0.01, True), (10000.0, True), (0.0, False), (10000.01, False)]
)
def test_is_dose_target_in_range(value, expected):
    assert is_dose_target_in_range(DoseCGy(value)) is expected


@pytest.mark.parametrize("state", [LifecycleState.PRESCRIPTION_SET, READY])
def test_set_target_round_trip(dm, state):
    dm.set_dose_target(DoseCGy(5.0), state)
    assert dm.target_pulses() == 5
    assert dm.current_target().value == 5.0
    assert not dm.is_target_reached()


@pytest.mark.parametrize(
    "state",
    [s for s in LifecycleState if s not in (LifecycleState.PRESCRIPTION_SET, READY)],
)
def test_set_target_wrong_state(dm, state):
    _expect_error(dm, 5.0, state, ErrorCode.INTERNAL_UNEXPECTED_STATE)
    _assert_cleared(dm)


@pytest.mark.parametrize("value", [0.0, 0.009, 10000.01, -1.0])
def test_set_target_out_of_range(dm, value):
    _expect_error(dm, value, READY, ErrorCode.DOSE_OUT_OF_RANGE)


@pytest.mark.parametrize("rate", [0.0, -1.0, float("nan"), float("inf"), 1e-300])
def test_set_target_overflow(rate):
    manager = make_manager(rate)
    _expect_error(manager, 100.0, READY, ErrorCode.DOSE_OVERFLOW)
    assert manager.target_pulses() == UINT64_MAX


def test_target_truncated_to_whole_pulses():
    manager = make_manager(3.0)
    target = DoseCGy(10.0)
    manager.set_dose_target(target, READY)
    held = manager.current_target().value
    assert target.value - 3.0 < held <= target.value
    assert held == pytest.approx(manager.target_pulses() * 3.0)


def test_pulses_reach_target(targeted):
    for delta, accumulated, reached in ((4, 4.0, False), (1, 5.0, True)):
        targeted.on_dose_pulse(PulseCount(delta))
        assert targeted.current_accumulated().value == accumulated
        assert targeted.is_target_reached() is reached


def test_pulses_without_target_never_reach(dm):
    dm.on_dose_pulse(PulseCount(1000))
    assert dm.current_accumulated().value == 1000.0
    assert not dm.is_target_reached()


def test_set_target_restarts_accumulation(targeted):
    targeted.on_dose_pulse(PulseCount(6))
    assert targeted.is_target_reached()
    targeted.set_dose_target(DoseCGy(8.0), READY)
    assert targeted.current_accumulated().value == 0.0
    assert not targeted.is_target_reached()


@pytest.mark.parametrize("count, expected", [(7, 7.0), (0, 0.0)])
def test_pulse_count_to_dose(dm, count, expected):
    assert dm.pulse_count_to_dose(PulseCount(count)).value == expected


def test_reset_clears_everything(targeted):
    targeted.on_dose_pulse(PulseCount(5))
    targeted.reset()
    assert targeted.current_accumulated().value == 0.0
    _assert_cleared(targeted)