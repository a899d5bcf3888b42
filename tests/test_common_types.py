import threading

import pytest

from th25ctrl.common_types import (
    BeamState,
    ControlError,
    DoseCGy,
    ElectronGunCurrentMA,
    EnergyMeV,
    EnergyMV,
    ErrorCode,
    LifecycleState,
    MagnetCurrentA,
    PositionMm,
    PulseCount,
    PulseCounter,
    Severity,
    TreatmentMode,
    error_category,
    severity_of,
)


def test_enum_values_fixed_by_design():
    assert LifecycleState(0) is LifecycleState.INIT
    assert LifecycleState(7) is LifecycleState.ERROR
    assert TreatmentMode(1) is TreatmentMode.ELECTRON
    assert TreatmentMode(3) is TreatmentMode.LIGHT
    assert BeamState(3) is BeamState.STOPPING
    assert ErrorCode(0xFF03) is ErrorCode.INTERNAL_UNEXPECTED_STATE
    assert error_category(ErrorCode(0xFF03)) == 0xFF


@pytest.mark.parametrize(
    "code, category",
    [
        (ErrorCode.MODE_INVALID_TRANSITION, 0x01),
        (ErrorCode.BEAM_ON_NOT_PERMITTED, 0x02),
        (ErrorCode.DOSE_OVERFLOW, 0x03),
        (ErrorCode.TURNTABLE_OUT_OF_POSITION, 0x04),
        (ErrorCode.TURNTABLE_MOVE_TIMEOUT, 0x04),
        (ErrorCode.MAGNET_CURRENT_DEVIATION, 0x05),
        (ErrorCode.MAGNET_CURRENT_SENSOR_FAILURE, 0x05),
        (ErrorCode.IPC_QUEUE_OVERFLOW, 0x06),
        (ErrorCode.AUTH_EXPIRED, 0x07),
        (ErrorCode.INTERNAL_ASSERTION, 0xFF),
    ],
)
def test_error_category(code, category):
    assert error_category(code) == category


@pytest.mark.parametrize(
    "code, severity",
    [
        (ErrorCode.MODE_POSITION_MISMATCH, Severity.CRITICAL),
        (ErrorCode.BEAM_OFF_TIMEOUT, Severity.CRITICAL),
        (ErrorCode.DOSE_SENSOR_FAILURE, Severity.CRITICAL),
        (ErrorCode.INTERNAL_QUEUE_FULL, Severity.CRITICAL),
        (ErrorCode.TURNTABLE_SENSOR_DISCREPANCY, Severity.HIGH),
        (ErrorCode.IPC_CHANNEL_CLOSED, Severity.HIGH),
        (ErrorCode.MAGNET_CURRENT_DEVIATION, Severity.MEDIUM),
        (ErrorCode.AUTH_REQUIRED, Severity.MEDIUM),
    ],
)
def test_severity_of(code, severity):
    assert severity_of(code) is severity


def test_every_error_code_has_known_severity_class():
    for code in ErrorCode:
        assert severity_of(code) in {Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM}


def test_control_error_carries_code_and_severity():
    err = ControlError(ErrorCode.DOSE_OUT_OF_RANGE)
    assert isinstance(err, Exception)
    assert err.code is ErrorCode.DOSE_OUT_OF_RANGE
    assert err.severity is Severity.CRITICAL
    assert "DOSE_OUT_OF_RANGE" in str(err)


def test_strong_types_compare_within_type():
    assert EnergyMeV(1.0) == EnergyMeV(1.0)
    assert EnergyMeV(1.0) < EnergyMeV(2.0)
    assert MagnetCurrentA(2.5) <= MagnetCurrentA(2.5)
    assert ElectronGunCurrentMA(0.0) == ElectronGunCurrentMA(0)


def test_strong_types_do_not_mix_units():
    assert EnergyMeV(5.0) != EnergyMV(5.0)
    assert MagnetCurrentA(1.0) != 1.0
    with pytest.raises(TypeError):
        _ = EnergyMeV(1.0) < EnergyMV(2.0)


def test_strong_types_are_immutable():
    dose = DoseCGy(1.0)
    with pytest.raises(AttributeError):
        dose.value = 2.0  # type: ignore[misc]
    assert dose.value == 1.0
    assert dose == DoseCGy(1.0)


def test_add_dose_returns_new_instance():
    original = DoseCGy(1.5)
    total = original.add_dose(DoseCGy(2.0))
    assert total == DoseCGy(3.5)
    assert original == DoseCGy(1.5)


def test_abs_diff_is_symmetric_and_non_negative():
    a = PositionMm(50.0)
    b = PositionMm(-50.0)
    assert a.abs_diff(b) == b.abs_diff(a)
    assert a.abs_diff(b).value >= 0.0
    assert a.abs_diff(a) == PositionMm(0.0)


def test_pulse_count_validation():
    assert PulseCount(0).value == 0
    with pytest.raises(ValueError):
        PulseCount(-1)
    with pytest.raises(ValueError):
        PulseCount(1 << 64)
    with pytest.raises(TypeError):
        PulseCount(1.5)  # type: ignore[arg-type]


def test_pulse_counter_fetch_add_returns_previous():
    counter = PulseCounter()
    assert counter.load() == PulseCount(0)
    assert counter.fetch_add(PulseCount(5)) == PulseCount(0)
    assert counter.fetch_add(PulseCount(3)) == PulseCount(5)
    assert counter.load() == PulseCount(8)


def test_pulse_counter_reset():
    counter = PulseCounter()
    counter.fetch_add(PulseCount(42))
    counter.reset()
    assert counter.load() == PulseCount(0)


def test_pulse_counter_wraps_at_64_bits():
    counter = PulseCounter()
    counter.fetch_add(PulseCount((1 << 64) - 1))
    assert counter.fetch_add(PulseCount(1)) == PulseCount((1 << 64) - 1)
    assert counter.load() == PulseCount(0)


def test_pulse_counter_concurrent_adds_are_not_lost():
    counter = PulseCounter()
    threads_count = 4
    per_thread = 2000

    def worker():
        for _ in range(per_thread):
            counter.fetch_add(PulseCount(1))

    threads = [threading.Thread(target=worker) for _ in range(threads_count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert counter.load() == PulseCount(threads_count * per_thread)