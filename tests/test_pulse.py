import numpy as np
import pytest

from calvision.pulse import (
    PulseFitter,
    PulseParams,
    fit_pulse_shape,
    gain_bin_count,
    initial_pulse_guess,
    pulse,
    pulse_heights,
    pulse_integrals,
    signal_polarity,
)

TRUE = dict(x0=50.0, amplitude=2.0, a=2.0, tau=10.0, pedestal=5.0)
CENTERS = np.arange(0.0, 200.0, 1.0)


def _contents():
    return pulse(CENTERS, **TRUE)


def _waveforms():
    return np.random.default_rng(0).normal(size=(6, 40))


def test_pulse_is_pedestal_up_to_start():
    values = pulse(np.array([0.0, 20.0, TRUE["x0"]]), **TRUE)
    assert np.all(values == TRUE["pedestal"])


def test_pulse_peaks_at_a_times_tau():
    values = _contents()
    assert CENTERS[np.argmax(values)] == TRUE["x0"] + TRUE["a"] * TRUE["tau"]


def test_pulse_scalar_matches_params_method():
    params = PulseParams(**TRUE)
    value = pulse(60.0, **TRUE)
    assert isinstance(value, float)
    assert value > TRUE["pedestal"]
    assert params.pulse(60.0) == value
    assert np.array_equal(params.pulse(CENTERS), _contents())


def test_params_round_trip():
    params = PulseParams(**TRUE)
    assert PulseParams.from_sequence(params.to_tuple()) == params
    assert params.to_tuple()[0] == TRUE["x0"]


def test_params_wrong_length():
    with pytest.raises(ValueError):
        PulseParams.from_sequence([1.0, 2.0, 3.0])


def test_fitter_pedestal_and_peak():
    fitter = PulseFitter(CENTERS, _contents())
    assert fitter.pedestal == pytest.approx(TRUE["pedestal"])
    assert fitter.x_peak == TRUE["x0"] + TRUE["a"] * TRUE["tau"]
    assert fitter.y_peak == pytest.approx(_contents().max())
    assert fitter.pedestal_end < TRUE["x0"]
    assert fitter.x_min == CENTERS[0]
    assert fitter.x_max == CENTERS[-1]


def test_fitter_reproduces_rising_edge():
    fitter = PulseFitter(CENTERS, _contents())
    assert fitter.converged
    mask = (CENTERS >= fitter.pedestal_end) & (CENTERS <= fitter.x_peak)
    residual = np.abs(fitter.params.pulse(CENTERS[mask]) - _contents()[mask])
    assert residual.max() < 1.0
    assert fitter.params.pedestal == fitter.pedestal


def test_fitter_rejects_flat_histogram():
    with pytest.raises(ValueError):
        PulseFitter(CENTERS, np.full_like(CENTERS, 3.0))


def test_fitter_rejects_mismatched_arrays():
    with pytest.raises(ValueError):
        PulseFitter(CENTERS, np.zeros(5))


def test_initial_guess_invariants():
    guess = initial_pulse_guess(CENTERS, _contents())
    x_peak = CENTERS[np.argmax(_contents())]
    assert guess.pedestal == TRUE["pedestal"]
    assert guess.a == 1.0
    assert guess.x0 == int(guess.x0)
    assert guess.x0 < x_peak
    assert guess.amplitude > 0
    assert guess.tau > 0


def test_initial_guess_needs_a_rise():
    contents = np.zeros_like(CENTERS)
    contents[0] = 7.0
    with pytest.raises(ValueError):
        initial_pulse_guess(CENTERS, contents)


def test_fit_pulse_shape_recovers_parameters():
    params = fit_pulse_shape(CENTERS, _contents())
    assert params.pedestal == TRUE["pedestal"]
    assert params.x0 == pytest.approx(TRUE["x0"], abs=0.05)
    assert params.a == pytest.approx(TRUE["a"], rel=1e-2)
    assert params.tau == pytest.approx(TRUE["tau"], rel=1e-2)
    assert params.amplitude == pytest.approx(TRUE["amplitude"], rel=5e-2)


def test_gain_bin_count():
    assert gain_bin_count(-20.0, 80.0, 0.5) == 200
    assert gain_bin_count(-20.0, 80.0, -0.5) == gain_bin_count(-20.0, 80.0, 0.5)


def test_gain_bin_count_zero_gain():
    with pytest.raises(ValueError):
        gain_bin_count(0.0, 1.0, 0.0)


def test_signal_polarity():
    assert signal_polarity(-10.0, 5.0) == -1.0
    assert signal_polarity(-1.0, 5.0) == 1.0


def test_pulse_heights_scale_with_gain():
    waves = _waveforms()
    base = pulse_heights(waves, 10, 2, 1.0)
    assert base.shape == (6,)
    assert np.allclose(pulse_heights(waves, 10, 2, -3.0), -3.0 * base)


def test_pulse_heights_same_index_is_zero():
    heights = pulse_heights(_waveforms(), 4, 4, 2.5)
    assert heights.tolist() == [0.0] * 6


def test_single_sample_integral_equals_height():
    waves = _waveforms()
    assert np.allclose(
        pulse_integrals(waves, 12, 13, 3, 2.0, 1.0), pulse_heights(waves, 12, 3, 2.0)
    )


def test_integrals_ignore_constant_offset_and_scale_linearly():
    waves = _waveforms()
    ref = pulse_integrals(waves, 5, 25, 1, 1.5, 1.0)
    assert np.allclose(pulse_integrals(waves + 17.0, 5, 25, 1, 1.5, 1.0), ref)
    assert np.allclose(pulse_integrals(waves, 5, 25, 1, 1.5, 4.0), 4.0 * ref)


def test_empty_integration_window_is_zero():
    integrals = pulse_integrals(_waveforms(), 20, 10, 0, 1.0, 1.0)
    assert integrals.tolist() == [0.0] * 6


def test_negative_index_rejected():
    with pytest.raises(ValueError):
        pulse_integrals(_waveforms(), -3, 10, 0, 1.0, 1.0)