import numpy as np
import pytest

from calvision.peaks import (
    HedgehogParams,
    extremum,
    find_peaks,
    locate_extrema,
)

CENTERS = np.arange(0.05, 40.0, 0.1)
BINS_PER_MV = 10.0
TRUE = HedgehogParams(
    noise_mean=10.0, noise_width=0.3, enf=0.05, gain=10.0, noise_peak_norm=[1000.0, 600.0, 300.0]
)


def _spectrum():
    return np.round(TRUE.evaluate(CENTERS))


def test_extremum_max_and_min():
    assert extremum(True, 2.0, 1.0)
    assert extremum(True, 1.0, 1.0)
    assert not extremum(True, 1.0, 2.0)
    assert extremum(False, 1.0, 2.0)
    assert not extremum(False, 2.0, 1.0)


def test_size_matches_array_length():
    params = HedgehogParams(1.0, 2.0, 3.0, 4.0, [5.0, 6.0])
    assert HedgehogParams.size(2) == len(params.to_array())


def test_array_round_trip():
    params = HedgehogParams(1.5, 0.2, 0.3, 4.0, [5.0, 6.0, 7.0])
    assert HedgehogParams.from_array(params.to_array()) == params


def test_from_array_too_short():
    with pytest.raises(ValueError):
        HedgehogParams.from_array([1.0, 2.0])


def test_evaluate_at_mean_is_norm():
    params = HedgehogParams(5.0, 0.2, 0.0, 1.0, [7.0])
    assert params.evaluate(5.0) == 7.0


def test_evaluate_second_peak():
    params = HedgehogParams(0.0, 0.01, 0.0, 100.0, [3.0, 8.0])
    assert params.evaluate(100.0) == pytest.approx(8.0)
    assert params.evaluate(0.0) == pytest.approx(3.0)


def test_evaluate_zero_width():
    params = HedgehogParams(0.0, 0.0, 0.0, 1.0, [1.0])
    assert params.evaluate(3.0) == 1.0e30


def test_evaluate_keeps_shape():
    assert TRUE.evaluate(CENTERS).shape == CENTERS.shape


def test_locate_extrema_positions():
    peaks, troughs = locate_extrema(CENTERS, _spectrum(), BINS_PER_MV)
    assert len(peaks) == 3
    assert len(troughs) == 2
    expected = [TRUE.noise_mean + n * TRUE.gain for n in range(3)]
    assert peaks == pytest.approx(expected, abs=0.3)
    for left, trough, right in zip(peaks, troughs, peaks[1:]):
        assert left < trough < right


def test_locate_extrema_respects_min_count():
    peaks, troughs = locate_extrema(CENTERS, _spectrum(), BINS_PER_MV, min_count=1e6)
    assert peaks == []
    assert troughs == []


def test_locate_extrema_window_too_small():
    with pytest.raises(ValueError):
        locate_extrema(CENTERS, _spectrum(), 0.5)


def test_find_peaks_fits_spectrum():
    fit = find_peaks(CENTERS, _spectrum(), BINS_PER_MV)
    assert fit.converged
    assert len(fit.params.noise_peak_norm) == 3
    assert fit.params.gain == pytest.approx(TRUE.gain, abs=0.3)
    assert fit.params.noise_mean == pytest.approx(TRUE.noise_mean, abs=0.3)
    assert fit.lower.gain <= fit.params.gain <= fit.upper.gain


def test_find_peaks_bounds_and_range():
    fit = find_peaks(CENTERS, _spectrum(), BINS_PER_MV)
    assert fit.average_separation == pytest.approx(np.mean(np.diff(fit.peaks)))
    assert fit.initial.noise_mean == fit.peaks[0]
    assert fit.upper.noise_mean == fit.troughs[0]
    low, high = fit.display_range
    assert low < fit.peaks[0]
    assert high > fit.peaks[-1]


def test_find_peaks_needs_two_peaks():
    single = np.round(HedgehogParams(20.0, 0.3, 0.0, 10.0, [1000.0]).evaluate(CENTERS))
    with pytest.raises(ValueError):
        find_peaks(CENTERS, single, BINS_PER_MV)