"""Single-photon spectra, high/low gain comparisons and trigger-time checks."""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import pairwise
from typing import Sequence

import numpy as np

BINS_PER_MV = 4.096
RANGE_HEADROOM_MV = 20.0
RANGE_SCALE = 3.0
TIME_TOLERANCE = 0.01
NORMALIZE_HALF_WIDTH = 5


def desy_bin_count(x_min: float, x_max: float) -> int:
    """Number of histogram bins for a millivolt range, 4.096 bins per mV."""
    return int((x_max - x_min) * BINS_PER_MV)


def pulse_height_range(maximum: float, baseline: float) -> tuple[float, float]:
    """Histogram range ``(v_min, v_max)`` for pulse heights.

    The upper edge is three times the average pulse amplitude plus 20 mV of
    headroom; the lower edge is minus half of that amplitude, never above zero.
    """
    v_max = (maximum - baseline) * RANGE_SCALE
    v_min = min(-v_max / 2.0, 0.0)
    return v_min, v_max + RANGE_HEADROOM_MV


def _waveform_matrix(waveforms) -> np.ndarray:
    samples = np.atleast_2d(np.asarray(waveforms, dtype=float))
    if samples.ndim != 2:
        raise ValueError("waveforms must be a 2-D array of samples")
    return samples


def _check_index(samples: np.ndarray, *indices: int) -> None:
    n = samples.shape[1]
    bad = [i for i in indices if not 0 <= i < n]
    if bad:
        raise IndexError(f"sample indices {bad} outside [0, {n})")


def spr_pulse_heights(waveforms, i_peak: int, i_start: int) -> np.ndarray:
    """Peak sample minus the sample at the pulse start, per waveform."""
    samples = _waveform_matrix(waveforms)
    _check_index(samples, i_peak, i_start)
    return samples[:, i_peak] - samples[:, i_start]


def amplitude_ratios(
    hg_waveforms,
    lg_waveforms,
    hg_peak: int,
    hg_start: int,
    lg_peak: int,
    lg_start: int,
) -> np.ndarray:
    """Low-gain over high-gain amplitude per event.

    The low-gain signal has inverted polarity, so its amplitude is negated.
    """
    hg = _waveform_matrix(hg_waveforms)
    lg = _waveform_matrix(lg_waveforms)
    if hg.shape[0] != lg.shape[0]:
        raise ValueError(
            f"event counts differ: {hg.shape[0]} high gain, {lg.shape[0]} low gain"
        )
    _check_index(hg, hg_peak, hg_start)
    _check_index(lg, lg_peak, lg_start)
    hg_amplitude = hg[:, hg_peak] - hg[:, hg_start]
    lg_amplitude = lg[:, lg_peak] - lg[:, lg_start]
    with np.errstate(divide="ignore", invalid="ignore"):
        return -lg_amplitude / hg_amplitude


def normalize_shape(
    values: Sequence[float], i_peak: int, half_width: int = NORMALIZE_HALF_WIDTH
) -> np.ndarray:
    """Scale a pulse shape so that its mean around the peak is one.

    The mean is taken over ``i_peak - half_width`` to ``i_peak + half_width``.
    """
    shape = np.asarray(values, dtype=float)
    if half_width < 0:
        raise ValueError(f"half width must be non-negative, got {half_width}")
    low, high = i_peak - half_width, i_peak + half_width
    if low < 0 or high >= len(shape):
        raise IndexError(f"window [{low}, {high}] outside [0, {len(shape)})")
    window = shape[low : high + 1]
    total = float(window.sum())
    if total == 0:
        raise ValueError("shape sums to zero around the peak")
    return shape * (len(window) / total)


@dataclass
class TimingReport:
    """Trigger intervals that wrapped or strayed from the expected period."""

    period: float
    wrapped: list[tuple[int, float]] = field(default_factory=list)
    bad: list[tuple[int, float]] = field(default_factory=list)

    @property
    def num_bad(self) -> int:
        return len(self.bad)


def check_times(times: Sequence[float], frequency: float) -> TimingReport:
    """Compare consecutive trigger times (ns) with a trigger frequency (Hz).

    A negative interval counts as a counter wrap; an interval more than 1 %
    away from the period counts as bad.
    """
    if frequency <= 0:
        raise ValueError(f"frequency must be positive, got {frequency}")
    report = TimingReport(period=1e9 / frequency)
    for index, (earlier, later) in enumerate(pairwise(times)):
        interval = later - earlier
        if interval < 0:
            report.wrapped.append((index, interval))
        elif abs(interval - report.period) / report.period >= TIME_TOLERANCE:
            report.bad.append((index, interval))
    return report