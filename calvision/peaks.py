"""Photoelectron peak finding and multi-Gaussian ("hedgehog") fits."""

from __future__ import annotations

import math
import warnings
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np
from scipy.optimize import OptimizeWarning, curve_fit

WINDOW_MV = 1.25
MIN_PEAK_COUNT = 40
_ZERO_WIDTH_VALUE = 1.0e30


def _gaus(x: np.ndarray, mean: float, sigma: float) -> np.ndarray:
    """Unnormalised Gaussian; a zero width yields a huge constant."""
    if sigma == 0:
        return np.full_like(x, _ZERO_WIDTH_VALUE)
    return np.exp(-0.5 * ((x - mean) / sigma) ** 2)


@dataclass
class HedgehogParams:
    """Comb of Gaussians spaced by ``gain`` with widths growing by the ENF."""

    noise_mean: float
    noise_width: float
    enf: float
    gain: float
    noise_peak_norm: list[float] = field(default_factory=list)

    @staticmethod
    def size(n: int) -> int:
        """Number of fit parameters for ``n`` peaks."""
        return 4 + n

    @classmethod
    def from_array(cls, values: Sequence[float]) -> "HedgehogParams":
        values = [float(v) for v in values]
        if len(values) < 4:
            raise ValueError(f"need at least 4 parameters, got {len(values)}")
        return cls(*values[:4], noise_peak_norm=values[4:])

    def to_array(self) -> np.ndarray:
        return np.array(
            [self.noise_mean, self.noise_width, self.enf, self.gain, *self.noise_peak_norm],
            dtype=float,
        )

    def evaluate(self, x):
        xs = np.asarray(x, dtype=float)
        enf_sq = (self.enf * self.gain) ** 2
        sigma_sq = (self.noise_width * self.gain) ** 2
        mean = self.noise_mean
        total = np.zeros_like(xs)
        for norm in self.noise_peak_norm:
            total = total + norm * _gaus(xs, mean, math.sqrt(sigma_sq))
            mean += self.gain
            sigma_sq += enf_sq
        return total.item() if total.ndim == 0 else total


def extremum(use_max: bool, a: float, b: float) -> bool:
    """``a >= b`` when looking for maxima, ``a <= b`` for minima."""
    return a >= b if use_max else a <= b


def locate_extrema(
    centers: Sequence[float],
    contents: Sequence[float],
    bins_per_mv: float,
    min_count: float = MIN_PEAK_COUNT,
) -> tuple[list[float], list[float]]:
    """Alternating peaks and troughs, found with a sliding window of 1.25 mV.

    Empty bins are ignored inside a window, and windows whose extreme holds
    fewer than ``min_count`` entries are skipped. Returns the bin centres of
    the peaks and of the troughs.
    """
    xs = np.asarray(centers, dtype=float)
    ys = np.asarray(contents, dtype=float)
    if xs.shape != ys.shape or xs.ndim != 1:
        raise ValueError("centers and contents must be 1-D arrays of equal length")
    window = int(bins_per_mv * WINDOW_MV)
    if window < 1:
        raise ValueError(f"window of {window} bins is too small; raise bins_per_mv")

    peaks: list[float] = []
    troughs: list[float] = []
    i_prev = 0
    find_max = True
    for i in range(len(ys) - window + 1):
        i_ext = i
        for index in range(i + 1, i + window):
            if ys[index] != 0 and extremum(find_max, ys[index], ys[i_ext]):
                i_ext = index

        if ys[i_ext] < min_count:
            continue

        if not extremum(find_max, ys[i_ext], ys[i_prev]):
            (peaks if find_max else troughs).append(float(xs[i_prev]))
            find_max = not find_max

        i_prev = i_ext

    return peaks, troughs


@dataclass
class PeakFit:
    """Outcome of a peak search and hedgehog fit."""

    peaks: list[float]
    troughs: list[float]
    average_separation: float
    initial: HedgehogParams
    lower: HedgehogParams
    upper: HedgehogParams
    params: HedgehogParams
    converged: bool

    @property
    def display_range(self) -> tuple[float, float]:
        """Axis range that shows the peaks comfortably."""
        return (
            self.peaks[0] - self.average_separation,
            self.peaks[-1] + 3 * self.average_separation,
        )


def find_peaks(
    centers: Sequence[float], contents: Sequence[float], bins_per_mv: float
) -> PeakFit:
    """Locate photoelectron peaks and fit a hedgehog function to the spectrum."""
    xs = np.asarray(centers, dtype=float)
    ys = np.asarray(contents, dtype=float)
    peaks, troughs = locate_extrema(xs, ys, bins_per_mv)
    if len(peaks) < 2 or not troughs:
        raise ValueError(f"need at least two peaks to fit, found {len(peaks)}")

    separation = float(np.mean(np.diff(peaks)))
    n_peaks = len(peaks)
    heights = [float(ys[int(np.argmin(np.abs(xs - p)))]) for p in peaks]

    initial = HedgehogParams(peaks[0], 0.1, 0.1, separation, heights)
    lower = HedgehogParams(float(xs[0]), 0.0, 0.0, 0.5 * separation, [0.0] * n_peaks)
    upper = HedgehogParams(troughs[0], 3.0, 3.0, 1.5 * separation, [1.1 * h for h in heights])

    filled = ys > 0

    def model(x, *p):
        return HedgehogParams.from_array(p).evaluate(x)

    try:
        with warnings.catch_warnings(), np.errstate(all="ignore"):
            warnings.simplefilter("ignore", OptimizeWarning)
            popt, _ = curve_fit(
                model,
                xs[filled],
                ys[filled],
                p0=initial.to_array(),
                sigma=np.sqrt(ys[filled]),
                bounds=(lower.to_array(), upper.to_array()),
            )
        params, converged = HedgehogParams.from_array(popt), bool(np.all(np.isfinite(popt)))
    except (RuntimeError, ValueError):
        params, converged = initial, False

    return PeakFit(
        peaks=peaks,
        troughs=troughs,
        average_separation=separation,
        initial=initial,
        lower=lower,
        upper=upper,
        params=params,
        converged=converged,
    )