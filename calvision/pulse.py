"""Pulse-shape model, fits to average waveforms and per-event pulse heights."""

from __future__ import annotations

import math
import warnings
from dataclasses import astuple, dataclass
from typing import Iterable, Sequence

import numpy as np
from scipy.optimize import OptimizeWarning, curve_fit

PEDESTAL_DELAY_NS = 10.0
PEDESTAL_FRACTION = 0.1
RISE_FRACTION = 0.1
_MAX_EVALUATIONS = 10000


def pulse(x, x0, amplitude, a, tau, pedestal):
    """Pedestal plus ``A (x - x0)^a exp(-(x - x0) / tau)`` for ``x > x0``."""
    xs = np.asarray(x, dtype=float)
    dx = xs - x0
    rising = dx > 0
    with np.errstate(all="ignore"):
        shape = amplitude * np.power(np.where(rising, dx, 1.0), a) * np.exp(
            -np.where(rising, dx, 0.0) / tau
        )
    value = np.where(rising, pedestal + shape, pedestal)
    return value.item() if value.ndim == 0 else value


@dataclass
class PulseParams:
    """Parameters of the pulse model, in fit order."""

    x0: float = 0.0
    amplitude: float = 0.0
    a: float = 0.0
    tau: float = 0.0
    pedestal: float = 0.0

    def pulse(self, x):
        return pulse(x, self.x0, self.amplitude, self.a, self.tau, self.pedestal)

    @classmethod
    def from_sequence(cls, values: Iterable[float]) -> "PulseParams":
        values = tuple(float(v) for v in values)
        if len(values) != 5:
            raise ValueError(f"expected 5 pulse parameters, got {len(values)}")
        return cls(*values)

    def to_tuple(self) -> tuple[float, float, float, float, float]:
        return astuple(self)


def _as_histogram(centers, contents) -> tuple[np.ndarray, np.ndarray]:
    xs = np.asarray(centers, dtype=float)
    ys = np.asarray(contents, dtype=float)
    if xs.ndim != 1 or xs.shape != ys.shape:
        raise ValueError("centers and contents must be 1-D arrays of equal length")
    if len(xs) < 2:
        raise ValueError("a histogram needs at least two bins")
    return xs, ys


def _fit_fixed_pedestal(xs, ys, initial: PulseParams) -> tuple[PulseParams, bool]:
    """Least-squares fit of the pulse model with the pedestal held fixed."""

    def model(x, x0, amplitude, a, tau):
        return pulse(x, x0, amplitude, a, tau, initial.pedestal)

    p0 = [initial.x0, initial.amplitude, initial.a, initial.tau]
    try:
        with warnings.catch_warnings(), np.errstate(all="ignore"):
            warnings.simplefilter("ignore", OptimizeWarning)
            popt, _ = curve_fit(model, xs, ys, p0=p0, maxfev=_MAX_EVALUATIONS)
    except (RuntimeError, ValueError, TypeError):
        return initial, False
    if not np.all(np.isfinite(popt)):
        return initial, False
    return PulseParams(*(float(p) for p in popt), initial.pedestal), True


class PulseFitter:
    """Fits the pedestal and then the rising edge of an average waveform."""

    def __init__(self, centers: Sequence[float], contents: Sequence[float]):
        self.centers, self.contents = _as_histogram(centers, contents)
        self.x_min = float(self.centers[0])
        self.x_max = float(self.centers[-1])

        initial_pedestal = float(self.contents[0])

        self.i_peak = int(np.argmax(self.contents))
        self.x_peak = float(self.centers[self.i_peak])
        self.y_peak = float(self.contents[self.i_peak])

        threshold = PEDESTAL_FRACTION * (self.y_peak - initial_pedestal)
        quiet = next(
            (
                i
                for i in range(self.i_peak, -1, -1)
                if abs(self.contents[i] - initial_pedestal) < threshold
            ),
            None,
        )
        if quiet is None:
            raise ValueError("no pulse rises above the pedestal")

        self.pedestal_end = float(self.centers[quiet]) - PEDESTAL_DELAY_NS
        self.i_pedestal_end = self._find_bin(self.pedestal_end)

        in_range = (self.centers >= self.x_min) & (self.centers <= self.pedestal_end)
        self.pedestal = (
            float(np.mean(self.contents[in_range])) if in_range.any() else initial_pedestal
        )

        self.params = PulseParams()
        self.converged = False
        self.fit_pulse()

    def _find_bin(self, x: float) -> int:
        """Index of the bin holding ``x``; -1 below the range, n above it."""
        width = self.centers[1] - self.centers[0]
        edges = np.append(self.centers - width / 2, self.centers[-1] + width / 2)
        index = int(np.searchsorted(edges, x, side="right")) - 1
        return min(index, len(self.centers))

    def fit_pulse(self) -> PulseParams:
        """Fit the pulse model between the pedestal end and the peak."""
        span = self.x_peak - self.pedestal_end
        initial = PulseParams(
            x0=self.pedestal_end,
            amplitude=(self.y_peak - self.pedestal) / span,
            a=1.0,
            pedestal=self.pedestal,
        )
        initial.tau = span / (initial.a * math.log(span))

        in_range = (self.centers >= self.pedestal_end) & (self.centers <= self.x_peak)
        self.params, self.converged = _fit_fixed_pedestal(
            self.centers[in_range], self.contents[in_range], initial
        )
        return self.params


def initial_pulse_guess(centers: Sequence[float], contents: Sequence[float]) -> PulseParams:
    """Starting parameters for a pulse fit.

    The start time is the last whole-number bin centre before the peak whose
    content falls under a tenth of the maximum.
    """
    xs, ys = _as_histogram(centers, contents)
    i_max = int(np.argmax(ys))
    x_peak = float(xs[i_max])
    y_max = float(ys[i_max])

    below = next((i for i in range(i_max, -1, -1) if ys[i] < RISE_FRACTION * y_max), None)
    x0 = int(xs[below]) if below is not None else int(x_peak)

    baseline = float(ys[0])
    span = x_peak - x0
    if span <= 0:
        raise ValueError("pulse has no rising edge before its peak")
    log_span = math.log(span)
    if log_span == 0:
        raise ValueError("rise time too short to estimate the decay constant")

    a = 1.0
    return PulseParams(
        x0=float(x0),
        amplitude=(y_max - baseline) / span,
        a=a,
        tau=span / a / log_span,
        pedestal=baseline,
    )


def fit_pulse_shape(centers: Sequence[float], contents: Sequence[float]) -> PulseParams:
    """Fit the pulse model over every bin, pedestal fixed at the first bin."""
    xs, ys = _as_histogram(centers, contents)
    params, _ = _fit_fixed_pedestal(xs, ys, initial_pulse_guess(xs, ys))
    return params


def gain_bin_count(x_min: float, x_max: float, vgain: float) -> int:
    """Number of bins so that each spans roughly one ADC count."""
    if vgain == 0:
        raise ValueError("vertical gain must be non-zero")
    return int((x_max - x_min) / abs(vgain))


def signal_polarity(minimum: float, maximum: float) -> float:
    """-1 when the signal swings further negative than positive, else +1."""
    return -1.0 if abs(minimum) > abs(maximum) else 1.0


def _check_indices(*indices: int) -> None:
    if any(i < 0 for i in indices):
        raise ValueError(f"sample indices must be non-negative, got {indices}")


def pulse_heights(waveforms, i_peak: int, i_baseline: int, gain: float) -> np.ndarray:
    """Peak sample minus baseline sample for each waveform, times the gain."""
    _check_indices(i_peak, i_baseline)
    samples = np.atleast_2d(np.asarray(waveforms, dtype=float))
    return (samples[:, i_peak] - samples[:, i_baseline]) * gain


def pulse_integrals(
    waveforms, i_start: int, i_stop: int, i_baseline: int, gain: float, scale: float
) -> np.ndarray:
    """Baseline-subtracted sum over samples ``[i_start, i_stop)``, scaled."""
    _check_indices(i_start, i_stop, i_baseline)
    samples = np.atleast_2d(np.asarray(waveforms, dtype=float))
    window = samples[:, i_start:i_stop] - samples[:, [i_baseline]]
    return window.sum(axis=1) * gain * scale