"""Waveform scaling, zero suppression, noise estimates and profile averaging."""

from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np

ADC_COUNTS = 0x1000
SUPPRESSION_TAIL = 100
DEFAULT_MIN_OVER_THRESHOLD = 4
DEFAULT_MAX_VOLTAGE = 250.0
DEFAULT_PRERANGE_NS = 25.0


def sample_times(n_samples: int, interval: float) -> np.ndarray:
    """Times of ``n_samples`` samples spaced by ``interval``, starting at zero."""
    if n_samples < 0:
        raise ValueError(f"sample count must be non-negative, got {n_samples}")
    return np.arange(n_samples, dtype=float) * float(interval)


def scale_voltages(raw, gain: float, offset: float) -> np.ndarray:
    """Convert raw ADC samples to voltages: ``gain * (raw - offset)``."""
    return gain * (np.asarray(raw, dtype=float) - offset)


def adc_bin_count(x_min: float, x_max: float, vgain: float) -> int:
    """Number of histogram bins so that each spans one ADC count in millivolts."""
    if vgain == 0:
        raise ValueError("vertical gain must be non-zero")
    return int((x_max - x_min) / (1000 * vgain / ADC_COUNTS))


def passes_suppression(
    volts: Sequence[float],
    threshold: float,
    min_over_threshold: int = DEFAULT_MIN_OVER_THRESHOLD,
    max_voltage: float = DEFAULT_MAX_VOLTAGE,
) -> bool:
    """Whether a waveform holds a real pulse.

    The running peak-to-peak swing is tracked over all but the last 100
    samples (where the readout spikes). The waveform is rejected outright if
    the swing exceeds ``max_voltage``, and accepted if it ends with at least
    ``min_over_threshold`` consecutive samples whose swing exceeds
    ``threshold``.
    """
    samples = np.asarray(volts, dtype=float)
    if samples.size == 0:
        return False
    high = low = samples[0]
    swing = 0.0
    run = 0
    for value in samples[: max(len(samples) - SUPPRESSION_TAIL, 0)]:
        high = max(value, high)
        low = min(value, low)
        swing = max(swing, high - low)
        if swing > max_voltage:
            return False
        run = run + 1 if swing > threshold else 0
    return run >= min_over_threshold


def calc_noise(
    waveforms: Iterable[Sequence[float]],
    times: Sequence[float],
    prerange: float = DEFAULT_PRERANGE_NS,
) -> float:
    """Sample variance of the voltages recorded before ``prerange``.

    Only the first half of each waveform is considered.
    """
    ts = np.asarray(times, dtype=float)
    total = 0.0
    total_sq = 0.0
    count = 0
    for waveform in waveforms:
        volts = np.asarray(waveform, dtype=float)
        limit = min(len(volts) // 2, len(ts))
        late = np.nonzero(ts[:limit] > prerange)[0]
        if late.size:
            limit = int(late[0])
        selected = volts[:limit]
        total += float(selected.sum())
        total_sq += float((selected * selected).sum())
        count += len(selected)
    if count < 2:
        raise ValueError(f"need at least two samples before the pulse, got {count}")
    return (total_sq - total * total / count) / (count - 1)


class Profile:
    """Fixed-width binned profile: mean of ``y`` in each bin of ``x``.

    Bins are indexed from 0; values outside ``[low, high)`` are not recorded.
    """

    def __init__(self, n_bins: int, low: float, high: float):
        if n_bins < 1:
            raise ValueError(f"need at least one bin, got {n_bins}")
        if not high > low:
            raise ValueError(f"upper edge {high} must exceed lower edge {low}")
        self.n_bins = n_bins
        self.low = float(low)
        self.high = float(high)
        self._sums = np.zeros(n_bins)
        self._counts = np.zeros(n_bins, dtype=np.int64)

    @property
    def width(self) -> float:
        return (self.high - self.low) / self.n_bins

    def _indices(self, x) -> np.ndarray:
        xs = np.asarray(x, dtype=float)
        raw = np.floor(self.n_bins * (xs - self.low) / (self.high - self.low))
        return np.clip(raw, -1, self.n_bins).astype(np.int64)

    def find_bin(self, x: float) -> int:
        """Bin index of ``x``: -1 below the range, ``n_bins`` at or above it."""
        return int(self._indices(x))

    def fill(self, x, y) -> None:
        """Add one or many ``(x, y)`` points."""
        xs, ys = np.broadcast_arrays(np.asarray(x, dtype=float), np.asarray(y, dtype=float))
        index = self._indices(xs).ravel()
        values = ys.ravel()
        inside = (index >= 0) & (index < self.n_bins)
        np.add.at(self._sums, index[inside], values[inside])
        np.add.at(self._counts, index[inside], 1)

    def centers(self) -> np.ndarray:
        return self.low + (np.arange(self.n_bins) + 0.5) * self.width

    def counts(self) -> np.ndarray:
        return self._counts.copy()

    def means(self) -> np.ndarray:
        """Mean of each bin; empty bins read as zero."""
        result = np.zeros(self.n_bins)
        filled = self._counts > 0
        result[filled] = self._sums[filled] / self._counts[filled]
        return result

    def reset(self) -> None:
        self._sums[:] = 0.0
        self._counts[:] = 0


def average_waveform(waveforms: Iterable[Sequence[float]], interval: float) -> Profile:
    """Profile of many waveforms, one bin centred on each sample time."""
    rows = [np.asarray(w, dtype=float) for w in waveforms]
    if not rows:
        raise ValueError("need at least one waveform")
    n_samples = len(rows[0])
    if any(len(row) != n_samples for row in rows):
        raise ValueError("all waveforms must have the same length")
    if interval <= 0:
        raise ValueError(f"sampling interval must be positive, got {interval}")
    profile = Profile(n_samples, -0.5 * interval, (n_samples - 0.5) * interval)
    times = sample_times(n_samples, interval)
    for row in rows:
        profile.fill(times, row)
    return profile