"""Mel scale conversion and the triangular mel filter bank."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Union

import numpy as np

from wave_mfcc.errors import DimensionMismatch

ArrayLike = Union[float, np.ndarray]


@dataclass(frozen=True)
class MelScale:
    """Mel scale m = factor * ln(1 + f / corner_hz)."""

    factor: float = 1127.01048
    corner_hz: float = 700.0

    def to_mel(self, linear_frequency: ArrayLike) -> ArrayLike:
        return self.factor * np.log(1.0 + np.asarray(linear_frequency) / self.corner_hz)

    def to_linear(self, mel_frequency: ArrayLike) -> ArrayLike:
        return self.corner_hz * (np.exp(np.asarray(mel_frequency) / self.factor) - 1.0)


DEFAULT_SCALE = MelScale()


def linear_to_mel(linear_frequency: ArrayLike) -> ArrayLike:
    """Converts frequency from linear to mel scale."""
    return DEFAULT_SCALE.to_mel(linear_frequency)


def mel_to_linear(mel_frequency: ArrayLike) -> ArrayLike:
    """Converts frequency from mel to linear scale."""
    return DEFAULT_SCALE.to_linear(mel_frequency)


def filter_width_for(sample_rate: float, num_filters: int, scale: MelScale = DEFAULT_SCALE) -> float:
    """Mel width of each filter so that num_filters cover [0, Nyquist].

    Adjacent filters overlap by half a width, so N filters need N + 1
    half-widths.
    """
    mel_low = float(scale.to_mel(0.0))
    mel_high = float(scale.to_mel(sample_rate / 2.0))
    return 2.0 * (mel_high - mel_low) / (num_filters + 1)


class MelFilterBank:
    """Set of overlapping triangular filters spaced evenly in mel frequency.

    Filter i spans mel frequencies [i * w/2, i * w/2 + w] with its peak in
    the middle, where w is ``filter_width``. Edges are converted to periodogram
    bins floor(f * frame_size / sample_rate). Weights rise linearly from 0 at
    the left edge to exactly 1.0 at the center bin and fall back to 0 at the
    right edge; filter i's center is filter i+1's left edge.

    The bank is tied to one (sample_rate, frame_size) pair.
    """

    def __init__(
        self,
        sample_rate: float,
        frame_size: int,
        filter_width: float,
        num_filters: int,
        scale: MelScale = DEFAULT_SCALE,
    ):
        """
        Args:
            sample_rate: Sample frequency in Hz.
            frame_size: Number of samples fed to the spectrum kernel.
            filter_width: Width of each filter in mel units.
            num_filters: Number of filters in the bank.
            scale: Mel scale constants.
        """
        if num_filters < 1:
            raise ValueError("num_filters must be >= 1")
        if frame_size < 1:
            raise ValueError("frame_size must be >= 1")
        self.sample_rate = float(sample_rate)
        self.frame_size = frame_size
        self.filter_width = filter_width
        self.num_filters = num_filters
        self.scale = scale
        self.num_bins = int(math.ceil(frame_size / 2))

        mel_points = np.arange(num_filters + 2) * (filter_width / 2.0)
        hz_points = scale.to_linear(mel_points)
        bin_points = np.floor(hz_points * frame_size / self.sample_rate).astype(int)

        self.edges = np.stack([bin_points[:-2], bin_points[1:-1], bin_points[2:]], axis=1)
        self.edges.setflags(write=False)
        self.weights = self._build_weights()
        self.weights.setflags(write=False)

    def _build_weights(self) -> np.ndarray:
        filters = np.zeros((self.num_filters, self.num_bins))
        for i, (left, center, right) in enumerate(self.edges):
            if center >= self.num_bins:
                # filter lies above the last periodogram bin
                rising = np.arange(left, self.num_bins)
                filters[i, rising] = (rising - left) / (center - left)
                continue
            rising = np.arange(left, center)
            filters[i, rising] = (rising - left) / (center - left)
            filters[i, center] = 1.0
            falling = np.arange(center + 1, min(right, self.num_bins))
            filters[i, falling] = (right - falling) / (right - center)
        return filters

    def __len__(self) -> int:
        return self.num_filters

    def apply(self, index: int, periodogram: np.ndarray) -> float:
        """Energy captured under one filter."""
        return float(np.dot(self.weights[index], self._check(periodogram)))

    def apply_all(self, periodogram: np.ndarray) -> np.ndarray:
        """Energy captured under every filter, shape (num_filters,)."""
        return self.weights @ self._check(periodogram)

    def _check(self, periodogram: np.ndarray) -> np.ndarray:
        periodogram = np.asarray(periodogram, dtype=np.float64)
        if periodogram.shape != (self.num_bins,):
            raise DimensionMismatch(
                f"periodogram has shape {periodogram.shape}, filter bank expects ({self.num_bins},)"
            )
        return periodogram
