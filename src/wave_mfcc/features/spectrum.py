"""Spectrum kernels: time-domain frame -> complex frequency bins."""

from __future__ import annotations

from typing import Protocol

import numpy as np
import scipy.fft


class SpectrumKernel(Protocol):
    """Computes N complex bins from N real samples. Must be deterministic."""

    def transform(self, samples: np.ndarray) -> np.ndarray: ...


class ScipyFft:
    """Default kernel: plain DFT via scipy.fft."""

    def transform(self, samples: np.ndarray) -> np.ndarray:
        return scipy.fft.fft(np.asarray(samples, dtype=np.float64))
