"""Cepstral liftering."""

from __future__ import annotations

import numpy as np

from wave_mfcc.errors import DimensionMismatch

LIFTER_MODES = ("sinusoidal", "sine_window")


def lifter_weights(num_coeffs: int, lifter_coeff: float, mode: str = "sinusoidal") -> np.ndarray:
    """Weights applied to cepstral coefficients 0..num_coeffs-1.

    sinusoidal:  w[c] = 1 + (L / 2) * sin(pi * c / L)
    sine_window: w[c] = sin(pi * c / num_coeffs)
    """
    c = np.arange(num_coeffs, dtype=np.float64)
    if mode == "sinusoidal":
        if lifter_coeff == 0:
            raise ValueError("lifter_coeff must be non-zero")
        return 1.0 + (lifter_coeff / 2.0) * np.sin(np.pi * c / lifter_coeff)
    if mode == "sine_window":
        return np.sin(np.pi * c / num_coeffs)
    raise ValueError(f"lifter mode must be one of {LIFTER_MODES}, got {mode!r}")


class Lifter:
    """Reweights cepstral coefficients to de-emphasize higher orders.

    Interface:
      lifter = Lifter(12, 22)
      lifted = lifter.apply(cepstrum)
    """

    def __init__(self, num_coeffs: int, lifter_coeff: float = 22, mode: str = "sinusoidal"):
        if num_coeffs < 1:
            raise ValueError("num_coeffs must be >= 1")
        self.num_coeffs = num_coeffs
        self.lifter_coeff = lifter_coeff
        self.mode = mode
        self.weights = lifter_weights(num_coeffs, lifter_coeff, mode)
        self.weights.setflags(write=False)

    def apply(self, feat: np.ndarray) -> np.ndarray:
        feat = np.asarray(feat, dtype=np.float64)
        if feat.shape != self.weights.shape:
            raise DimensionMismatch(
                f"lifter built for {self.num_coeffs} coefficients, got shape {feat.shape}"
            )
        return feat * self.weights
