"""Discrete cosine transform used to decorrelate log filter bank energies."""

import numpy as np
from scipy.fft import dct as _scipy_dct

from wave_mfcc.errors import DimensionMismatch


def dct(data: np.ndarray, num_features: int) -> np.ndarray:
    """Orthonormal type-II DCT, truncated to the first ``num_features`` terms.

    c[k] = s[k] * sum_i x[i] * cos(pi * k * (2i + 1) / (2N)),
    s[0] = sqrt(1/N), s[k>0] = sqrt(2/N).

    Args:
        data: Input vector of length N.
        num_features: Number of coefficients to keep, 1 <= num_features <= N.

    Returns:
        Array of shape (num_features,).
    """
    data = np.asarray(data, dtype=np.float64)
    if data.ndim != 1:
        raise DimensionMismatch(f"DCT input must be 1-D, got shape {data.shape}")
    if not 1 <= num_features <= len(data):
        raise DimensionMismatch(
            f"cannot take {num_features} DCT coefficients from {len(data)} inputs"
        )
    return _scipy_dct(data, type=2, norm="ortho")[:num_features]
