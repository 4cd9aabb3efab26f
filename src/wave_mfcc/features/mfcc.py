"""MFCC calculation for one frame at a time.

spectrum -> periodogram -> mel filter bank -> log -> DCT-II -> lifter,
then coefficient 0 is replaced by the log of the frame energy.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Dict, Optional

import numpy as np

from wave_mfcc.errors import DimensionMismatch
from wave_mfcc.features.dct import dct
from wave_mfcc.features.lifter import Lifter
from wave_mfcc.features.mel import DEFAULT_SCALE, MelFilterBank, MelScale, filter_width_for
from wave_mfcc.features.spectrum import ScipyFft, SpectrumKernel

if TYPE_CHECKING:
    from wave_mfcc.audio.config import MfccConfig
    from wave_mfcc.audio.source import SignalSource

logger = logging.getLogger(__name__)

MACHINE_EPS = float(np.finfo(np.float64).eps)


def periodogram(spectrum: np.ndarray, input_size: int) -> np.ndarray:
    """Power spectrum |X[k]|^2 / input_size over the first ceil(N/2) bins."""
    spectrum = np.asarray(spectrum)
    num_coeffs = int(math.ceil(len(spectrum) / 2))
    return np.abs(spectrum[:num_coeffs]) ** 2 / float(input_size)


class Mfcc:
    """Calculates MFCC features of equally long frames.

    One instance serves frames of a single length and sample rate: the mel
    filter bank is built on the first frame (or from ``sample_rate``) and
    reused afterwards. Create a new instance for a different frame size or
    sample rate.

    Interface:
      mfcc = Mfcc(400)
      for frame in iter_frames(source, 400, 160):
          features = mfcc.calculate(frame)   # shape (12,)
    """

    def __init__(
        self,
        input_size: int,
        num_filters: int = 26,
        lifter_coeff: float = 22,
        lifter_mode: str = "sinusoidal",
        kernel: Optional[SpectrumKernel] = None,
        eps: float = MACHINE_EPS,
        scale: MelScale = DEFAULT_SCALE,
        sample_rate: Optional[float] = None,
    ):
        """
        Args:
            input_size: Samples per frame; shorter frames are zero-padded,
                longer ones truncated.
            num_filters: Number of mel filters.
            lifter_coeff: Lifter parameter L.
            lifter_mode: "sinusoidal" (1 + L/2 sin(pi c / L)) or "sine_window".
            kernel: Spectrum kernel; defaults to scipy.fft.
            eps: Floor substituted for non-positive energies before the log.
            scale: Mel scale constants.
            sample_rate: Build the filter bank up front for this rate.
        """
        if input_size < 1:
            raise ValueError("input_size must be >= 1")
        if eps <= 0:
            raise ValueError("eps must be > 0")
        self.input_size = input_size
        self.num_filters = num_filters
        self.lifter_coeff = lifter_coeff
        self.lifter_mode = lifter_mode
        self.kernel = kernel or ScipyFft()
        self.eps = eps
        self.scale = scale
        self._log_eps = math.log(eps)
        self._bank: Optional[MelFilterBank] = None
        self._lifters: Dict[int, Lifter] = {}
        if sample_rate is not None:
            self._filter_bank(sample_rate)

    @classmethod
    def from_config(cls, config: "MfccConfig", kernel: Optional[SpectrumKernel] = None) -> "Mfcc":
        return cls(
            config.frame_length,
            num_filters=config.num_filters,
            lifter_coeff=config.lifter_coeff,
            lifter_mode=config.lifter_mode,
            kernel=kernel,
            eps=config.eps,
            scale=config.mel_scale,
            sample_rate=config.sample_rate,
        )

    @property
    def filter_bank(self) -> Optional[MelFilterBank]:
        return self._bank

    def _filter_bank(self, sample_rate: float) -> MelFilterBank:
        if self._bank is None:
            width = filter_width_for(sample_rate, self.num_filters, self.scale)
            self._bank = MelFilterBank(sample_rate, self.input_size, width, self.num_filters, self.scale)
            logger.debug(
                "built %d-filter mel bank for %g Hz, frame size %d",
                self.num_filters,
                sample_rate,
                self.input_size,
            )
        elif self._bank.sample_rate != float(sample_rate):
            raise DimensionMismatch(
                f"filter bank was built for {self._bank.sample_rate:g} Hz, "
                f"source is {float(sample_rate):g} Hz"
            )
        return self._bank

    def _lifter(self, num_features: int) -> Lifter:
        lifter = self._lifters.get(num_features)
        if lifter is None:
            lifter = Lifter(num_features, self.lifter_coeff, self.lifter_mode)
            self._lifters[num_features] = lifter
        return lifter

    def _frame(self, source: "SignalSource") -> np.ndarray:
        data = np.asarray(source.to_array(), dtype=np.float64)
        frame = np.zeros(self.input_size, dtype=np.float64)
        n = min(len(data), self.input_size)
        frame[:n] = data[:n]
        return frame

    def _safe_log(self, x: np.ndarray) -> np.ndarray:
        out = np.full(x.shape, self._log_eps)
        positive = x > 0
        out[positive] = np.log(x[positive])
        return out

    def calculate(self, source: "SignalSource", num_features: int = 12) -> np.ndarray:
        """Calculates MFCC features of one frame.

        Args:
            source: Frame to process.
            num_features: Number of coefficients, at most num_filters.

        Returns:
            Array of shape (num_features,); element 0 is the log energy.
        """
        if not 1 <= num_features <= self.num_filters:
            raise DimensionMismatch(
                f"num_features must be in [1, {self.num_filters}], got {num_features}"
            )
        bank = self._filter_bank(source.sample_rate)

        spectrum = np.asarray(self.kernel.transform(self._frame(source)))
        if spectrum.shape != (self.input_size,):
            raise DimensionMismatch(
                f"spectrum kernel returned shape {spectrum.shape}, expected ({self.input_size},)"
            )
        pspec = periodogram(spectrum, self.input_size)
        energy = float(np.sum(pspec))

        filtered = self._safe_log(bank.apply_all(pspec))
        cepstrum = dct(filtered, num_features)
        lifted = self._lifter(num_features).apply(cepstrum)
        lifted[0] = math.log(energy) if energy > 0 else self._log_eps
        return lifted
