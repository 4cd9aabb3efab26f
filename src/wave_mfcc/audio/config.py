"""Centralized audio and MFCC configuration.

Defaults:
- Audio: mono 16 kHz, 16-bit PCM WAVE
- Frames: 25 ms window / 10 ms hop
- Features: 26 mel filters, 12 coefficients, lifter L = 22
- Mel scale: 1127.01048 * ln(1 + f / 700)
"""

from dataclasses import dataclass

import numpy as np

from wave_mfcc.features.mel import MelScale


@dataclass(frozen=True)
class MfccConfig:
    """Framing and feature extraction configuration."""

    # Audio
    sample_rate: int = 16_000
    pcm8_layout: str = "paired"  # or "legacy"

    # Framing
    frame_ms: float = 25.0
    hop_ms: float = 10.0
    pad_last: bool = False

    # Mel filter bank
    num_filters: int = 26
    mel_factor: float = 1127.01048
    mel_corner_hz: float = 700.0

    # Cepstrum
    num_features: int = 12
    lifter_coeff: float = 22.0
    lifter_mode: str = "sinusoidal"  # or "sine_window"

    # Floor used instead of log(0)
    eps: float = float(np.finfo(np.float64).eps)

    @property
    def frame_length(self) -> int:
        """Frame length in samples."""
        return int(self.sample_rate * self.frame_ms / 1000)

    @property
    def hop_length(self) -> int:
        """Hop between frame starts in samples."""
        return int(self.sample_rate * self.hop_ms / 1000)

    @property
    def frames_per_second(self) -> float:
        """Number of feature frames per second."""
        return self.sample_rate / self.hop_length

    @property
    def mel_scale(self) -> MelScale:
        return MelScale(factor=self.mel_factor, corner_hz=self.mel_corner_hz)
