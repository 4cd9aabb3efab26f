"""WAVE codec and MFCC feature extraction - audio, features, pipeline."""

from wave_mfcc.errors import DimensionMismatch, FormatError

__all__ = ["DimensionMismatch", "FormatError"]
