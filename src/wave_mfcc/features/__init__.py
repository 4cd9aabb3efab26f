"""MFCC feature stages: mel filter bank, DCT, lifter, spectrum kernel."""

from wave_mfcc.features.dct import dct
from wave_mfcc.features.lifter import Lifter
from wave_mfcc.features.mel import MelFilterBank, MelScale, linear_to_mel, mel_to_linear
from wave_mfcc.features.mfcc import Mfcc, periodogram
from wave_mfcc.features.spectrum import ScipyFft, SpectrumKernel

__all__ = [
    "dct",
    "Lifter",
    "MelFilterBank",
    "MelScale",
    "linear_to_mel",
    "mel_to_linear",
    "Mfcc",
    "periodogram",
    "ScipyFft",
    "SpectrumKernel",
]
