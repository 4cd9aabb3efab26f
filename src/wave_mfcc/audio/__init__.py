"""WAVE container codec, signal sources and framing."""

from wave_mfcc.audio.config import MfccConfig
from wave_mfcc.audio.codec import WaveFileHandler
from wave_mfcc.audio.frames import FrameBuffer, iter_frames
from wave_mfcc.audio.header import StereoChannel, WaveHeader
from wave_mfcc.audio.source import ArraySource, SignalSource, WaveFile

__all__ = [
    "MfccConfig",
    "WaveFileHandler",
    "FrameBuffer",
    "iter_frames",
    "StereoChannel",
    "WaveHeader",
    "ArraySource",
    "SignalSource",
    "WaveFile",
]
