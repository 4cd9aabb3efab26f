"""End-to-end extraction: WAVE file / source / chunk stream -> frames -> MFCC.

Glue that wires the codec, framing and Mfcc components. The spectrum
kernel and the Mfcc instance are injectable so tests can run the whole
chain with deterministic fakes.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

import numpy as np

from wave_mfcc.audio.config import MfccConfig
from wave_mfcc.audio.frames import FrameBuffer, iter_frames
from wave_mfcc.audio.header import StereoChannel
from wave_mfcc.audio.source import ArraySource, SignalSource, WaveFile
from wave_mfcc.features.mfcc import Mfcc
from wave_mfcc.features.spectrum import SpectrumKernel

logger = logging.getLogger(__name__)

FeatureCallback = Callable[[np.ndarray], None]


class MfccPipeline:
    """Runs MFCC extraction frame by frame.

    Interface:
      pipeline = MfccPipeline(MfccConfig(sample_rate=16_000))
      features = pipeline.process_file("speech.wav")            # (n_frames, 12)
      features = pipeline.process_file("long.wav", part_size=32000)  # streamed
      pipeline.run(chunks, sample_rate=16_000)                   # push-style, on_features per frame

    The pipeline keeps one Mfcc instance, so every input must share the
    configured sample rate.
    """

    def __init__(
        self,
        config: Optional[MfccConfig] = None,
        mfcc: Optional[Mfcc] = None,
        kernel: Optional[SpectrumKernel] = None,
        on_features: Optional[FeatureCallback] = None,
    ):
        self.config = config or MfccConfig()
        self.mfcc = mfcc or Mfcc.from_config(self.config, kernel=kernel)
        self.on_features = on_features or (lambda f: None)
        self._stopped = False

    def stop(self) -> None:
        """Signal the run loop to exit (checked each chunk)."""
        self._stopped = True

    def _empty(self) -> np.ndarray:
        return np.zeros((0, self.config.num_features), dtype=np.float64)

    def _stack(self, rows: List[np.ndarray]) -> np.ndarray:
        return np.vstack(rows) if rows else self._empty()

    def _calculate(self, frame: SignalSource) -> np.ndarray:
        features = self.mfcc.calculate(frame, self.config.num_features)
        self.on_features(features)
        return features

    def process_source(self, source: SignalSource) -> np.ndarray:
        """Extract features of every frame of an in-memory source.

        Returns:
            Array of shape (n_frames, num_features).
        """
        rows = [
            self._calculate(frame)
            for frame in iter_frames(
                source,
                self.config.frame_length,
                self.config.hop_length,
                pad_last=self.config.pad_last,
            )
        ]
        logger.debug("extracted %d frames from %r", len(rows), source)
        return self._stack(rows)

    def process_file(
        self,
        path: Union[str, Path],
        channel: StereoChannel = StereoChannel.LEFT,
        part_size: Optional[int] = None,
    ) -> np.ndarray:
        """Extract features from a WAVE file.

        Args:
            path: PCM .wav file.
            channel: Channel to analyse in stereo files.
            part_size: If given, decode the payload this many bytes at a time
                instead of loading it whole.

        Returns:
            Array of shape (n_frames, num_features).
        """
        if part_size is None:
            wav = WaveFile(path, channel=channel, pcm8_layout=self.config.pcm8_layout)
            return self.process_source(wav)

        self._stopped = False
        with WaveFile(
            path,
            channel=channel,
            part_size=part_size,
            pcm8_layout=self.config.pcm8_layout,
        ) as wav:
            sample_rate = wav.sample_rate
            bits = wav.bits_per_sample
            chunks = (wav.to_array() for _ in wav.iter_parts())
            return self._stack(self._stream(chunks, sample_rate, bits))

    def _stream(
        self,
        chunks: Iterable[np.ndarray],
        sample_rate: float,
        bits_per_sample: int = 16,
    ) -> List[np.ndarray]:
        buffer = FrameBuffer(self.config.frame_length, self.config.hop_length)
        rows: List[np.ndarray] = []
        for chunk in chunks:
            if self._stopped:
                break
            chunk = np.asarray(chunk, dtype=np.float64)
            if chunk.size == 0:
                continue
            buffer.push(chunk)
            for frame in buffer.pop_frames():
                rows.append(self._calculate(ArraySource(frame, sample_rate, bits_per_sample)))
        if self.config.pad_last and not self._stopped:
            for frame in buffer.flush():
                rows.append(self._calculate(ArraySource(frame, sample_rate, bits_per_sample)))
        return rows

    def run(
        self,
        chunk_iterator: Iterable[np.ndarray],
        sample_rate: Optional[float] = None,
        bits_per_sample: int = 16,
    ) -> np.ndarray:
        """Run the streaming loop until stopped or the iterator is exhausted.

        Each complete frame is passed to ``on_features`` as soon as enough
        samples have arrived.

        Returns:
            Array of shape (n_frames, num_features) with every frame produced.
        """
        self._stopped = False
        rate = sample_rate if sample_rate is not None else self.config.sample_rate
        return self._stack(self._stream(chunk_iterator, rate, bits_per_sample))
