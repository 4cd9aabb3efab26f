"""Signal sources: in-memory buffers and WAVE files behind one interface."""

from __future__ import annotations

import abc
from pathlib import Path
from typing import Iterator, List, Optional, Union

import numpy as np

from wave_mfcc.audio.codec import WaveFileHandler, part_alignment
from wave_mfcc.audio.header import StereoChannel, WaveHeader


class SignalSource(abc.ABC):
    """Anything that exposes a sampled signal.

    Subclasses provide ``to_array()``, ``sample_rate`` and
    ``bits_per_sample``; length and per-index access derive from the array.
    """

    @abc.abstractmethod
    def to_array(self) -> np.ndarray:
        """Samples as a 1-D float64 array."""

    @property
    @abc.abstractmethod
    def sample_rate(self) -> float:
        """Sample frequency in Hz."""

    @property
    @abc.abstractmethod
    def bits_per_sample(self) -> int:
        """Bit depth the samples were (or will be) quantized at."""

    def __len__(self) -> int:
        return len(self.to_array())

    def sample(self, index: int) -> float:
        return float(self.to_array()[index])

    @property
    def sample_count(self) -> int:
        return len(self)


class ArraySource(SignalSource):
    """In-memory signal source."""

    def __init__(
        self,
        samples: np.ndarray,
        sample_rate: float,
        bits_per_sample: int = 16,
    ):
        data = np.array(samples, dtype=np.float64).ravel()
        data.setflags(write=False)
        self._data = data
        self._sample_rate = sample_rate
        self._bits_per_sample = bits_per_sample

    def to_array(self) -> np.ndarray:
        return self._data

    @property
    def sample_rate(self) -> float:
        return self._sample_rate

    @property
    def bits_per_sample(self) -> int:
        return self._bits_per_sample

    def __repr__(self) -> str:
        return (
            f"ArraySource(n={len(self._data)}, sample_rate={self._sample_rate}, "
            f"bits_per_sample={self._bits_per_sample})"
        )


class WaveFile(SignalSource):
    """WAVE file as a signal source.

    Without ``part_size`` the whole file is decoded on construction and the
    selected channel is kept (mono recordings always expose their only
    channel). With ``part_size`` only the header is read; ``load_next()``
    then decodes ``part_size`` payload bytes at a time and exposes the
    selected channel of the latest part as the source's data.

    Interface:
      wav = WaveFile("speech.wav")
      samples = wav.to_array()

      with WaveFile("long.wav", part_size=32000) as wav:
          for channels in wav.iter_parts():
              ...

      WaveFile.save(source, "copy.wav")
    """

    def __init__(
        self,
        filename: Union[str, Path],
        channel: StereoChannel = StereoChannel.LEFT,
        part_size: Optional[int] = None,
        pcm8_layout: str = "paired",
    ):
        """
        Args:
            filename: Path to a PCM .wav file.
            channel: LEFT or RIGHT, used for stereo recordings.
            part_size: Bytes per streamed part; None loads the whole file.
                Must be a multiple of part_alignment(header, pcm8_layout).
            pcm8_layout: How 8-bit payloads are unpacked ("paired" or "legacy").
        """
        if part_size is not None and part_size <= 0:
            raise ValueError("part_size must be > 0")
        self.filename = Path(filename)
        self.channel = channel
        self.part_size = part_size
        self._handler = WaveFileHandler(self.filename, pcm8_layout=pcm8_layout)
        self._data = np.zeros(0, dtype=np.float64)

        if part_size is None:
            self._load()
        else:
            self.header = self._handler.read_header()
            try:
                align = part_alignment(self.header, pcm8_layout)
                if part_size % align:
                    raise ValueError(
                        f"part_size must be a multiple of {align} bytes for "
                        f"{self.header.channels}-channel {self.header.bits_per_sample}-bit data, got {part_size}"
                    )
            except ValueError:
                self._handler.close()
                raise

    def _load(self) -> None:
        channels = self._handler.read_all_channels()
        self.header = self._handler.header
        self._data = self._select(channels)

    def _select(self, channels: List[np.ndarray]) -> np.ndarray:
        if self.channel == StereoChannel.RIGHT:
            if len(channels) < 2:
                raise ValueError(f"{self.filename} is mono; no right channel to read")
            return channels[1]
        return channels[0]

    def load_next(self) -> List[np.ndarray]:
        """Decode the next part of the payload.

        Returns:
            Per-channel arrays of the part ([left] or [left, right]); empty
            arrays once the payload is exhausted.
        """
        if self.part_size is None:
            raise RuntimeError("load_next() requires a WaveFile opened with part_size")
        channels = self._handler.read_part(self.part_size)
        self._data = self._select(channels)
        return channels

    def iter_parts(self) -> Iterator[List[np.ndarray]]:
        """Yield decoded parts until the payload is exhausted."""
        while self._handler.remaining > 0:
            before = self._handler.bytes_read
            channels = self.load_next()
            if self._handler.bytes_read == before:
                # file shorter than its header claims
                break
            yield channels

    def to_array(self) -> np.ndarray:
        return self._data

    @property
    def sample_rate(self) -> float:
        return float(self.header.sample_rate)

    @property
    def bits_per_sample(self) -> int:
        return self.header.bits_per_sample

    @property
    def channels(self) -> int:
        return self.header.channels

    @property
    def audio_length_ms(self) -> int:
        """Recording length in milliseconds."""
        return self.header.duration_ms

    @property
    def num_parts(self) -> int:
        """Number of whole parts in the payload (streaming mode)."""
        if not self.part_size:
            return 1
        return self.header.wave_size // self.part_size

    @staticmethod
    def save(
        source: SignalSource,
        filename: Union[str, Path],
    ) -> WaveHeader:
        """Save the given signal source as a mono .wav file."""
        return WaveFileHandler(filename).save(source)

    def close(self) -> None:
        self._handler.close()

    def __enter__(self) -> "WaveFile":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"WaveFile({str(self.filename)!r}, channels={self.header.channels}, "
            f"sample_rate={self.header.sample_rate}, bits={self.header.bits_per_sample})"
        )
