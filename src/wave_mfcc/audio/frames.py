"""Framing: fixed-length, possibly overlapping windows over a signal."""

from typing import Iterator, List

import numpy as np

from wave_mfcc.audio.source import ArraySource, SignalSource


def iter_frames(
    source: SignalSource,
    frame_length: int,
    hop_length: int,
    pad_last: bool = False,
) -> Iterator[ArraySource]:
    """Split a source into frames of ``frame_length`` samples.

    Frames start every ``hop_length`` samples. A trailing partial frame is
    dropped unless ``pad_last`` is set, in which case it is zero-padded.
    """
    if frame_length <= 0 or hop_length <= 0:
        raise ValueError("frame_length and hop_length must be > 0")
    data = source.to_array()
    n = len(data)
    start = 0
    while start + frame_length <= n:
        yield ArraySource(data[start : start + frame_length], source.sample_rate, source.bits_per_sample)
        start += hop_length
    if pad_last and start < n:
        tail = np.zeros(frame_length, dtype=np.float64)
        tail[: n - start] = data[start:]
        yield ArraySource(tail, source.sample_rate, source.bits_per_sample)


class FrameBuffer:
    """Accumulates streamed chunks and hands out complete frames.

    Consecutive frames overlap by ``frame_length - hop_length`` samples;
    samples before the next frame start are discarded once handed out.
    """

    def __init__(self, frame_length: int, hop_length: int):
        if frame_length <= 0 or hop_length <= 0:
            raise ValueError("frame_length and hop_length must be > 0")
        self.frame_length = frame_length
        self.hop_length = hop_length
        self._data = np.zeros(0, dtype=np.float64)
        # samples still to drop when hop_length > frame_length
        self._skip = 0

    def __len__(self) -> int:
        return len(self._data)

    def push(self, chunk: np.ndarray) -> None:
        """Append a chunk of samples."""
        chunk = np.asarray(chunk, dtype=np.float64).ravel()
        if self._skip:
            dropped = min(self._skip, len(chunk))
            chunk = chunk[dropped:]
            self._skip -= dropped
        self._data = np.concatenate([self._data, chunk])

    def pop_frames(self) -> List[np.ndarray]:
        """Return every complete frame currently buffered."""
        frames: List[np.ndarray] = []
        while len(self._data) >= self.frame_length:
            frames.append(self._data[: self.frame_length].copy())
            if self.hop_length <= len(self._data):
                self._data = self._data[self.hop_length :]
            else:
                self._skip = self.hop_length - len(self._data)
                self._data = self._data[:0]
        return frames

    def flush(self) -> List[np.ndarray]:
        """Return remaining complete frames plus a zero-padded tail, then reset."""
        frames = self.pop_frames()
        if len(self._data) > 0:
            tail = np.zeros(self.frame_length, dtype=np.float64)
            tail[: len(self._data)] = self._data
            frames.append(tail)
        self.clear()
        return frames

    def clear(self) -> None:
        """Reset buffer."""
        self._data = np.zeros(0, dtype=np.float64)
        self._skip = 0
