"""RIFF/WAVE header: the fixed 44-byte PCM layout, little-endian."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass

HEADER_FORMAT = "<4sI4s4sIHHIIHH4sI"
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)  # 44

RIFF_MAGIC = b"RIFF"
WAVE_MAGIC = b"WAVE"
FMT_MAGIC = b"fmt "
DATA_MAGIC = b"data"

PCM_FORMAT_TAG = 1
PCM_SUB_BLOCK_LENGTH = 16
MAX_WRITE_BITS = 16


class StereoChannel(enum.Enum):
    """Which channel to use when reading stereo recordings."""

    LEFT = 0
    RIGHT = 1


@dataclass(frozen=True)
class WaveHeader:
    """Fields of the canonical PCM WAVE header, in on-disk order.

    Invariants (for headers produced by ``for_source``):
        bytes_per_sec == sample_rate * channels * bits_per_sample / 8
        bytes_per_sample == channels * bits_per_sample / 8
        wave_size % bytes_per_sample == 0

    Headers read from disk are taken as-is; only the RIFF magic is checked
    by the codec.
    """

    riff: bytes
    data_length: int
    """File size minus the 8 bytes of ``riff`` and ``data_length``."""
    wave: bytes
    fmt: bytes
    sub_block_length: int
    format_tag: int
    channels: int
    sample_rate: int
    bytes_per_sec: int
    bytes_per_sample: int
    """Block alignment: bytes per multi-channel sample."""
    bits_per_sample: int
    data: bytes
    wave_size: int
    """Payload length in bytes."""

    @classmethod
    def unpack(cls, raw: bytes) -> "WaveHeader":
        return cls(*struct.unpack(HEADER_FORMAT, raw[:HEADER_SIZE]))

    def pack(self) -> bytes:
        return struct.pack(
            HEADER_FORMAT,
            self.riff,
            self.data_length,
            self.wave,
            self.fmt,
            self.sub_block_length,
            self.format_tag,
            self.channels,
            self.sample_rate,
            self.bytes_per_sec,
            self.bytes_per_sample,
            self.bits_per_sample,
            self.data,
            self.wave_size,
        )

    @classmethod
    def for_source(
        cls,
        sample_rate: float,
        sample_count: int,
        bits_per_sample: int,
    ) -> "WaveHeader":
        """Build the header used when saving a source.

        Output is always mono; deeper sources are written at 16 bits.
        """
        frequency = int(sample_rate)
        channels = 1
        bits = min(int(bits_per_sample), MAX_WRITE_BITS)
        bytes_per_sec = frequency * channels * bits // 8
        wave_size = sample_count * channels * bits // 8
        return cls(
            riff=RIFF_MAGIC,
            data_length=wave_size + HEADER_SIZE - 8,
            wave=WAVE_MAGIC,
            fmt=FMT_MAGIC,
            sub_block_length=PCM_SUB_BLOCK_LENGTH,
            format_tag=PCM_FORMAT_TAG,
            channels=channels,
            sample_rate=frequency,
            bytes_per_sec=bytes_per_sec,
            bytes_per_sample=channels * bits // 8,
            bits_per_sample=bits,
            data=DATA_MAGIC,
            wave_size=wave_size,
        )

    @property
    def is_stereo(self) -> bool:
        return self.channels == 2

    @property
    def duration_ms(self) -> int:
        """Recording length in milliseconds."""
        if self.bytes_per_sec == 0:
            return 0
        return int(self.wave_size / float(self.bytes_per_sec) * 1000)
