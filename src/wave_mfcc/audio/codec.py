"""PCM WAVE codec: header parsing, payload decode/encode, part-wise reads.

Decoded channels are float64 arrays of centered integer amplitudes
(16-bit: -32768..32767, 8-bit: -128..127); they are not rescaled.

8-bit payloads are handled as a sequence of little-endian 16-bit words.
Two layouts are supported for reading:

- ``paired``: sample 2j is the high byte of word j, sample 2j+1 its low
  byte. This is the exact inverse of ``encode_pcm`` for 8-bit data.
- ``legacy``: every sample i is the low byte of word i // 2, which
  reproduces files decoded by older readers bit-for-bit.

``paired`` is the default because it is the only layout under which 8-bit
files written by ``encode_pcm`` decode back to the samples that were saved;
pass ``legacy`` to get the historical output.

No format checking beyond the RIFF magic is performed.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, List, Optional, Union

import numpy as np

from wave_mfcc.audio.header import HEADER_SIZE, RIFF_MAGIC, WaveHeader
from wave_mfcc.errors import FormatError

logger = logging.getLogger(__name__)

PCM8_LAYOUTS = ("paired", "legacy")
PCM8_OFFSET = 128


def _swap_byte_pairs(u8: np.ndarray) -> np.ndarray:
    """Swap bytes inside each 16-bit word; a trailing odd byte stays put."""
    out = u8.copy()
    even = len(u8) - len(u8) % 2
    out[:even] = u8[:even].reshape(-1, 2)[:, ::-1].ravel()
    return out


def _frozen(channel: np.ndarray) -> np.ndarray:
    channel = np.ascontiguousarray(channel, dtype=np.float64)
    channel.setflags(write=False)
    return channel


def decode_pcm(
    header: WaveHeader,
    raw: bytes,
    pcm8_layout: str = "paired",
) -> List[np.ndarray]:
    """Decode a raw PCM payload into channel buffers.

    Args:
        header: Header describing the payload (channels, bit depth, alignment).
        raw: Payload bytes (whole file or one part).
        pcm8_layout: "paired" or "legacy", see module docstring.

    Returns:
        [left] for mono, [left, right] for stereo.
    """
    if pcm8_layout not in PCM8_LAYOUTS:
        raise ValueError(f"pcm8_layout must be one of {PCM8_LAYOUTS}, got {pcm8_layout!r}")
    if header.bytes_per_sample == 0:
        raise FormatError("invalid block alignment: 0")

    stereo = header.is_stereo
    channel_size = len(raw) // header.bytes_per_sample

    if header.bits_per_sample == 16:
        n_words = len(raw) // 2
        words = np.frombuffer(raw, dtype="<i2", count=n_words).astype(np.float64)
        if stereo:
            left = words[0 : 2 * channel_size : 2]
            right = words[1 : 2 * channel_size : 2]
            return [_frozen(left), _frozen(right)]
        return [_frozen(words[:channel_size])]

    if header.bits_per_sample == 8:
        u8 = np.frombuffer(raw, dtype=np.uint8).astype(np.float64)
        if stereo:
            if pcm8_layout == "legacy":
                base = 2 * (np.arange(channel_size) // 2)
            else:
                base = 2 * np.arange(channel_size)
            # low byte is left, high byte is right
            left = u8[base] - PCM8_OFFSET
            right = u8[base + 1] - PCM8_OFFSET
            return [_frozen(left), _frozen(right)]
        if pcm8_layout == "legacy":
            mono = u8[2 * (np.arange(channel_size) // 2)]
        else:
            mono = _swap_byte_pairs(u8[:channel_size])
        return [_frozen(mono - PCM8_OFFSET)]

    raise FormatError(f"unsupported bits per sample: {header.bits_per_sample}")


def part_alignment(header: WaveHeader, pcm8_layout: str = "paired") -> int:
    """Smallest part size, in bytes, that keeps part-wise decoding aligned.

    Parts must cover whole sample frames, and 8-bit mono data is paired
    into 16-bit words, so it needs two bytes.

    Raises:
        ValueError: legacy 8-bit stereo, whose sample i reads word i // 2 of
            the whole payload and so cannot be decoded part by part.
    """
    if header.bits_per_sample == 8 and header.is_stereo and pcm8_layout == "legacy":
        raise ValueError("legacy 8-bit stereo data can only be read whole")
    align = header.bytes_per_sample
    if header.bits_per_sample == 8 and not header.is_stereo:
        align *= 2
    return max(align, 1)


def encode_pcm(samples: np.ndarray, bits_per_sample: int) -> bytes:
    """Encode mono samples as a PCM payload.

    16-bit samples are clipped to the int16 range and truncated toward zero.
    8-bit samples are offset by +128; sample 2j goes in the high byte and
    sample 2j+1 in the low byte of 16-bit word j.
    """
    samples = np.asarray(samples, dtype=np.float64)
    if bits_per_sample == 16:
        return np.trunc(np.clip(samples, -32768, 32767)).astype("<i2").tobytes()
    if bits_per_sample == 8:
        u8 = np.trunc(np.clip(samples + PCM8_OFFSET, 0, 255)).astype(np.uint8)
        return _swap_byte_pairs(u8).tobytes()
    raise FormatError(f"cannot write {bits_per_sample}-bit PCM")


class WaveFileHandler:
    """Loads and saves PCM WAVE files.

    A handler owns one open file and a byte cursor into its payload, so it
    must be driven by a single reader.

    Interface:
      handler = WaveFileHandler("speech.wav")
      header = handler.read_header()
      channels = handler.read_all_channels()      # whole payload
      # or, part by part:
      part = handler.read_part(4096)

      WaveFileHandler("out.wav").save(source)
    """

    def __init__(self, filename: Union[str, Path], pcm8_layout: str = "paired"):
        if pcm8_layout not in PCM8_LAYOUTS:
            raise ValueError(f"pcm8_layout must be one of {PCM8_LAYOUTS}, got {pcm8_layout!r}")
        self.filename = Path(filename)
        self.pcm8_layout = pcm8_layout
        self.header: Optional[WaveHeader] = None
        self._fh: Optional[BinaryIO] = None
        self._bytes_read = 0

    @property
    def is_open(self) -> bool:
        return self._fh is not None

    @property
    def bytes_read(self) -> int:
        """Payload bytes consumed by read_part since the header was read."""
        return self._bytes_read

    @property
    def remaining(self) -> int:
        """Payload bytes not yet consumed by read_part."""
        if self.header is None:
            return 0
        return max(self.header.wave_size - self._bytes_read, 0)

    def read_header(self) -> WaveHeader:
        """Open the file and parse its header.

        Calling again while the file is open returns the cached header.

        Raises:
            FormatError: file cannot be opened, is not RIFF, or is shorter
                than a header.
        """
        if self._fh is not None and self.header is not None:
            return self.header

        try:
            fh = open(self.filename, "rb")
        except OSError as e:
            raise FormatError(f"cannot open {self.filename}: {e}") from e

        raw = fh.read(HEADER_SIZE)
        if raw[:4] != RIFF_MAGIC:
            fh.close()
            raise FormatError(f"{self.filename} is not a RIFF container")
        if len(raw) < HEADER_SIZE:
            fh.close()
            raise FormatError(f"{self.filename}: truncated header ({len(raw)} bytes)")

        self._fh = fh
        self.header = WaveHeader.unpack(raw)
        self._bytes_read = 0
        logger.debug(
            "opened %s: %d ch, %d Hz, %d bit, %d payload bytes",
            self.filename,
            self.header.channels,
            self.header.sample_rate,
            self.header.bits_per_sample,
            self.header.wave_size,
        )
        return self.header

    def read_all_channels(self) -> List[np.ndarray]:
        """Read and decode the whole payload, then close the file.

        Returns:
            [left] for mono, [left, right] for stereo.
        """
        header = self.read_header()
        if self._fh is None:
            raise RuntimeError(f"{self.filename} is not open")
        raw = self._fh.read(header.wave_size)
        self.close()
        logger.debug("read %d payload bytes from %s", len(raw), self.filename)
        return decode_pcm(header, raw, self.pcm8_layout)

    def read_part(self, part_size: int) -> List[np.ndarray]:
        """Decode the next ``part_size`` payload bytes and advance the cursor.

        The size is clamped to what is left of the payload; once the payload
        is exhausted, empty channels are returned.
        """
        if self._fh is None or self.header is None:
            raise RuntimeError("read_header() must be called before read_part()")
        if part_size < 0:
            raise ValueError("part_size must be >= 0")

        to_read = min(part_size, self.remaining)
        raw = self._fh.read(to_read)
        self._bytes_read += len(raw)
        return decode_pcm(self.header, raw, self.pcm8_layout)

    def save(self, source) -> WaveHeader:
        """Save a signal source as a mono PCM WAVE file.

        Sources deeper than 16 bits are written at 16 bits.
        """
        header = WaveHeader.for_source(
            source.sample_rate,
            source.sample_count,
            source.bits_per_sample,
        )
        samples = np.asarray(source.to_array(), dtype=np.float64)[: source.sample_count]
        payload = encode_pcm(samples, header.bits_per_sample)
        with open(self.filename, "wb") as fh:
            fh.write(header.pack())
            fh.write(payload)
        logger.debug(
            "saved %d samples (%d bit) to %s",
            len(samples),
            header.bits_per_sample,
            self.filename,
        )
        return header

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None

    def __enter__(self) -> "WaveFileHandler":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
