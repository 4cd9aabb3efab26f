"""Unit tests for the WAVE header, codec and file-backed signal source."""

from __future__ import annotations

import struct
import tempfile
import unittest
from pathlib import Path

import numpy as np

from wave_mfcc.audio import ArraySource, StereoChannel, WaveFile, WaveFileHandler, WaveHeader
from wave_mfcc.audio.codec import decode_pcm, encode_pcm, part_alignment
from wave_mfcc.audio.header import HEADER_SIZE
from wave_mfcc.errors import FormatError


def _header(channels: int, bits: int, wave_size: int, sample_rate: int = 8000) -> WaveHeader:
    block = channels * bits // 8
    return WaveHeader(
        riff=b"RIFF",
        data_length=wave_size + HEADER_SIZE - 8,
        wave=b"WAVE",
        fmt=b"fmt ",
        sub_block_length=16,
        format_tag=1,
        channels=channels,
        sample_rate=sample_rate,
        bytes_per_sec=sample_rate * block,
        bytes_per_sample=block,
        bits_per_sample=bits,
        data=b"data",
        wave_size=wave_size,
    )


class _TempDirTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def write_wav(self, name: str, channels: int, bits: int, payload: bytes) -> Path:
        path = self.tmp / name
        path.write_bytes(_header(channels, bits, len(payload)).pack() + payload)
        return path


class TestWaveHeader(unittest.TestCase):
    """Tests for the 44-byte header layout."""

    def test_size_is_44_bytes(self) -> None:
        self.assertEqual(HEADER_SIZE, 44)
        self.assertEqual(len(_header(1, 16, 100).pack()), 44)

    def test_unpack_inverts_pack(self) -> None:
        header = _header(2, 16, 4000, sample_rate=44100)
        self.assertEqual(WaveHeader.unpack(header.pack()), header)

    def test_field_offsets(self) -> None:
        raw = _header(2, 16, 4000, sample_rate=44100).pack()
        self.assertEqual(raw[0:4], b"RIFF")
        self.assertEqual(raw[8:12], b"WAVE")
        self.assertEqual(raw[12:16], b"fmt ")
        self.assertEqual(struct.unpack("<H", raw[22:24])[0], 2)
        self.assertEqual(struct.unpack("<I", raw[24:28])[0], 44100)
        self.assertEqual(raw[36:40], b"data")
        self.assertEqual(struct.unpack("<I", raw[40:44])[0], 4000)

    def test_for_source_invariants(self) -> None:
        header = WaveHeader.for_source(16000, 1000, 16)
        self.assertEqual(header.channels, 1)
        self.assertEqual(header.bytes_per_sec, 16000 * 2)
        self.assertEqual(header.bytes_per_sample, 2)
        self.assertEqual(header.wave_size, 2000)
        self.assertEqual(header.data_length, 2000 + 36)
        self.assertEqual(header.wave_size % header.bytes_per_sample, 0)

    def test_for_source_clamps_bit_depth(self) -> None:
        header = WaveHeader.for_source(48000, 10, 24)
        self.assertEqual(header.bits_per_sample, 16)
        self.assertEqual(header.wave_size, 20)

    def test_duration_ms(self) -> None:
        self.assertEqual(WaveHeader.for_source(16000, 8000, 16).duration_ms, 500)


class TestDecode(unittest.TestCase):
    """Tests for payload decoding across bit depths and channel layouts."""

    def test_16bit_mono(self) -> None:
        raw = np.array([0, 1, -1, 32767, -32768], dtype="<i2").tobytes()
        (mono,) = decode_pcm(_header(1, 16, len(raw)), raw)
        np.testing.assert_array_equal(mono, [0, 1, -1, 32767, -32768])

    def test_16bit_stereo_interleaved(self) -> None:
        raw = np.array([1, -1, 2, -2, 3, -3], dtype="<i2").tobytes()
        left, right = decode_pcm(_header(2, 16, len(raw)), raw)
        np.testing.assert_array_equal(left, [1, 2, 3])
        np.testing.assert_array_equal(right, [-1, -2, -3])

    def test_8bit_mono_paired(self) -> None:
        """Sample 2j is the high byte of word j, sample 2j+1 its low byte."""
        raw = bytes([10, 20, 30, 40])
        (mono,) = decode_pcm(_header(1, 8, 4), raw, "paired")
        np.testing.assert_array_equal(mono, [20 - 128, 10 - 128, 40 - 128, 30 - 128])

    def test_8bit_mono_paired_trailing_byte(self) -> None:
        (mono,) = decode_pcm(_header(1, 8, 3), bytes([10, 20, 30]), "paired")
        np.testing.assert_array_equal(mono, [-108, -118, -98])

    def test_8bit_mono_legacy(self) -> None:
        """Legacy reader takes the low byte of word i // 2 for every sample."""
        (mono,) = decode_pcm(_header(1, 8, 4), bytes([10, 20, 30, 40]), "legacy")
        np.testing.assert_array_equal(mono, [-118, -118, -98, -98])

    def test_8bit_stereo(self) -> None:
        """Low byte is left, high byte is right."""
        left, right = decode_pcm(_header(2, 8, 4), bytes([10, 20, 30, 40]))
        np.testing.assert_array_equal(left, [-118, -98])
        np.testing.assert_array_equal(right, [-108, -88])

    def test_8bit_stereo_legacy(self) -> None:
        left, right = decode_pcm(_header(2, 8, 4), bytes([10, 20, 30, 40]), "legacy")
        np.testing.assert_array_equal(left, [-118, -118])
        np.testing.assert_array_equal(right, [-108, -108])

    def test_unsupported_bit_depth(self) -> None:
        with self.assertRaises(FormatError):
            decode_pcm(_header(1, 24, 6), bytes(6))

    def test_unknown_layout(self) -> None:
        with self.assertRaises(ValueError):
            decode_pcm(_header(1, 8, 2), bytes(2), "nibbles")

    def test_decoded_channels_are_read_only(self) -> None:
        (mono,) = decode_pcm(_header(1, 16, 4), bytes(4))
        with self.assertRaises(ValueError):
            mono[0] = 1.0


class TestEncode(unittest.TestCase):
    """Tests for payload encoding."""

    def test_16bit_truncates_and_clips(self) -> None:
        raw = encode_pcm(np.array([1.9, -1.9, 40000.0, -40000.0]), 16)
        np.testing.assert_array_equal(np.frombuffer(raw, "<i2"), [1, -1, 32767, -32768])

    def test_8bit_first_sample_in_high_byte(self) -> None:
        raw = encode_pcm(np.array([-128.0, -2.0]), 8)
        word = struct.unpack("<H", raw)[0]
        self.assertEqual(word >> 8, 0)
        self.assertEqual(word & 0xFF, 126)

    def test_part_alignment(self) -> None:
        self.assertEqual(part_alignment(_header(1, 16, 0)), 2)
        self.assertEqual(part_alignment(_header(2, 16, 0)), 4)
        self.assertEqual(part_alignment(_header(1, 8, 0)), 2)
        self.assertEqual(part_alignment(_header(1, 8, 0), "legacy"), 2)
        self.assertEqual(part_alignment(_header(2, 8, 0)), 2)
        with self.assertRaises(ValueError):
            part_alignment(_header(2, 8, 0), "legacy")

    def test_cannot_write_12bit(self) -> None:
        with self.assertRaises(FormatError):
            encode_pcm(np.zeros(4), 12)


class TestWaveFileHandler(_TempDirTestCase):
    """Tests for header reads, whole-file and part-wise decoding, saving."""

    def test_missing_file(self) -> None:
        with self.assertRaises(FormatError) as ctx:
            WaveFileHandler(self.tmp / "missing.wav").read_header()
        self.assertIn("cannot open", str(ctx.exception))

    def test_bad_magic_fails_before_payload_read(self) -> None:
        path = self.tmp / "bad.wav"
        path.write_bytes(b"RIFX" + _header(1, 16, 4).pack()[4:] + bytes(4))
        handler = WaveFileHandler(path)
        with self.assertRaises(FormatError) as ctx:
            handler.read_all_channels()
        self.assertIn("not a RIFF container", str(ctx.exception))
        self.assertFalse(handler.is_open)
        self.assertIsNone(handler.header)

    def test_truncated_header(self) -> None:
        path = self.tmp / "short.wav"
        path.write_bytes(b"RIFF" + bytes(10))
        with self.assertRaises(FormatError):
            WaveFileHandler(path).read_header()

    def test_read_header_is_idempotent(self) -> None:
        path = self.write_wav("a.wav", 1, 16, bytes(8))
        with WaveFileHandler(path) as handler:
            first = handler.read_header()
            self.assertIs(handler.read_header(), first)
            self.assertEqual(first.wave_size, 8)

    def test_read_part_requires_header(self) -> None:
        path = self.write_wav("a.wav", 1, 16, bytes(8))
        with self.assertRaises(RuntimeError):
            WaveFileHandler(path).read_part(4)

    def test_read_part_advances_and_clamps(self) -> None:
        samples = np.arange(10, dtype="<i2")
        path = self.write_wav("parts.wav", 1, 16, samples.tobytes())
        with WaveFileHandler(path) as handler:
            handler.read_header()
            parts = [handler.read_part(6)[0] for _ in range(4)]
            self.assertEqual([len(p) for p in parts], [3, 3, 3, 1])
            self.assertEqual(handler.bytes_read, 20)
            self.assertEqual(handler.remaining, 0)
            self.assertEqual(len(handler.read_part(6)[0]), 0)
        np.testing.assert_array_equal(np.concatenate(parts), samples)

    def test_read_all_channels_closes_file(self) -> None:
        path = self.write_wav("a.wav", 2, 16, np.array([5, 6], dtype="<i2").tobytes())
        handler = WaveFileHandler(path)
        left, right = handler.read_all_channels()
        self.assertFalse(handler.is_open)
        self.assertEqual((left[0], right[0]), (5.0, 6.0))

    def test_read_all_channels_reopens_after_close(self) -> None:
        path = self.write_wav("a.wav", 1, 16, np.array([7, 8], dtype="<i2").tobytes())
        handler = WaveFileHandler(path)
        first = handler.read_all_channels()
        second = handler.read_all_channels()
        np.testing.assert_array_equal(first[0], second[0])
        self.assertFalse(handler.is_open)

    def test_16bit_round_trip_is_exact(self) -> None:
        rng = np.random.default_rng(0)
        samples = rng.integers(-32768, 32768, size=1000).astype(np.float64)
        path = self.tmp / "rt16.wav"
        WaveFileHandler(path).save(ArraySource(samples, 16000, 16))
        (decoded,) = WaveFileHandler(path).read_all_channels()
        np.testing.assert_array_equal(decoded, samples)

    def test_8bit_round_trip_is_bounded(self) -> None:
        samples = np.array([-128.0, -1.5, 0.0, 0.7, 127.0, 50.2, -60.0])
        path = self.tmp / "rt8.wav"
        header = WaveFileHandler(path).save(ArraySource(samples, 8000, 8))
        self.assertEqual(header.bits_per_sample, 8)
        self.assertEqual(header.wave_size, 7)
        (decoded,) = WaveFileHandler(path).read_all_channels()
        self.assertEqual(len(decoded), len(samples))
        self.assertTrue(np.all(np.abs(decoded - samples) <= 1.0))

    def test_save_writes_header_and_payload(self) -> None:
        path = self.tmp / "out.wav"
        WaveFileHandler(path).save(ArraySource(np.ones(5), 22050, 32))
        raw = path.read_bytes()
        self.assertEqual(len(raw), 44 + 10)
        header = WaveHeader.unpack(raw)
        self.assertEqual(header.bits_per_sample, 16)
        self.assertEqual(header.sample_rate, 22050)
        self.assertEqual(header.data_length, len(raw) - 8)


class TestWaveFile(_TempDirTestCase):
    """Tests for the file-backed signal source."""

    def test_whole_file_source(self) -> None:
        path = self.write_wav("mono.wav", 1, 16, np.array([3, -4, 5], dtype="<i2").tobytes())
        wav = WaveFile(path)
        self.assertEqual(len(wav), 3)
        self.assertEqual(wav.sample_count, 3)
        self.assertEqual(wav.sample(1), -4.0)
        self.assertEqual(wav.sample_rate, 8000.0)
        self.assertEqual(wav.bits_per_sample, 16)
        self.assertEqual(wav.channels, 1)

    def test_right_channel(self) -> None:
        path = self.write_wav("st.wav", 2, 16, np.array([1, -1, 2, -2], dtype="<i2").tobytes())
        np.testing.assert_array_equal(WaveFile(path, StereoChannel.RIGHT).to_array(), [-1, -2])
        np.testing.assert_array_equal(WaveFile(path, StereoChannel.LEFT).to_array(), [1, 2])

    def test_right_channel_of_mono_file(self) -> None:
        path = self.write_wav("mono.wav", 1, 16, bytes(4))
        with self.assertRaises(ValueError):
            WaveFile(path, StereoChannel.RIGHT)

    def test_streaming_parts_match_whole_file(self) -> None:
        samples = np.arange(-50, 51, dtype="<i2")
        path = self.write_wav("long.wav", 1, 16, samples.tobytes())
        with WaveFile(path, part_size=32) as wav:
            self.assertEqual(len(wav), 0)
            self.assertEqual(wav.num_parts, len(samples) * 2 // 32)
            parts = [channels[0] for channels in wav.iter_parts()]
            self.assertEqual(len(wav), len(parts[-1]))
        np.testing.assert_array_equal(np.concatenate(parts), WaveFile(path).to_array())

    def test_streaming_stops_on_short_file(self) -> None:
        path = self.tmp / "lying.wav"
        path.write_bytes(_header(1, 16, 1000).pack() + bytes(10))
        with WaveFile(path, part_size=4) as wav:
            parts = list(wav.iter_parts())
        self.assertEqual(sum(len(p[0]) for p in parts), 5)

    def test_misaligned_part_size_is_rejected(self) -> None:
        path16 = self.write_wav("mono16.wav", 1, 16, bytes(2000))
        with self.assertRaises(ValueError):
            WaveFile(path16, part_size=1001)
        path8 = self.write_wav("mono8.wav", 1, 8, bytes(200))
        for layout in ("paired", "legacy"):
            with self.assertRaises(ValueError):
                WaveFile(path8, part_size=3, pcm8_layout=layout)
        stereo8 = self.write_wav("st8.wav", 2, 8, bytes(200))
        WaveFile(stereo8, part_size=2).close()
        with self.assertRaises(ValueError):
            WaveFile(stereo8, part_size=4, pcm8_layout="legacy")

    def test_8bit_streaming_matches_whole_file(self) -> None:
        ramp = np.arange(-100, 100, dtype=np.float64)
        cases = (
            ("mono8.wav", 1, encode_pcm(ramp, 8), 4),
            ("st8.wav", 2, bytes(np.arange(200, dtype=np.uint8)), 8),
        )
        for name, channels, payload, part_size in cases:
            path = self.write_wav(name, channels, 8, payload)
            layouts = ("paired", "legacy") if channels == 1 else ("paired",)
            for layout in layouts:
                whole = WaveFile(path, pcm8_layout=layout).to_array()
                with WaveFile(path, part_size=part_size, pcm8_layout=layout) as wav:
                    parts = [c[0] for c in wav.iter_parts()]
                np.testing.assert_array_equal(np.concatenate(parts), whole)
        np.testing.assert_array_equal(WaveFile(self.tmp / "mono8.wav").to_array(), ramp)

    def test_load_next_requires_part_size(self) -> None:
        path = self.write_wav("mono.wav", 1, 16, bytes(4))
        with self.assertRaises(RuntimeError):
            WaveFile(path).load_next()

    def test_save_and_audio_length(self) -> None:
        path = self.tmp / "tone.wav"
        WaveFile.save(ArraySource(np.zeros(16000), 16000), path)
        self.assertEqual(WaveFile(path).audio_length_ms, 1000)


if __name__ == "__main__":
    unittest.main(argv=[""], exit=False, verbosity=2)
