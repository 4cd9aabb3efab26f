"""Run MFCC extraction on a WAVE file, or on a generated test tone.

Usage:
  python mfcc_file_example.py                       # 440 Hz tone, written to tone.wav
  python mfcc_file_example.py --file speech.wav     # existing file
  python mfcc_file_example.py --file speech.wav --stream 6400   # part-wise decode
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

import numpy as np

from wave_mfcc.audio import ArraySource, MfccConfig, WaveFile
from wave_mfcc.pipeline import MfccPipeline

TONE_PATH = Path(__file__).resolve().parent / "tone.wav"


def make_tone(path: Path, sample_rate: int = 16_000, seconds: float = 1.0, hz: float = 440.0) -> None:
    """Write a 16-bit mono sine tone whose amplitude grows over time."""
    t = np.arange(int(sample_rate * seconds)) / sample_rate
    envelope = 100.0 * 10 ** (2 * t)
    WaveFile.save(ArraySource(envelope * np.sin(2 * np.pi * hz * t), sample_rate), path)


def main(wav_path=None, part_size=None):
    if wav_path is None:
        wav_path = TONE_PATH
        make_tone(wav_path)
        print(f"Wrote test tone to {wav_path}")
    wav_path = Path(wav_path)
    if not wav_path.exists():
        print(f"File not found: {wav_path}")
        sys.exit(1)

    wav = WaveFile(wav_path)
    print(f"{wav_path}: {wav.channels} ch, {wav.sample_rate:g} Hz, {wav.bits_per_sample} bit, {wav.audio_length_ms} ms")

    config = MfccConfig(sample_rate=int(wav.sample_rate))
    pipeline = MfccPipeline(config)
    if part_size:
        features = pipeline.process_file(wav_path, part_size=part_size)
    else:
        features = pipeline.process_source(wav)

    print(f"Extracted {features.shape[0]} frames x {features.shape[1]} coefficients")
    for i, row in enumerate(features[:5]):
        print(f"  frame {i}: log-energy {row[0]:8.3f}  c1..c3 {np.round(row[1:4], 3)}")
    print("\nDone.")


if __name__ == "__main__":
    args = sys.argv[1:]
    wav_path = None
    part_size = None
    if "--file" in args:
        idx = args.index("--file")
        if idx + 1 < len(args):
            wav_path = args[idx + 1]
    if "--stream" in args:
        idx = args.index("--stream")
        if idx + 1 < len(args):
            part_size = int(args[idx + 1])
    main(wav_path=wav_path, part_size=part_size)
