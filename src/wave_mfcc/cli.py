"""CLI for MFCC extraction from WAVE files."""

import argparse
import logging
import sys
from pathlib import Path

import numpy as np

from wave_mfcc.audio import MfccConfig, StereoChannel, WaveFileHandler
from wave_mfcc.errors import DimensionMismatch, FormatError
from wave_mfcc.features.lifter import LIFTER_MODES
from wave_mfcc.pipeline import MfccPipeline


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Extract MFCC features from a PCM .wav file")
    parser.add_argument("input", type=Path, help="Input WAV file path")
    parser.add_argument(
        "--frame-ms",
        type=float,
        default=25.0,
        help="Frame length in milliseconds (default: 25)",
    )
    parser.add_argument(
        "--hop-ms",
        type=float,
        default=10.0,
        help="Hop between frames in milliseconds (default: 10)",
    )
    parser.add_argument(
        "--filters",
        type=int,
        default=26,
        help="Number of mel filters (default: 26)",
    )
    parser.add_argument(
        "--features",
        type=int,
        default=12,
        help="Number of coefficients per frame (default: 12)",
    )
    parser.add_argument(
        "--lifter",
        type=float,
        default=22.0,
        help="Lifter parameter L (default: 22)",
    )
    parser.add_argument(
        "--lifter-mode",
        choices=LIFTER_MODES,
        default="sinusoidal",
        help="Lifter weighting formula",
    )
    parser.add_argument(
        "--channel",
        choices=("left", "right"),
        default="left",
        help="Channel to analyse in stereo files",
    )
    parser.add_argument(
        "--pcm8-layout",
        choices=("paired", "legacy"),
        default="paired",
        help="How 8-bit payloads are unpacked",
    )
    parser.add_argument(
        "--part-size",
        type=int,
        default=None,
        help="Decode the payload this many bytes at a time instead of all at once (whole sample frames)",
    )
    parser.add_argument(
        "--pad-last",
        action="store_true",
        help="Zero-pad and keep a trailing partial frame",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Write the feature matrix as CSV",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    channel = StereoChannel.RIGHT if args.channel == "right" else StereoChannel.LEFT
    try:
        with WaveFileHandler(args.input) as handler:
            header = handler.read_header()
        config = MfccConfig(
            sample_rate=header.sample_rate,
            pcm8_layout=args.pcm8_layout,
            frame_ms=args.frame_ms,
            hop_ms=args.hop_ms,
            pad_last=args.pad_last,
            num_filters=args.filters,
            num_features=args.features,
            lifter_coeff=args.lifter,
            lifter_mode=args.lifter_mode,
        )
        print(
            f"{args.input}: {header.channels} ch, {header.sample_rate} Hz, "
            f"{header.bits_per_sample} bit, {header.duration_ms} ms"
        )
        features = MfccPipeline(config).process_file(args.input, channel=channel, part_size=args.part_size)
    except (FormatError, DimensionMismatch, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(f"Extracted {features.shape[0]} frames x {features.shape[1]} coefficients")
    if features.shape[0] > 0:
        print(f"First frame (first 5 coefficients): {features[0, :5]}")
    if args.output is not None:
        np.savetxt(args.output, features, delimiter=",", fmt="%.8g")
        print(f"Saved: {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
