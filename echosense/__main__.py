"""Command line entry point: speaker timeline for a recorded file."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List, Optional

from .audio.types import BlockResult
from .config import PipelineSettings, get_settings
from .notes.models import speaker_label
from .pipeline import AnalysisPipeline


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="echosense", description="EchoSense audio analysis tools.")
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Diarize a WAV/FLAC recording and print a speaker timeline.")
    analyze.add_argument("path", type=Path, help="Audio file to analyse.")
    analyze.add_argument("--block-ms", type=int, default=1000, help="Analysis block length (default: 1000).")
    analyze.add_argument("--max-speakers", type=int, default=None, help="Override the speaker limit.")
    analyze.add_argument("--threshold", type=float, default=None, help="Override the similarity threshold.")
    analyze.add_argument("--fft", action="store_true", help="Use numpy's FFT instead of the direct DFT.")
    analyze.add_argument("--json", action="store_true", help="Emit JSON instead of text.")
    return parser


def _settings_from_args(args: argparse.Namespace) -> PipelineSettings:
    overrides = {}
    if args.max_speakers is not None:
        overrides["max_speakers"] = args.max_speakers
    if args.threshold is not None:
        overrides["similarity_threshold"] = args.threshold
    if args.fft:
        overrides["use_fft"] = True
    base = get_settings()
    if not overrides:
        return base
    return PipelineSettings(**{**base.model_dump(), **overrides})


def merge_turns(results: List[BlockResult]) -> List[dict]:
    """Collapse consecutive blocks of the same speaker into turns."""
    turns: List[dict] = []
    for result in results:
        if result.speaker_id is None:
            continue
        end = result.timestamp + result.duration_ms
        if turns and turns[-1]["speaker_id"] == result.speaker_id:
            turns[-1]["end_ms"] = end
            continue
        turns.append({"speaker_id": result.speaker_id, "start_ms": result.timestamp, "end_ms": end})
    return turns


def _format_ms(value: int) -> str:
    seconds, millis = divmod(int(value), 1000)
    minutes, seconds = divmod(seconds, 60)
    return f"{minutes:02d}:{seconds:02d}.{millis:03d}"


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = _settings_from_args(args)
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    pipeline = AnalysisPipeline(settings)
    results = pipeline.analyze_file(args.path, block_ms=args.block_ms)
    turns = merge_turns(results)
    if args.json:
        print(json.dumps({"speaker_count": pipeline.diarizer.speaker_count(), "turns": turns}, indent=2))
        return 0
    for turn in turns:
        print(
            f"{_format_ms(turn['start_ms'])} --> {_format_ms(turn['end_ms'])}  "
            f"{speaker_label(turn['speaker_id'])}"
        )
    print(f"{pipeline.diarizer.speaker_count()} speaker(s)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
