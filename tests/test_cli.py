import json
import math

import numpy as np
import pytest
import soundfile as sf

from echosense.__main__ import main, merge_turns
from echosense.audio.types import BlockResult

SAMPLE_RATE = 16_000


def _sine_wave(freq: float, duration_s: float) -> np.ndarray:
    t = np.arange(int(duration_s * SAMPLE_RATE))
    return (np.sin(2 * math.pi * freq * t / SAMPLE_RATE) * 8000).astype(np.int16)


@pytest.fixture
def recording(tmp_path):
    audio = np.concatenate([_sine_wave(100, 2.0), _sine_wave(7900, 1.0), _sine_wave(100, 1.0)])
    path = tmp_path / "meeting.wav"
    sf.write(str(path), audio, SAMPLE_RATE, subtype="PCM_16")
    return path


def test_merge_turns_collapses_consecutive_blocks():
    results = [
        BlockResult(0, 0.1, 0, 1000),
        BlockResult(1000, 0.1, 0, 1000),
        BlockResult(2000, 0.0, None, 200),
        BlockResult(2200, 0.1, 1, 1000),
    ]
    assert merge_turns(results) == [
        {"speaker_id": 0, "start_ms": 0, "end_ms": 2000},
        {"speaker_id": 1, "start_ms": 2200, "end_ms": 3200},
    ]


def test_analyze_json_output(recording, capsys):
    assert main(["analyze", str(recording), "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["speaker_count"] == 2
    assert [turn["speaker_id"] for turn in payload["turns"]] == [0, 1, 0]
    assert payload["turns"][0] == {"speaker_id": 0, "start_ms": 0, "end_ms": 2000}


def test_analyze_text_output_with_overrides(recording, capsys):
    assert main(["analyze", str(recording), "--max-speakers", "1", "--fft"]) == 0
    out = capsys.readouterr().out
    assert "00:00.000 --> 00:04.000  Speaker 1" in out
    assert out.strip().endswith("1 speaker(s)")
