import math
import threading
import time

import numpy as np
import soundfile as sf

from echosense.audio.types import AudioBlock
from echosense.config import PipelineSettings
from echosense.pipeline import AnalysisPipeline, iter_blocks

SAMPLE_RATE = 16_000


def _sine_wave(freq: float, duration_s: float = 0.5, amplitude: int = 8000) -> np.ndarray:
    t = np.arange(int(duration_s * SAMPLE_RATE))
    return (np.sin(2 * math.pi * freq * t / SAMPLE_RATE) * amplitude).astype(np.int16)


def _block(samples: np.ndarray, timestamp: int) -> AudioBlock:
    return AudioBlock(samples=samples, sample_rate=SAMPLE_RATE, timestamp=timestamp)


def _pipeline(**overrides) -> AnalysisPipeline:
    return AnalysisPipeline(PipelineSettings(**overrides))


def test_short_blocks_are_metered_but_not_diarized():
    pipeline = _pipeline()
    levels = []
    pipeline.add_level_listener(levels.append)
    result = pipeline.process(_block(np.full(4000, 3276, dtype=np.int16), 0))
    assert result.speaker_id is None
    assert result.duration_ms == 250
    assert levels and 0.09 < levels[0] < 0.11
    assert pipeline.diarizer.speaker_count() == 0


def test_speaker_listener_fires_only_on_change():
    pipeline = _pipeline()
    changes = []
    pipeline.add_speaker_listener(lambda speaker, ts: changes.append((speaker, ts)))
    low = _sine_wave(100)
    high = _sine_wave(7900)
    for index, samples in enumerate([low, low, high, high, low]):
        pipeline.process(_block(samples, index * 500))
    assert changes == [(0, 0), (1, 1000), (0, 2000)]
    assert pipeline.active_speaker == 0


def test_reset_clears_diarizer_and_active_speaker():
    pipeline = _pipeline()
    pipeline.process(_block(_sine_wave(100), 0))
    pipeline.reset()
    assert pipeline.active_speaker is None
    assert pipeline.diarizer.speaker_count() == 0


def test_worker_processes_blocks_in_arrival_order():
    pipeline = _pipeline()
    results = []
    pipeline.add_result_listener(results.append)
    pipeline.start()
    try:
        for index in range(6):
            freq = 100 if index % 2 == 0 else 7900
            pipeline.submit(_block(_sine_wave(freq), index * 500))
    finally:
        pipeline.stop()
    assert [result.timestamp for result in results] == [0, 500, 1000, 1500, 2000, 2500]
    assert [result.speaker_id for result in results] == [0, 1, 0, 1, 0, 1]
    assert any("started" in line for line in pipeline.log.get())


def test_worker_survives_listener_errors():
    pipeline = _pipeline()
    seen = []

    def flaky(result):
        seen.append(result.timestamp)
        if result.timestamp == 0:
            raise RuntimeError("boom")

    pipeline.add_result_listener(flaky)
    pipeline.start()
    try:
        pipeline.submit(_block(_sine_wave(100), 0))
        pipeline.submit(_block(_sine_wave(100), 500))
    finally:
        pipeline.stop()
    assert seen == [0, 500]


def test_iter_blocks_splits_audio():
    audio = np.zeros(40_000, dtype=np.int16)
    blocks = list(iter_blocks(audio, SAMPLE_RATE, 1000))
    assert [len(block.samples) for block in blocks] == [16_000, 16_000, 8_000]
    assert [block.timestamp for block in blocks] == [0, 1000, 2000]


def test_analyze_file_reports_speaker_per_block(tmp_path):
    audio = np.concatenate([_sine_wave(100, 1.0), _sine_wave(7900, 1.0), _sine_wave(100, 1.0)])
    path = tmp_path / "conversation.wav"
    sf.write(str(path), audio, SAMPLE_RATE, subtype="PCM_16")

    pipeline = _pipeline()
    results = pipeline.analyze_file(path, block_ms=1000)
    assert [result.speaker_id for result in results] == [0, 1, 0]
    assert [result.timestamp for result in results] == [0, 1000, 2000]


def test_analyze_file_downmixes_stereo(tmp_path):
    mono = _sine_wave(100, 1.0)
    path = tmp_path / "stereo.flac"
    sf.write(str(path), np.stack([mono, mono], axis=1), SAMPLE_RATE, format="FLAC", subtype="PCM_16")

    results = _pipeline().analyze_file(path, block_ms=500)
    assert [result.speaker_id for result in results] == [0, 0]


def test_stop_returns_within_timeout_while_worker_is_busy():
    pipeline = _pipeline()
    entered = threading.Event()
    release = threading.Event()

    def blocking(result):
        entered.set()
        release.wait(5)

    pipeline.add_result_listener(blocking)
    pipeline.start()
    try:
        pipeline.submit(_block(_sine_wave(100), 0))
        assert entered.wait(2)
        started = time.monotonic()
        assert pipeline.stop(timeout=0.2) is False
        assert time.monotonic() - started < 1.0
        assert pipeline.running
        assert any("did not stop" in line for line in pipeline.log.get())

        # restarting reuses the busy worker instead of launching a second one
        pipeline.start()
        pipeline.submit(_block(_sine_wave(100), 500))
    finally:
        release.set()
    assert pipeline.stop() is True
    assert not pipeline.running
    assert sum("started" in line for line in pipeline.log.get()) == 1
