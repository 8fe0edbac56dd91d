"""Single-worker analysis pipeline fed by the capture callback."""

from __future__ import annotations

import logging
import queue
import threading
import time
from pathlib import Path
from typing import Callable, Iterator, List, Optional

import numpy as np
import soundfile as sf

from .audio.diarizer import SpeakerDiarizer
from .audio.features import SpectralFeatureExtractor
from .audio.level import AmplitudeMeter
from .audio.types import AudioBlock, BlockResult
from .config import PipelineSettings, get_settings
from .metrics import BLOCK_COUNTER
from .services.logger import LogBuffer

LOGGER = logging.getLogger("echosense.pipeline")

LevelListener = Callable[[float], None]
SpeakerListener = Callable[[int, int], None]
ResultListener = Callable[[BlockResult], None]

# Worker wake-up interval while idle.
POLL_SECONDS = 0.2


class AnalysisPipeline:
    """Runs level metering and diarization over audio blocks in arrival order."""

    def __init__(
        self,
        settings: PipelineSettings | None = None,
        *,
        diarizer: SpeakerDiarizer | None = None,
        meter: AmplitudeMeter | None = None,
        log: LogBuffer | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.diarizer = diarizer or SpeakerDiarizer.from_settings(self.settings)
        self.meter = meter or AmplitudeMeter()
        self.log = log or LogBuffer(self.settings.log_history)
        self._lock = threading.Lock()
        self._queue: queue.Queue[AudioBlock] = queue.Queue(maxsize=self.settings.queue_size)
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._level_listeners: List[LevelListener] = []
        self._speaker_listeners: List[SpeakerListener] = []
        self._result_listeners: List[ResultListener] = []
        self._session_listener: Optional[ResultListener] = None
        self._active_speaker: Optional[int] = None

    @property
    def extractor(self) -> SpectralFeatureExtractor:
        return self.diarizer.extractor

    @property
    def active_speaker(self) -> Optional[int]:
        return self._active_speaker

    def add_level_listener(self, listener: LevelListener) -> None:
        self._level_listeners.append(listener)

    def add_speaker_listener(self, listener: SpeakerListener) -> None:
        """``listener(speaker_id, timestamp)`` fires when the active speaker changes."""
        self._speaker_listeners.append(listener)

    def add_result_listener(self, listener: ResultListener) -> None:
        self._result_listeners.append(listener)

    def remove_result_listener(self, listener: ResultListener) -> None:
        if listener in self._result_listeners:
            self._result_listeners.remove(listener)

    def bind_session(self, listener: ResultListener) -> None:
        """Make ``listener`` the session listener, detaching any previous one."""
        if self._session_listener is not None:
            self.remove_result_listener(self._session_listener)
            LOGGER.info("Detached listener of an unfinished session")
        self._session_listener = listener
        self.add_result_listener(listener)

    def unbind_session(self, listener: ResultListener) -> None:
        if self._session_listener == listener:
            self.remove_result_listener(listener)
            self._session_listener = None

    def min_block_samples(self, sample_rate: int) -> int:
        return int(sample_rate * self.settings.min_block_ratio)

    def process(self, block: AudioBlock) -> BlockResult:
        with self._lock:
            result = self._analyse(block)
            changed = result.speaker_id is not None and result.speaker_id != self._active_speaker
            if changed:
                LOGGER.debug(
                    "Active speaker %s -> %s at %d ms",
                    self._active_speaker,
                    result.speaker_id,
                    result.timestamp,
                )
                self._active_speaker = result.speaker_id
        self._notify(result, changed)
        return result

    def reset(self) -> None:
        with self._lock:
            self.diarizer.reset()
            self._active_speaker = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            # A worker left behind by a timed-out stop() keeps serving the queue.
            self._stop.clear()
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="echosense-pipeline", daemon=True)
        self._thread.start()
        self.log.add("Analysis pipeline started")

    def stop(self, timeout: float = 2.0) -> bool:
        """Stop the worker after it drains blocks already queued.

        Waits at most ``timeout`` seconds (plus one poll interval for an idle
        worker to notice). Returns False, keeping the thread handle, when the
        worker is still busy so that ``start()`` never runs a second worker.
        """
        thread = self._thread
        if thread is None:
            return True
        deadline = time.monotonic() + timeout
        while self._queue.unfinished_tasks and time.monotonic() < deadline:
            time.sleep(0.01)
        self._stop.set()
        thread.join(timeout=max(deadline - time.monotonic(), POLL_SECONDS))
        if thread.is_alive():
            LOGGER.warning("Analysis worker still busy after %.1fs", timeout)
            self.log.add(f"Analysis pipeline did not stop within {timeout:.1f}s")
            return False
        self._thread = None
        self.log.add("Analysis pipeline stopped")
        return True

    def submit(self, block: AudioBlock, timeout: float | None = None) -> None:
        """Queue a block for the worker; blocks while the queue is full."""
        self._queue.put(block, timeout=timeout)

    def analyze_file(self, path: Path | str, block_ms: int = 1000) -> List[BlockResult]:
        """Diarize a recorded WAV/FLAC file in fixed-size blocks."""
        audio, sample_rate = sf.read(str(path), dtype="int16", always_2d=False)
        if audio.ndim > 1:
            audio = audio.mean(axis=1).astype(np.int16)
        self.log.add(f"Analysing {Path(path).name} ({len(audio) / sample_rate:.1f}s @ {sample_rate} Hz)")
        return [self.process(block) for block in iter_blocks(audio, sample_rate, block_ms)]

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                block = self._queue.get(timeout=POLL_SECONDS)
            except queue.Empty:
                continue
            try:
                self.process(block)
            except Exception:
                BLOCK_COUNTER.labels(outcome="error").inc()
                LOGGER.exception("Failed to analyse block at %d ms", block.timestamp)
            finally:
                self._queue.task_done()

    def _analyse(self, block: AudioBlock) -> BlockResult:
        level = self.meter.normalized(block.samples)
        if len(block.samples) < self.min_block_samples(block.sample_rate) or len(block.samples) == 0:
            BLOCK_COUNTER.labels(outcome="short").inc()
            return BlockResult(block.timestamp, level, None, block.duration_ms)
        speaker_id = self.diarizer.assign(block.samples, block.sample_rate, block.timestamp)
        BLOCK_COUNTER.labels(outcome="diarized").inc()
        return BlockResult(block.timestamp, level, speaker_id, block.duration_ms)

    def _notify(self, result: BlockResult, speaker_changed: bool) -> None:
        for listener in self._level_listeners:
            listener(result.level)
        if speaker_changed:
            for listener in self._speaker_listeners:
                listener(result.speaker_id, result.timestamp)
        for listener in self._result_listeners:
            listener(result)


def iter_blocks(audio: np.ndarray, sample_rate: int, block_ms: int) -> Iterator[AudioBlock]:
    """Split mono samples into consecutive blocks of ``block_ms`` milliseconds."""
    if block_ms <= 0:
        raise ValueError(f"block_ms must be positive, got {block_ms}")
    step = max(1, int(sample_rate * block_ms / 1000))
    for offset in range(0, len(audio), step):
        yield AudioBlock(
            samples=np.asarray(audio[offset : offset + step], dtype=np.int16),
            sample_rate=sample_rate,
            timestamp=int(offset * 1000 / sample_rate),
        )


__all__ = ["AnalysisPipeline", "iter_blocks"]
