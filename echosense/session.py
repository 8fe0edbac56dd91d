"""One recording session: diarized audio, tagged transcript, end-of-session summary."""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional

import numpy as np

from .audio.types import AudioBlock, BlockResult
from .notes.classifier import NoteClassifier
from .notes.keywords import KeywordExtractor
from .notes.models import Note, SessionSummary, SpeakerStats, TranscriptEntry, speaker_label
from .pipeline import AnalysisPipeline

LOGGER = logging.getLogger("echosense.session")

# Estimated utterance duration per character of recognized text.
MS_PER_CHARACTER = 50


class SessionClosedError(RuntimeError):
    pass


class LiveSession:
    """Collects pipeline output and transcript entries for a single session.

    Starting a session resets the pipeline's diarizer, so speaker ids restart
    at 0. Transcript entries without an explicit speaker are attributed to the
    speaker active when they arrive. A pipeline feeds one session at a time:
    starting a new session detaches an earlier one that was never ended.
    """

    def __init__(
        self,
        session_id: int,
        pipeline: AnalysisPipeline,
        *,
        classifier: NoteClassifier | None = None,
        keywords: KeywordExtractor | None = None,
        start_time: int = 0,
    ) -> None:
        self.session_id = session_id
        self.pipeline = pipeline
        self.classifier = classifier or NoteClassifier()
        self.keywords = keywords or KeywordExtractor()
        self.start_time = start_time
        self._lock = threading.Lock()
        self._transcript: List[TranscriptEntry] = []
        self._bookmarks: List[Note] = []
        self._speaking_ms: Dict[int, int] = {}
        self._segments: Dict[int, int] = {}
        self._active_speaker: Optional[int] = None
        self._last_time = start_time
        self._closed = False
        self.pipeline.reset()
        self.pipeline.bind_session(self._on_result)
        self.pipeline.log.add(f"Session {session_id} started")

    @property
    def active_speaker(self) -> Optional[int]:
        return self._active_speaker

    @property
    def transcript(self) -> List[TranscriptEntry]:
        with self._lock:
            return list(self._transcript)

    @property
    def closed(self) -> bool:
        return self._closed

    def on_audio(self, samples: np.ndarray, sample_rate: int, timestamp: int) -> BlockResult:
        """Capture callback: analyse one block synchronously."""
        self._ensure_open()
        block = AudioBlock(np.asarray(samples, dtype=np.int16), sample_rate, timestamp)
        return self.pipeline.process(block)

    def add_transcript(
        self, text: str, timestamp: int, speaker_id: int | None = None, confidence: float = 0.0
    ) -> Optional[TranscriptEntry]:
        self._ensure_open()
        if not text or not text.strip():
            return None
        with self._lock:
            if speaker_id is None:
                speaker_id = self._active_speaker if self._active_speaker is not None else 0
            entry = TranscriptEntry(
                speaker_id=speaker_id,
                speaker_label=speaker_label(speaker_id),
                text=text,
                timestamp=timestamp,
                duration=len(text) * MS_PER_CHARACTER,
                confidence=confidence,
            )
            self._transcript.append(entry)
            self._last_time = max(self._last_time, timestamp)
        return entry

    def add_bookmark(self, timestamp: int, content: str = "") -> Note:
        self._ensure_open()
        with self._lock:
            note = self.classifier.bookmark(self.session_id, timestamp, self._active_speaker, content)
            self._bookmarks.append(note)
        self.pipeline.log.add(f"Bookmark added at {timestamp} ms")
        return note

    def end(self, end_time: int | None = None) -> SessionSummary:
        self._ensure_open()
        with self._lock:
            self._closed = True
            finished = end_time if end_time is not None else self._last_time
            transcript = list(self._transcript)
            notes = self.classifier.classify(transcript, self.session_id)
            notes.extend(self._bookmarks)
            full_text = " ".join(entry.text for entry in transcript)
            summary = SessionSummary(
                session_id=self.session_id,
                title=self.keywords.generate_title(full_text),
                start_time=self.start_time,
                end_time=finished,
                duration=max(0, finished - self.start_time),
                speaker_count=self.pipeline.diarizer.speaker_count(),
                speakers=self._speaker_stats(),
                transcript=transcript,
                notes=notes,
                keywords=self.keywords.extract(full_text, 10),
            )
        self.pipeline.unbind_session(self._on_result)
        self.pipeline.log.add(
            f"Session {self.session_id} ended: {summary.speaker_count} speaker(s), {len(notes)} note(s)"
        )
        return summary

    def _on_result(self, result: BlockResult) -> None:
        if self._closed:
            return
        with self._lock:
            self._last_time = max(self._last_time, result.timestamp + result.duration_ms)
            if result.speaker_id is None:
                return
            self._active_speaker = result.speaker_id
            self._speaking_ms[result.speaker_id] = (
                self._speaking_ms.get(result.speaker_id, 0) + result.duration_ms
            )
            self._segments[result.speaker_id] = self._segments.get(result.speaker_id, 0) + 1

    def _speaker_stats(self) -> List[SpeakerStats]:
        total = sum(self._speaking_ms.values())
        stats = []
        for speaker_id in range(self.pipeline.diarizer.speaker_count()):
            speaking = self._speaking_ms.get(speaker_id, 0)
            stats.append(
                SpeakerStats(
                    speaker_id=speaker_id,
                    label=speaker_label(speaker_id),
                    segments=self._segments.get(speaker_id, 0),
                    speaking_time_ms=speaking,
                    speaking_percentage=(100.0 * speaking / total) if total else 0.0,
                )
            )
        return stats

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError(f"session {self.session_id} has ended")


__all__ = ["LiveSession", "SessionClosedError", "MS_PER_CHARACTER"]
