"""EchoSense: real-time speaker diarization and note tagging for conversations."""

from __future__ import annotations

from .audio import AmplitudeMeter, AudioBlock, SpectralFeatureExtractor, SpeakerDiarizer
from .config import PipelineSettings, get_settings
from .notes import KeywordExtractor, Note, NoteCategory, NoteClassifier, TranscriptEntry
from .pipeline import AnalysisPipeline
from .session import LiveSession, SessionClosedError

__version__ = "1.0.0"

__all__ = [
    "AmplitudeMeter",
    "AnalysisPipeline",
    "AudioBlock",
    "KeywordExtractor",
    "LiveSession",
    "Note",
    "NoteCategory",
    "NoteClassifier",
    "PipelineSettings",
    "SessionClosedError",
    "SpectralFeatureExtractor",
    "SpeakerDiarizer",
    "TranscriptEntry",
    "get_settings",
]
