"""Transcript-side helpers: note tagging, keywords and session records."""

from __future__ import annotations

from .classifier import NoteClassifier
from .keywords import KeywordExtractor
from .models import Note, NoteCategory, SessionSummary, SpeakerStats, TranscriptEntry, speaker_label

__all__ = [
    "KeywordExtractor",
    "Note",
    "NoteCategory",
    "NoteClassifier",
    "SessionSummary",
    "SpeakerStats",
    "TranscriptEntry",
    "speaker_label",
]
