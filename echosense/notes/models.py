"""Pydantic records handed to the persistence layer."""

from __future__ import annotations

from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class NoteCategory(str, Enum):
    KEY_POINT = "KEY_POINT"
    ACTION_ITEM = "ACTION_ITEM"
    DECISION = "DECISION"
    QUESTION = "QUESTION"
    BOOKMARK = "BOOKMARK"


class TranscriptEntry(BaseModel):
    speaker_id: int = 0
    speaker_label: str = ""
    text: str
    timestamp: int = 0  # ms since recording start
    duration: int = 0
    confidence: float = 0.0


class Note(BaseModel):
    session_id: int
    category: NoteCategory
    content: str
    timestamp: int
    speaker_id: int | None = None


class SpeakerStats(BaseModel):
    speaker_id: int
    label: str
    segments: int = 0
    speaking_time_ms: int = 0
    speaking_percentage: float = 0.0


class SessionSummary(BaseModel):
    session_id: int
    title: str
    start_time: int
    end_time: int
    duration: int
    speaker_count: int
    speakers: List[SpeakerStats] = Field(default_factory=list)
    transcript: List[TranscriptEntry] = Field(default_factory=list)
    notes: List[Note] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)


def speaker_label(speaker_id: int) -> str:
    """Display label for a 0-based speaker id."""
    return f"Speaker {speaker_id + 1}"
