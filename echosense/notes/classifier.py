"""Rule-based note tagging for finalized transcript entries."""

from __future__ import annotations

import logging
from typing import Iterable, List

from ..metrics import NOTE_COUNTER
from .models import Note, NoteCategory, TranscriptEntry

LOGGER = logging.getLogger("echosense.notes")

ACTION_PHRASES = frozenset(
    {
        "will", "should", "must", "need", "have to", "going to", "plan to",
        "schedule", "arrange", "organize", "prepare", "contact", "call",
        "email", "send", "review", "check", "update", "create", "finish",
    }
)

DECISION_WORDS = frozenset(
    {
        "decided", "agreed", "confirmed", "approved", "rejected",
        "chosen", "selected", "final", "conclusion",
    }
)

QUESTION_WORDS = frozenset(
    {
        "what", "when", "where", "who", "why", "how", "which",
        "?", "clarify", "explain", "wondering",
    }
)

IMPORTANT_PHRASES = frozenset(
    {
        "important", "critical", "key point", "remember", "note that",
        "keep in mind", "don't forget", "main", "primary", "essential",
    }
)

LONG_STATEMENT_WORDS = 15


class NoteClassifier:
    """Tags transcript entries as action items, decisions, questions and key points.

    Matching is plain substring containment on the lower-cased text, so "will"
    also matches "willing". Categories are independent: one entry can yield
    several notes.
    """

    def classify(self, entries: Iterable[TranscriptEntry], session_id: int) -> List[Note]:
        notes: List[Note] = []
        for entry in entries:
            for category in self.categories(entry.text):
                notes.append(
                    Note(
                        session_id=session_id,
                        category=category,
                        content=entry.text,
                        timestamp=entry.timestamp,
                        speaker_id=entry.speaker_id,
                    )
                )
                NOTE_COUNTER.labels(category=category.value).inc()
        LOGGER.debug("Classified transcript into %d note(s) for session %s", len(notes), session_id)
        return notes

    def categories(self, text: str) -> List[NoteCategory]:
        lowered = text.lower()
        found: List[NoteCategory] = []
        if _contains_any(lowered, ACTION_PHRASES):
            found.append(NoteCategory.ACTION_ITEM)
        if _contains_any(lowered, DECISION_WORDS):
            found.append(NoteCategory.DECISION)
        if "?" in lowered or _contains_any(lowered, QUESTION_WORDS):
            found.append(NoteCategory.QUESTION)
        if _contains_any(lowered, IMPORTANT_PHRASES) or _is_long_statement(text):
            found.append(NoteCategory.KEY_POINT)
        return found

    def bookmark(
        self, session_id: int, timestamp: int, speaker_id: int | None = None, content: str = ""
    ) -> Note:
        NOTE_COUNTER.labels(category=NoteCategory.BOOKMARK.value).inc()
        return Note(
            session_id=session_id,
            category=NoteCategory.BOOKMARK,
            content=content or "Bookmark",
            timestamp=timestamp,
            speaker_id=speaker_id,
        )


def _contains_any(text: str, phrases: Iterable[str]) -> bool:
    return any(phrase in text for phrase in phrases)


def _is_long_statement(text: str) -> bool:
    return len(text.split(" ")) > LONG_STATEMENT_WORDS


__all__ = ["NoteClassifier"]
