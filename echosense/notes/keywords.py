"""Frequency-based keywords and session titles."""

from __future__ import annotations

import re
from collections import Counter
from typing import Iterable, List

STOP_WORDS = frozenset(
    {
        "a", "an", "and", "are", "as", "at", "be", "by", "for", "from",
        "has", "he", "in", "is", "it", "its", "of", "on", "that", "the",
        "to", "was", "will", "with", "i", "you", "we", "they", "this",
        "but", "or", "not", "so", "if", "then", "what", "when", "where",
    }
)

UNTITLED = "Untitled Conversation"

_NON_WORD = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


class KeywordExtractor:
    def extract(self, text: str, top_n: int = 5) -> List[str]:
        cleaned = _NON_WORD.sub(" ", text.lower())
        words = [
            word
            for word in _WHITESPACE.split(cleaned)
            if len(word) > 3 and word not in STOP_WORDS
        ]
        # Counter.most_common keeps first-seen order among equal counts.
        return [word for word, _count in Counter(words).most_common(max(0, top_n))]

    def extract_from_texts(self, texts: Iterable[str], top_n: int = 10) -> List[str]:
        return self.extract(" ".join(texts), top_n)

    def generate_title(self, text: str) -> str:
        keywords = self.extract(text, 3)
        if not keywords:
            return UNTITLED
        return " ".join(word.capitalize() for word in keywords)


__all__ = ["KeywordExtractor", "UNTITLED"]
