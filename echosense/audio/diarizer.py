"""Online speaker diarization over averaged spectral features.

Each discovered speaker is a profile holding a bounded FIFO of recent feature
vectors; the profile's centroid is the mean of that history. Incoming vectors
join the most similar profile (cosine similarity) when the similarity clears
the threshold, open a new profile while capacity remains, and otherwise fall
back to the closest profile without touching its history.

The diarizer holds unsynchronized per-session state. Callers feeding it from
more than one thread must serialize ``assign``/``process``/``reset``.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import List, Optional, Sequence

import numpy as np

from ..config import PipelineSettings
from ..metrics import SPEAKER_COUNTER
from .features import SpectralFeatureExtractor
from .types import ProfileSnapshot

LOGGER = logging.getLogger("echosense.diarizer")


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """``dot(a, b) / (|a| |b|)``; 0.0 for mismatched lengths or zero norms."""
    a = np.asarray(a, dtype=np.float64).ravel()
    b = np.asarray(b, dtype=np.float64).ravel()
    if a.shape != b.shape or a.size == 0:
        return 0.0
    denominator = float(np.sqrt(np.dot(a, a) * np.dot(b, b)))
    if denominator == 0.0 or not np.isfinite(denominator):
        return 0.0
    return float(np.dot(a, b) / denominator)


class SpeakerProfile:
    """One diarized speaker: id, bounded feature history, last activity."""

    __slots__ = ("id", "features", "last_active_time")

    def __init__(self, speaker_id: int, capacity: int, last_active_time: int = 0) -> None:
        self.id = speaker_id
        self.features: deque[np.ndarray] = deque(maxlen=capacity)
        self.last_active_time = last_active_time

    def add(self, vector: np.ndarray, timestamp: int) -> None:
        self.features.append(vector)
        self.last_active_time = timestamp

    def centroid(self) -> np.ndarray:
        if not self.features:
            return np.zeros(0, dtype=np.float64)
        return np.mean(np.stack(self.features), axis=0)

    def snapshot(self) -> ProfileSnapshot:
        return ProfileSnapshot(
            id=self.id,
            history_size=len(self.features),
            last_active_time=self.last_active_time,
            centroid=self.centroid(),
        )


class SpeakerDiarizer:
    """Assigns each audio segment to one of at most ``max_speakers`` speakers."""

    def __init__(
        self,
        *,
        max_speakers: int = 4,
        similarity_threshold: float = 0.7,
        history_capacity: int = 100,
        extractor: SpectralFeatureExtractor | None = None,
    ) -> None:
        if max_speakers <= 0:
            raise ValueError(f"max_speakers must be positive, got {max_speakers}")
        if not 0.0 < similarity_threshold <= 1.0:
            raise ValueError(
                f"similarity_threshold must be in (0, 1], got {similarity_threshold}"
            )
        if history_capacity <= 0:
            raise ValueError(f"history_capacity must be positive, got {history_capacity}")
        self.max_speakers = int(max_speakers)
        self.similarity_threshold = float(similarity_threshold)
        self.history_capacity = int(history_capacity)
        self.extractor = extractor or SpectralFeatureExtractor()
        self._profiles: List[SpeakerProfile] = []
        self._current_speaker: Optional[int] = None

    @classmethod
    def from_settings(
        cls, settings: PipelineSettings, extractor: SpectralFeatureExtractor | None = None
    ) -> "SpeakerDiarizer":
        return cls(
            max_speakers=settings.max_speakers,
            similarity_threshold=settings.similarity_threshold,
            history_capacity=settings.profile_history_capacity,
            extractor=extractor or SpectralFeatureExtractor.from_settings(settings),
        )

    @property
    def current_speaker(self) -> Optional[int]:
        return self._current_speaker

    def assign(self, samples: Sequence[int] | np.ndarray, sample_rate: int, timestamp: int) -> int:
        """Extract features from a raw block and return its speaker id."""
        features = self.extractor.extract(samples, sample_rate)
        return self.process(features, timestamp)

    def process(self, features: np.ndarray, timestamp: int) -> int:
        """Return the speaker id for an externally computed feature vector."""
        # History entries never alias caller buffers.
        vector = np.array(features, dtype=np.float64).ravel()
        speaker_id = self._identify(vector, timestamp)
        self._current_speaker = speaker_id
        return speaker_id

    def speaker_count(self) -> int:
        return len(self._profiles)

    def profiles(self) -> List[ProfileSnapshot]:
        return [profile.snapshot() for profile in self._profiles]

    def history_size(self, speaker_id: int) -> int:
        if not 0 <= speaker_id < len(self._profiles):
            raise ValueError(f"unknown speaker id {speaker_id}")
        return len(self._profiles[speaker_id].features)

    def reset(self) -> None:
        if self._profiles:
            LOGGER.info("Diarizer reset (%d speaker(s) cleared)", len(self._profiles))
        self._profiles = []
        self._current_speaker = None

    def _identify(self, vector: np.ndarray, timestamp: int) -> int:
        if not self._profiles:
            return self._create_profile(vector, timestamp)

        best_similarity = 0.0
        best_id = -1
        for profile in self._profiles:
            similarity = cosine_similarity(vector, profile.centroid())
            if similarity > best_similarity:
                best_similarity = similarity
                best_id = profile.id

        if best_id >= 0 and best_similarity >= self.similarity_threshold:
            self._profiles[best_id].add(vector, timestamp)
            return best_id

        if len(self._profiles) < self.max_speakers:
            return self._create_profile(vector, timestamp)

        if best_id >= 0:
            LOGGER.debug(
                "At capacity; falling back to speaker %d (similarity %.3f)", best_id, best_similarity
            )
            return best_id

        # No positive similarity at all (silence or degenerate vectors).
        fallback = max(self._profiles, key=lambda p: (p.last_active_time, -p.id))
        LOGGER.debug("No similar speaker; using most recently active speaker %d", fallback.id)
        return fallback.id

    def _create_profile(self, vector: np.ndarray, timestamp: int) -> int:
        profile = SpeakerProfile(len(self._profiles), self.history_capacity)
        profile.add(vector, timestamp)
        self._profiles.append(profile)
        SPEAKER_COUNTER.inc()
        LOGGER.info("New speaker %d detected at %d ms", profile.id, timestamp)
        return profile.id


__all__ = ["SpeakerDiarizer", "SpeakerProfile", "cosine_similarity"]
