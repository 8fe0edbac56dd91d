"""Dataclasses shared across audio helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass(slots=True)
class AudioBlock:
    """Mono int16 samples delivered by the capture callback."""

    samples: np.ndarray
    sample_rate: int
    timestamp: int  # ms since recording start

    @property
    def duration_ms(self) -> int:
        if self.sample_rate <= 0:
            return 0
        return int(len(self.samples) * 1000 / self.sample_rate)


@dataclass(slots=True)
class BlockResult:
    """Outcome of analysing one block."""

    timestamp: int
    level: float
    speaker_id: Optional[int]
    duration_ms: int = 0


@dataclass(frozen=True, slots=True)
class ProfileSnapshot:
    """Read-only view of a speaker profile for the caller to persist."""

    id: int
    history_size: int
    last_active_time: int
    centroid: np.ndarray
