"""Input level metric for the live capture meter."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .features import PCM_SCALE


class AmplitudeMeter:
    """Mean absolute sample value of a PCM block."""

    def level(self, samples: Sequence[int] | np.ndarray) -> float:
        data = np.asarray(samples)
        if data.size == 0:
            return 0.0
        return float(np.mean(np.abs(data.astype(np.float64))))

    def normalized(self, samples: Sequence[int] | np.ndarray) -> float:
        level = self.level(samples) / PCM_SCALE
        return max(0.0, min(1.0, level))


__all__ = ["AmplitudeMeter"]
