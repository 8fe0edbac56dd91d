"""Cepstral-style feature vectors from raw PCM blocks.

The pipeline is a simplified MFCC front end: pre-emphasis, 50% overlapping
Hamming-windowed frames, a power spectrum per frame and a cosine projection of
the spectrum bins. There is no mel filterbank and no log compression. Frame
vectors are averaged into one vector per block.

The power spectrum is computed with a direct DFT by default. ``use_fft=True``
switches to ``numpy.fft.rfft``, which yields the same bins up to floating
point error.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from ..config import PipelineSettings
from ..metrics import FEATURE_LATENCY

LOGGER = logging.getLogger("echosense.features")

PCM_SCALE = 32768.0


class SpectralFeatureExtractor:
    """Turns one block of int16 samples into a fixed-length feature vector."""

    def __init__(
        self,
        *,
        num_coefficients: int = 13,
        frame_size: int = 512,
        hop_size: int = 256,
        pre_emphasis: float = 0.97,
        use_fft: bool = False,
    ) -> None:
        if num_coefficients <= 0:
            raise ValueError(f"num_coefficients must be positive, got {num_coefficients}")
        if frame_size < 2:
            raise ValueError(f"frame_size must be at least 2, got {frame_size}")
        if not 0 < hop_size <= frame_size:
            raise ValueError(f"hop_size must be in (0, frame_size], got {hop_size}")
        if not 0.0 <= pre_emphasis < 1.0:
            raise ValueError(f"pre_emphasis must be in [0, 1), got {pre_emphasis}")
        self.num_coefficients = int(num_coefficients)
        self.frame_size = int(frame_size)
        self.hop_size = int(hop_size)
        self.pre_emphasis = float(pre_emphasis)
        self.use_fft = bool(use_fft)

        n = self.frame_size
        bins = n // 2 + 1
        idx = np.arange(n)
        self._window = 0.54 - 0.46 * np.cos(2 * np.pi * idx / (n - 1))
        angles = -2 * np.pi * np.outer(np.arange(bins), idx) / n
        self._dft_cos = np.cos(angles)
        self._dft_sin = np.sin(angles)
        coeff = np.arange(self.num_coefficients)[:, None]
        self._basis = np.cos(np.pi * coeff * (np.arange(bins)[None, :] + 0.5) / bins)

    @classmethod
    def from_settings(cls, settings: PipelineSettings) -> "SpectralFeatureExtractor":
        return cls(
            num_coefficients=settings.feature_coefficient_count,
            frame_size=settings.frame_size,
            hop_size=settings.hop_size,
            pre_emphasis=settings.pre_emphasis_alpha,
            use_fft=settings.use_fft,
        )

    def extract(self, samples: Sequence[int] | np.ndarray, sample_rate: int = 16000) -> np.ndarray:
        """Return the averaged coefficient vector for ``samples``.

        ``sample_rate`` is accepted for interface symmetry with the capture
        callback; the transform itself works in bins, not Hz. Blocks shorter
        than one frame produce a zero vector.
        """
        with FEATURE_LATENCY.time():
            signal = self._to_float(samples)
            frames = self._frame(self._apply_pre_emphasis(signal))
            if frames.shape[0] == 0:
                return np.zeros(self.num_coefficients, dtype=np.float64)
            power = self.power_spectrum(frames * self._window)
            coefficients = power @ self._basis.T
            return coefficients.mean(axis=0)

    def power_spectrum(self, frames: np.ndarray) -> np.ndarray:
        """Power of bins ``0..N/2`` for each row of ``frames``."""
        frames = np.atleast_2d(np.asarray(frames, dtype=np.float64))
        if self.use_fft:
            spectrum = np.fft.rfft(frames, n=self.frame_size, axis=1)
            return spectrum.real ** 2 + spectrum.imag ** 2
        real = frames @ self._dft_cos.T
        imag = frames @ self._dft_sin.T
        return real ** 2 + imag ** 2

    def _to_float(self, samples: Sequence[int] | np.ndarray) -> np.ndarray:
        data = np.asarray(samples)
        if data.ndim > 1:
            data = data[:, 0]
        if data.size == 0:
            return np.zeros(0, dtype=np.float64)
        return data.astype(np.float64) / PCM_SCALE

    def _apply_pre_emphasis(self, signal: np.ndarray) -> np.ndarray:
        if signal.size == 0:
            return signal
        emphasized = np.empty_like(signal)
        emphasized[0] = signal[0]
        emphasized[1:] = signal[1:] - self.pre_emphasis * signal[:-1]
        return emphasized

    def _frame(self, signal: np.ndarray) -> np.ndarray:
        if signal.size < self.frame_size:
            return np.zeros((0, self.frame_size), dtype=np.float64)
        windows = np.lib.stride_tricks.sliding_window_view(signal, self.frame_size)
        return windows[:: self.hop_size]


__all__ = ["SpectralFeatureExtractor", "PCM_SCALE"]
