"""Audio analysis: spectral features, online diarization and input level."""

from __future__ import annotations

from .diarizer import SpeakerDiarizer, SpeakerProfile, cosine_similarity
from .features import SpectralFeatureExtractor
from .level import AmplitudeMeter
from .types import AudioBlock, BlockResult, ProfileSnapshot

__all__ = [
    "AmplitudeMeter",
    "AudioBlock",
    "BlockResult",
    "ProfileSnapshot",
    "SpectralFeatureExtractor",
    "SpeakerDiarizer",
    "SpeakerProfile",
    "cosine_similarity",
]
