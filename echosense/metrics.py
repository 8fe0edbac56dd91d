"""Prometheus metrics helpers."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

BLOCK_COUNTER = Counter(
    "echosense_audio_blocks_total",
    "Audio blocks handled by the analysis pipeline",
    labelnames=("outcome",),
)

FEATURE_LATENCY = Histogram(
    "echosense_feature_extraction_seconds",
    "Time spent extracting one feature vector",
)

SPEAKER_COUNTER = Counter(
    "echosense_speakers_discovered_total",
    "Speaker profiles created by the diarizer",
)

NOTE_COUNTER = Counter(
    "echosense_notes_total",
    "Notes emitted by the classifier",
    labelnames=("category",),
)
