"""Pipeline settings resolved from the environment."""

from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel, Field, model_validator


class PipelineSettings(BaseModel):
    sample_rate: int = Field(default=int(os.getenv("ECHOSENSE_SAMPLE_RATE", "16000")), gt=0)
    max_speakers: int = Field(default=int(os.getenv("ECHOSENSE_MAX_SPEAKERS", "4")), gt=0)
    similarity_threshold: float = Field(
        default=float(os.getenv("ECHOSENSE_SIMILARITY_THRESHOLD", "0.7")), gt=0.0, le=1.0
    )
    feature_coefficient_count: int = Field(
        default=int(os.getenv("ECHOSENSE_FEATURE_COEFFICIENTS", "13")), gt=0
    )
    frame_size: int = Field(default=int(os.getenv("ECHOSENSE_FRAME_SIZE", "512")), gt=1)
    hop_size: int = Field(default=int(os.getenv("ECHOSENSE_HOP_SIZE", "256")), gt=0)
    pre_emphasis_alpha: float = Field(
        default=float(os.getenv("ECHOSENSE_PRE_EMPHASIS", "0.97")), ge=0.0, lt=1.0
    )
    profile_history_capacity: int = Field(
        default=int(os.getenv("ECHOSENSE_PROFILE_HISTORY", "100")), gt=0
    )
    use_fft: bool = Field(
        default=os.getenv("ECHOSENSE_USE_FFT", "false").lower() in {"1", "true", "yes"}
    )
    min_block_ratio: float = Field(
        default=float(os.getenv("ECHOSENSE_MIN_BLOCK_RATIO", "0.5")), ge=0.0
    )
    queue_size: int = Field(default=int(os.getenv("ECHOSENSE_QUEUE_SIZE", "64")), gt=0)
    log_history: int = Field(default=int(os.getenv("ECHOSENSE_LOG_HISTORY", "200")), gt=0)
    log_level: str = Field(default=os.getenv("ECHOSENSE_LOG_LEVEL", "INFO"))

    @model_validator(mode="after")
    def _check_framing(self) -> "PipelineSettings":
        if self.hop_size > self.frame_size:
            raise ValueError(
                f"hop_size ({self.hop_size}) must not exceed frame_size ({self.frame_size})"
            )
        return self


@lru_cache()
def get_settings() -> PipelineSettings:
    return PipelineSettings()
