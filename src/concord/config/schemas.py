from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SamplingMode(str, Enum):
    """How a sweep picks a value from a variable's conditional distribution."""

    MAXIMIZE = "maximize"
    SAMPLE = "sample"


class SamplerConfig(BaseModel):
    """Per-sampler settings, fixed for the sampler's lifetime."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    mode: SamplingMode = SamplingMode.SAMPLE
    seed: int | None = Field(default=None, ge=0)
    strict_single_flight: bool = True


class DemoPatternConfig(BaseModel):
    """Demo melody/rhythm model used by the experiment script."""

    model_config = ConfigDict(extra="forbid")

    n_lines: int = Field(default=16, ge=1)
    n_variations: int = Field(default=4, ge=1)
    scale: list[int] = Field(default_factory=lambda: [0, 2, 4, 5, 7, 9, 11], min_length=1)
    root_note: int = Field(default=60, ge=0, le=119)
    density: float = Field(default=0.5, ge=0.0, le=1.0)
    sampler: SamplerConfig = Field(default_factory=SamplerConfig)
