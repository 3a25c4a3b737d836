"""Factor-graph sampler for generating tracker pattern variations."""

from concord.config.schemas import SamplerConfig, SamplingMode
from concord.errors import (
    ConcordError,
    ConcurrentSamplingViolation,
    UngratifiableVariableError,
    WiringError,
)
from concord.graph import Environment, FactorGraph, Output, ValueType
from concord.projection import CrateData, PatternData
from concord.sampling import Sampler

__all__ = [
    "ConcordError",
    "ConcurrentSamplingViolation",
    "CrateData",
    "Environment",
    "FactorGraph",
    "Output",
    "PatternData",
    "Sampler",
    "SamplerConfig",
    "SamplingMode",
    "UngratifiableVariableError",
    "ValueType",
    "WiringError",
]
