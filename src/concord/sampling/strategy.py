from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import numpy as np

from concord.config.schemas import SamplingMode
from concord.types import FloatArray


class SelectionStrategy(Protocol):
    """Picks one value of a variable from its conditional scores."""

    mode: SamplingMode

    def select(self, scores: FloatArray, distribution: FloatArray) -> int:
        """Return the chosen value; ``distribution`` is the softmax of ``scores``."""


@dataclass(frozen=True)
class MaximizeStrategy:
    """Deterministic: highest score, lowest value on ties."""

    mode: SamplingMode = SamplingMode.MAXIMIZE

    def select(self, scores: FloatArray, distribution: FloatArray) -> int:
        return int(np.argmax(scores))


@dataclass(frozen=True)
class SampleStrategy:
    """Draw from the conditional distribution."""

    rng: np.random.Generator
    mode: SamplingMode = SamplingMode.SAMPLE

    def select(self, scores: FloatArray, distribution: FloatArray) -> int:
        return int(self.rng.choice(distribution.shape[0], p=distribution))


def make_strategy(mode: SamplingMode, rng: np.random.Generator) -> SelectionStrategy:
    if mode is SamplingMode.MAXIMIZE:
        return MaximizeStrategy()
    if mode is SamplingMode.SAMPLE:
        return SampleStrategy(rng=rng)
    raise ValueError(f"unknown sampling mode {mode!r}")
