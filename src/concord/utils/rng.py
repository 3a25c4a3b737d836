from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass
class RngStreams:
    """Deterministic random stream for one sampler.

    ``seed=None`` draws fresh OS entropy.
    """

    seed: int | None = None

    def __post_init__(self) -> None:
        if self.seed is not None and self.seed < 0:
            raise ValueError("seed must be non-negative")
        self._np_rng = np.random.default_rng(self.seed)

    @property
    def numpy(self) -> np.random.Generator:
        return self._np_rng

