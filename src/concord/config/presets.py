from __future__ import annotations

from concord.config.schemas import DemoPatternConfig, SamplerConfig, SamplingMode


def maximize_config() -> SamplerConfig:
    """Deterministic sweeps that always take the best-scoring value."""

    return SamplerConfig(mode=SamplingMode.MAXIMIZE)


def sample_config(seed: int | None = 7) -> SamplerConfig:
    """Stochastic Gibbs sweeps with a reproducible seed."""

    return SamplerConfig(mode=SamplingMode.SAMPLE, seed=seed)


def demo_pattern_config(seed: int = 3) -> DemoPatternConfig:
    """Small melody-over-rhythm demo, quick enough for CI."""

    return DemoPatternConfig(
        n_lines=16,
        n_variations=4,
        density=0.5,
        sampler=sample_config(seed=seed),
    )
