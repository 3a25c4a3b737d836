from __future__ import annotations

import pytest
from pydantic import ValidationError

from concord.config.presets import demo_pattern_config, maximize_config, sample_config
from concord.config.schemas import DemoPatternConfig, SamplerConfig, SamplingMode


def test_presets_select_modes() -> None:
    assert maximize_config().mode is SamplingMode.MAXIMIZE
    assert sample_config(seed=11).seed == 11
    assert demo_pattern_config(seed=2).sampler.seed == 2


def test_sampler_config_defaults_and_mode_from_string() -> None:
    config = SamplerConfig.model_validate({"mode": "maximize"})

    assert config.mode is SamplingMode.MAXIMIZE
    assert config.seed is None
    assert config.strict_single_flight


def test_sampler_config_is_frozen_and_strict() -> None:
    config = SamplerConfig()
    with pytest.raises(ValidationError):
        config.seed = 3  # type: ignore[misc]
    with pytest.raises(ValidationError):
        SamplerConfig.model_validate({"mode": "sample", "temperature": 2.0})
    with pytest.raises(ValidationError):
        SamplerConfig(seed=-1)


def test_demo_config_bounds() -> None:
    with pytest.raises(ValidationError):
        DemoPatternConfig(density=1.5)
    with pytest.raises(ValidationError):
        DemoPatternConfig(scale=[])
