from concord.config.presets import demo_pattern_config, maximize_config, sample_config
from concord.config.schemas import DemoPatternConfig, SamplerConfig, SamplingMode

__all__ = [
    "DemoPatternConfig",
    "SamplerConfig",
    "SamplingMode",
    "demo_pattern_config",
    "maximize_config",
    "sample_config",
]
