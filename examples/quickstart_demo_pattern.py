from __future__ import annotations

from concord.config.presets import demo_pattern_config
from concord.experiments.demo_graph import build_demo_sampler
from concord.projection.pattern import PatternData

if __name__ == "__main__":
    sampler = build_demo_sampler(demo_pattern_config(seed=0))
    score = sampler.sample_variation_sync()
    sampler.environment.return_sampled_variation_to_staging_area(sampler.variation)

    pattern = PatternData()
    sampler.set_columns_from_outputs(pattern)

    print("Demo pattern sampled")
    print(f"Score: {score:.4f}")
    for name, track in pattern.tracks.items():
        print(f"{name}: {track.columns[0].note_values.tolist()}")
