"""Two-level demo model: a rhythm instance wired into a melody graph.

The melody graph pushes its ``density`` parameter into the rhythm instance
through ``Rhythm.density.Source`` and reads the sampled onsets back through
the ``Rhythm.onsets.Target`` parameter block.
"""

from __future__ import annotations

from concurrent.futures import Executor

import numpy as np

from concord.config.schemas import DemoPatternConfig, SamplerConfig
from concord.graph.environment import Environment
from concord.graph.factor_graph import ExpressionContext, Factor, FactorGraph, Output, ValueType
from concord.graph.factors import function_factor, table_factor
from concord.sampling.sampler import Sampler

RHYTHM = "Rhythm"
ONSETS_TARGET = f"{RHYTHM}.onsets.Target"
STABLE_DEGREES = (0, 2, 4)
ACCENT_BONUS = 1.0


def _onset_factor(line: int) -> Factor:
    accent = ACCENT_BONUS if line % 4 == 0 else 0.0

    def score(context: ExpressionContext) -> float:
        density = float(np.clip(context.float_parameters("density")[0], 1.0e-3, 1.0 - 1.0e-3))
        if context.variation[line]:
            return float(np.log(density)) + accent
        return float(np.log1p(-density))

    return Factor(variables=(line,), score_fn=score)


def build_rhythm_graph(n_lines: int) -> FactorGraph:
    factors = [_onset_factor(line) for line in range(n_lines)]
    factors += [
        function_factor((line, line + 1), lambda a, b: -0.3 * a * b) for line in range(n_lines - 1)
    ]
    return FactorGraph(
        domain_sizes=[2] * n_lines,
        factors=factors,
        float_parameters={"density": 1},
        outputs={
            "onsets": Output(ValueType.INT, n_lines, lambda context: context.variation),
        },
    )


def _stability_factor(line: int) -> Factor:
    def score(context: ExpressionContext) -> float:
        onset = context.int_parameters(ONSETS_TARGET)[line]
        return 0.5 if onset and int(context.variation[line]) in STABLE_DEGREES else 0.0

    return Factor(variables=(line,), score_fn=score)


def build_melody_graph(config: DemoPatternConfig, rhythm: Sampler) -> FactorGraph:
    n_lines = config.n_lines
    scale = np.asarray(config.scale, dtype=np.int64)
    n_degrees = scale.shape[0]
    root = config.root_note
    lines = np.arange(n_lines)

    tonic = np.full(n_degrees, -2.0)
    tonic[0] = 0.0
    factors = [table_factor((0,), tonic), table_factor((n_lines - 1,), tonic)]
    factors += [
        function_factor((line, line + 1), lambda a, b: -0.5 * abs(a - b))
        for line in range(n_lines - 1)
    ]
    factors += [_stability_factor(line) for line in range(n_lines)]

    def onsets(context: ExpressionContext) -> np.ndarray:
        return context.int_parameters(ONSETS_TARGET) > 0

    def lead_notes(context: ExpressionContext) -> np.ndarray:
        return np.where(onsets(context), root + scale[context.variation], 0)

    def bass_lines() -> np.ndarray:
        return lines % 8 == 0

    outputs = {
        f"{RHYTHM}.density.Source": Output(
            ValueType.FLOAT, 1, lambda context: context.float_parameters("density")
        ),
        "Lead.0.Note": Output(ValueType.INT, n_lines, lead_notes),
        "Lead.0.Instrument": Output(
            ValueType.INT, n_lines, lambda context: np.where(onsets(context), 1, 0)
        ),
        "Lead.0.Volume": Output(
            ValueType.INT,
            n_lines,
            lambda context: np.where(onsets(context), np.where(lines % 4 == 0, 64, 48), 0),
        ),
        "Lead.0.Delay": Output(ValueType.INT, n_lines, lambda context: np.zeros(n_lines)),
        "Bass.0.Note": Output(
            ValueType.INT, n_lines, lambda context: np.where(bass_lines(), root - 12, 0)
        ),
        "Bass.0.Instrument": Output(
            ValueType.INT, n_lines, lambda context: np.where(bass_lines(), 2, 0)
        ),
        "contour": Output(
            ValueType.FLOAT, n_lines, lambda context: scale[context.variation] / 12.0
        ),
    }
    return FactorGraph(
        domain_sizes=[n_degrees] * n_lines,
        factors=factors,
        int_parameters={ONSETS_TARGET: n_lines},
        float_parameters={"density": 1},
        outputs=outputs,
        instance_samplers={RHYTHM: rhythm},
    )


def _instance_config(config: SamplerConfig) -> SamplerConfig:
    if config.seed is None:
        return config
    return config.model_copy(update={"seed": config.seed + 1})


def build_demo_sampler(config: DemoPatternConfig, executor: Executor | None = None) -> Sampler:
    """Root sampler over the melody graph, with its density staged and applied."""

    rhythm_graph = build_rhythm_graph(config.n_lines)
    rhythm = Sampler(
        rhythm_graph,
        Environment.for_graph(rhythm_graph),
        config=_instance_config(config.sampler),
        executor=executor,
    )

    melody_graph = build_melody_graph(config, rhythm)
    environment = Environment.for_graph(melody_graph)
    density_block = melody_graph.parameter_blocks(ValueType.FLOAT)["density"]
    environment.staging_parameters_view(ValueType.FLOAT, density_block)[0] = config.density
    environment.set_mask_and_parameters_from_staging_area()
    return Sampler(melody_graph, environment, config=config.sampler, executor=executor)
