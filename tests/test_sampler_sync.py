from __future__ import annotations

import numpy as np
import pytest

from concord.config.presets import maximize_config, sample_config
from concord.errors import UngratifiableVariableError
from concord.graph.environment import Environment
from concord.graph.factor_graph import FactorGraph
from concord.graph.factors import function_factor, table_factor
from concord.sampling.sampler import Sampler


def _chain_graph(n_variables: int, domain_size: int = 3) -> FactorGraph:
    rng = np.random.default_rng(n_variables)
    factors = [table_factor((i,), rng.normal(size=domain_size)) for i in range(n_variables)]
    factors += [
        function_factor((i, i + 1), lambda a, b: -abs(a - b), weight=0.8)
        for i in range(n_variables - 1)
    ]
    return FactorGraph(domain_sizes=[domain_size] * n_variables, factors=factors)


@pytest.mark.parametrize("n_variables", [0, 1, 7])
def test_variation_length_matches_graph_and_staging(n_variables: int) -> None:
    graph = _chain_graph(n_variables)
    env = Environment.for_graph(graph)
    sampler = Sampler(graph, env, config=sample_config(seed=2))

    score = sampler.sample_variation_sync()
    env.return_sampled_variation_to_staging_area(sampler.variation)

    assert np.isfinite(score)
    assert sampler.variation.shape == (n_variables,)
    assert env.staging_variation().shape == (n_variables,)
    np.testing.assert_array_equal(env.staging_variation(), sampler.variation)


def test_environment_size_mismatch_is_rejected() -> None:
    graph = _chain_graph(3)
    with pytest.raises(ValueError, match="variables"):
        Sampler(graph, Environment(num_variables=2))


def test_maximize_mode_is_deterministic() -> None:
    graph = _chain_graph(6, domain_size=4)
    initial = np.array([3, 0, 2, 1, 3, 0], dtype=np.int64)

    variations = []
    scores = []
    for _ in range(2):
        env = Environment.for_graph(graph, staging_variation=initial)
        sampler = Sampler(graph, env, config=maximize_config())
        scores.append(sampler.sample_variation_sync())
        variations.append(np.array(sampler.variation))

    np.testing.assert_array_equal(variations[0], variations[1])
    assert scores[0] == scores[1]


def test_maximize_picks_best_value_and_breaks_ties_low() -> None:
    graph = FactorGraph(
        domain_sizes=[4, 3],
        factors=[table_factor((0,), [0.0, 2.0, 1.0, 2.0]), table_factor((1,), [0.5, 0.5, 0.5])],
    )
    sampler = Sampler(graph, Environment.for_graph(graph), config=maximize_config())

    score = sampler.sample_variation_sync()

    np.testing.assert_array_equal(sampler.variation, [1, 0])
    assert score == pytest.approx(2.5)


def test_sweep_conditions_on_values_chosen_earlier() -> None:
    # x1 must equal x0; x0 strongly prefers 2 but starts at 0.
    graph = FactorGraph(
        domain_sizes=[3, 3],
        factors=[
            table_factor((0,), [0.0, 0.0, 20.0]),
            function_factor((0, 1), lambda a, b: 0.0 if a == b else -10.0),
        ],
    )
    env = Environment.for_graph(graph, staging_variation=[0, 0])
    sampler = Sampler(graph, env, config=maximize_config())

    sampler.sample_variation_sync()

    np.testing.assert_array_equal(sampler.variation, [2, 2])


def test_masked_variables_keep_their_value() -> None:
    graph = FactorGraph(
        domain_sizes=[3, 3],
        factors=[table_factor((0,), [0.0, 0.0, 9.0]), table_factor((1,), [0.0, 0.0, 9.0])],
    )
    env = Environment.for_graph(graph, staging_variation=[1, 1])
    env.staging_mask[0] = False
    env.set_mask_and_parameters_from_staging_area()
    sampler = Sampler(graph, env, config=maximize_config())

    sampler.sample_variation_sync()

    np.testing.assert_array_equal(sampler.variation, [1, 2])


def test_variation_view_is_read_only() -> None:
    graph = _chain_graph(2)
    sampler = Sampler(graph, Environment.for_graph(graph))

    with pytest.raises(ValueError):
        sampler.variation[0] = 1


def test_sample_mode_matches_single_variable_distribution() -> None:
    probs = np.array([1.0, 2.0, 3.0]) / 6.0
    graph = FactorGraph(domain_sizes=[3], factors=[table_factor((0,), np.log(probs))])
    sampler = Sampler(graph, Environment.for_graph(graph), config=sample_config(seed=1234))

    n_draws = 6_000
    counts = np.zeros(3)
    for _ in range(n_draws):
        sampler.sample_variation_sync()
        counts[int(sampler.variation[0])] += 1

    np.testing.assert_allclose(counts / n_draws, probs, atol=0.03)


def test_marginals_cover_every_variable_and_sum_to_one() -> None:
    graph = _chain_graph(5, domain_size=4)
    env = Environment.for_graph(graph)
    env.staging_mask[3] = False
    env.set_mask_and_parameters_from_staging_area()
    sampler = Sampler(graph, env, config=sample_config(seed=9))

    score, marginals = sampler.sample_variation_and_infer_marginals_sync()

    assert np.isfinite(score)
    assert len(marginals) == 5
    for distribution in marginals:
        assert distribution.shape == (4,)
        assert abs(float(np.sum(distribution)) - 1.0) < 1.0e-12


def test_masked_variable_without_finite_score_reports_its_current_value() -> None:
    graph = FactorGraph(
        domain_sizes=[2, 2],
        factors=[table_factor((0,), [0.0, 1.0]), table_factor((1,), [-np.inf, -np.inf])],
    )
    env = Environment.for_graph(graph, staging_variation=[0, 1])
    env.staging_mask[1] = False
    env.set_mask_and_parameters_from_staging_area()
    sampler = Sampler(graph, env, config=maximize_config())

    assert sampler.sample_variation_sync() == -np.inf
    score, marginals = sampler.sample_variation_and_infer_marginals_sync()

    assert score == -np.inf
    np.testing.assert_array_equal(sampler.variation, [1, 1])
    np.testing.assert_allclose(marginals[0], [1.0 / (1.0 + np.e), np.e / (1.0 + np.e)])
    np.testing.assert_array_equal(marginals[1], [0.0, 1.0])

    env.staging_mask[1] = True
    env.set_mask_and_parameters_from_staging_area()
    with pytest.raises(UngratifiableVariableError) as excinfo:
        sampler.sample_variation_and_infer_marginals_sync()

    assert excinfo.value.flat_index == 1
