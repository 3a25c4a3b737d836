from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterator
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

import numpy as np
import pytest

from concord.config.schemas import SamplerConfig, SamplingMode
from concord.errors import ConcurrentSamplingViolation
from concord.graph.environment import Environment
from concord.graph.factor_graph import ExpressionContext, Factor, FactorGraph
from concord.sampling.sampler import Sampler


class _CountingExecutor(ThreadPoolExecutor):
    def __init__(self) -> None:
        super().__init__(max_workers=2)
        self.submitted = 0

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future[Any]:
        self.submitted += 1
        return super().submit(fn, *args, **kwargs)


@pytest.fixture
def executor() -> Iterator[_CountingExecutor]:
    pool = _CountingExecutor()
    yield pool
    pool.shutdown(wait=True)


def _gated_sampler(
    gate: threading.Event,
    executor: _CountingExecutor,
    strict: bool = True,
) -> Sampler:
    def score(context: ExpressionContext) -> float:
        if not gate.wait(timeout=10.0):
            raise TimeoutError("gate never opened")
        return float(context.variation[0])

    graph = FactorGraph(domain_sizes=[3], factors=[Factor(variables=(0,), score_fn=score)])
    config = SamplerConfig(mode=SamplingMode.MAXIMIZE, strict_single_flight=strict)
    return Sampler(graph, Environment.for_graph(graph), config=config, executor=executor)


def _poll_until_done(sampler: Sampler, timeout: float = 10.0) -> float:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        score = sampler.get_score_if_done_sampling()
        if score is not None:
            return score
        time.sleep(0.001)
    raise AssertionError("asynchronous sampling did not finish")


def test_polling_before_completion_has_no_side_effects(executor: _CountingExecutor) -> None:
    gate = threading.Event()
    sampler = _gated_sampler(gate, executor)

    sampler.sample_variation_async()
    for _ in range(5):
        assert sampler.get_score_if_done_sampling() is None
        assert sampler.is_sampling_variation()

    gate.set()
    score = _poll_until_done(sampler)

    assert score == 2.0
    np.testing.assert_array_equal(sampler.variation, [2])
    assert not sampler.is_sampling_variation()
    assert sampler.get_score_if_done_sampling() is None


def test_second_async_call_does_not_start_another_operation(
    executor: _CountingExecutor,
) -> None:
    gate = threading.Event()
    sampler = _gated_sampler(gate, executor)

    sampler.sample_variation_async()
    with pytest.raises(ConcurrentSamplingViolation):
        sampler.sample_variation_async()
    with pytest.raises(ConcurrentSamplingViolation):
        sampler.sample_variation_sync()
    with pytest.raises(ConcurrentSamplingViolation):
        sampler.sample_variation_and_infer_marginals_sync()
    with pytest.raises(ConcurrentSamplingViolation):
        sampler.conditional_probabilities()

    gate.set()
    assert _poll_until_done(sampler) == 2.0
    assert executor.submitted == 1


def test_lenient_single_flight_ignores_the_call(
    executor: _CountingExecutor, caplog: pytest.LogCaptureFixture
) -> None:
    gate = threading.Event()
    sampler = _gated_sampler(gate, executor, strict=False)

    sampler.sample_variation_async()
    sampler.sample_variation_async()
    assert sampler.sample_variation_sync() == 0.0
    assert sampler.sample_variation_and_infer_marginals_sync() == (0.0, [])
    assert sampler.conditional_probabilities() == []

    gate.set()
    assert _poll_until_done(sampler) == 2.0
    assert executor.submitted == 1
    assert "concurrent_sampling_ignored" in caplog.text


def test_async_sampling_can_run_again_after_retrieval(executor: _CountingExecutor) -> None:
    gate = threading.Event()
    gate.set()
    sampler = _gated_sampler(gate, executor)

    sampler.sample_variation_async()
    first = _poll_until_done(sampler)
    sampler.sample_variation_async()
    second = _poll_until_done(sampler)

    assert first == second == 2.0
    assert executor.submitted == 2


def test_worker_failure_surfaces_once_on_poll(executor: _CountingExecutor) -> None:
    def boom(context: ExpressionContext) -> float:
        raise RuntimeError("broken factor")

    graph = FactorGraph(domain_sizes=[2], factors=[Factor(variables=(0,), score_fn=boom)])
    sampler = Sampler(graph, Environment.for_graph(graph), executor=executor)

    sampler.sample_variation_async()
    deadline = time.monotonic() + 10.0
    with pytest.raises(RuntimeError, match="broken factor"):
        while time.monotonic() < deadline:
            sampler.get_score_if_done_sampling()
            time.sleep(0.001)

    assert not sampler.is_sampling_variation()


def test_default_shared_executor_is_used_without_injection() -> None:
    graph = FactorGraph(domain_sizes=[2])
    sampler = Sampler(graph, Environment.for_graph(graph))

    sampler.sample_variation_async()

    assert _poll_until_done(sampler) == 0.0
