from __future__ import annotations

import logging
from concurrent.futures import Executor

import numpy as np

from concord.config.schemas import SamplerConfig, SamplingMode
from concord.errors import ConcurrentSamplingViolation
from concord.graph.environment import Environment
from concord.graph.factor_graph import ExpressionContext, FactorGraph, ValueType
from concord.projection.crate import CrateData, fill_crate_with_outputs
from concord.projection.pattern import PatternData, set_columns_from_outputs
from concord.sampling.conditional import SamplingUtils
from concord.sampling.strategy import make_strategy
from concord.sampling.task import PendingScore, shared_executor
from concord.sampling.wiring import InstanceWiring, build_instance_wiring
from concord.types import FLOAT_DTYPE, INT_DTYPE, Marginals, Variation
from concord.utils.checks import require_domain_values
from concord.utils.logging import log_event
from concord.utils.rng import RngStreams

logger = logging.getLogger(__name__)


class Sampler:
    """Produces variations of one factor graph and of all its nested instances.

    The sampler keeps its own copy of the variation. It reads it from the
    environment's staging area with :meth:`get_variation_from_environment`;
    callers hand the result back with
    ``environment.return_sampled_variation_to_staging_area(sampler.variation)``.
    Instance samplers are refreshed and written back automatically.

    At most one sampling operation may run at a time. Calls are not
    serialized internally; starting a second one raises
    :class:`ConcurrentSamplingViolation` (or is logged and ignored when
    ``config.strict_single_flight`` is off).
    """

    def __init__(
        self,
        factor_graph: FactorGraph,
        environment: Environment,
        config: SamplerConfig | None = None,
        executor: Executor | None = None,
    ) -> None:
        if environment.num_variables != factor_graph.num_variables:
            raise ValueError(
                f"environment holds {environment.num_variables} variables, "
                f"factor graph declares {factor_graph.num_variables}"
            )
        for value_type in (ValueType.INT, ValueType.FLOAT):
            if environment.num_parameters(value_type) < factor_graph.num_parameters(value_type):
                raise ValueError(f"environment {value_type.value} parameter storage is too small")

        self._config = config if config is not None else SamplerConfig()
        self._factor_graph = factor_graph
        self._environment = environment
        self._executor = executor
        self._strategy = make_strategy(self._config.mode, RngStreams(self._config.seed).numpy)

        self._variation: Variation = np.zeros(factor_graph.num_variables, dtype=INT_DTYPE)
        self._context = ExpressionContext(factor_graph, environment, self._variation)
        self._sampling_utils = SamplingUtils(factor_graph, self._context)
        self._instance_wiring: tuple[InstanceWiring, ...] = build_instance_wiring(factor_graph)
        self._pending: PendingScore | None = None

        self.get_variation_from_environment()

    @property
    def factor_graph(self) -> FactorGraph:
        return self._factor_graph

    @property
    def environment(self) -> Environment:
        return self._environment

    @property
    def config(self) -> SamplerConfig:
        return self._config

    @property
    def mode(self) -> SamplingMode:
        return self._config.mode

    @property
    def variation(self) -> Variation:
        """Read-only view of the current variation."""

        view = self._variation.view()
        view.flags.writeable = False
        return view

    @property
    def expression_context(self) -> ExpressionContext:
        return self._context

    def get_variation_from_environment(self) -> None:
        staged = self._environment.staging_variation()
        require_domain_values("staging variation", staged, self._factor_graph.domain_sizes)
        self._variation[...] = staged

    def sample_variation_sync(self) -> float:
        """Sample all instances, then sweep this graph. Returns the variation's score."""

        if self._reject_concurrent("sample_variation_sync"):
            return 0.0
        self._run_instance_samplers()
        return self._sample_variation()

    def sample_variation_async(self) -> None:
        """Run :meth:`sample_variation_sync`'s work on a worker thread.

        Poll :meth:`get_score_if_done_sampling` for the result.
        """

        if self._reject_concurrent("sample_variation_async"):
            return
        executor = self._executor if self._executor is not None else shared_executor()
        self._pending = PendingScore.submit(executor, self._run_instances_and_sample)
        log_event(logger, "async_sampling_started", level=logging.DEBUG, mode=self.mode.value)

    def is_sampling_variation(self) -> bool:
        return self._pending is not None

    def get_score_if_done_sampling(self) -> float | None:
        """Non-blocking poll; a finished result is returned exactly once."""

        pending = self._pending
        if pending is None or not pending.is_ready():
            return None
        self._pending = None
        return pending.take()

    def sample_variation_and_infer_marginals_sync(self) -> tuple[float, Marginals]:
        """Like :meth:`sample_variation_sync`, also returning each variable's
        conditional distribution as used during the sweep.
        """

        if self._reject_concurrent("sample_variation_and_infer_marginals_sync"):
            return 0.0, []
        n_variables = self._variation.shape[0]
        marginals: Marginals = [np.zeros(0, dtype=FLOAT_DTYPE) for _ in range(n_variables)]
        self._run_instance_samplers()
        score = self._sample_variation(marginals)
        return score, marginals

    def conditional_probabilities(self) -> Marginals:
        """Conditional distribution of every variable given the current variation."""

        if self._reject_concurrent("conditional_probabilities"):
            return []
        return [
            self._sampling_utils.conditional_distribution(flat_index)
            for flat_index in range(self._variation.shape[0])
        ]

    def set_columns_from_outputs(self, pattern: PatternData) -> None:
        set_columns_from_outputs(self._factor_graph, self._context, pattern)

    def fill_crate_with_outputs(self, crate: CrateData) -> None:
        fill_crate_with_outputs(self._factor_graph, self._context, crate)

    def _reject_concurrent(self, operation: str) -> bool:
        if not self.is_sampling_variation():
            return False
        message = f"{operation} called while an asynchronous sampling was in progress"
        if self._config.strict_single_flight:
            raise ConcurrentSamplingViolation(message)
        log_event(logger, "concurrent_sampling_ignored", level=logging.ERROR, operation=operation)
        return True

    def _run_instances_and_sample(self) -> float:
        self._run_instance_samplers()
        return self._sample_variation()

    def _run_instance_samplers(self) -> None:
        for wiring in self._instance_wiring:
            instance = wiring.sampler
            instance_environment = instance.environment
            instance_environment.set_mask_and_parameters_from_staging_area()
            instance.get_variation_from_environment()

            for source in wiring.sources:
                target = instance_environment.parameters_view(source.value_type, source.block)
                source.output.eval(self._context, target)

            instance.sample_variation_sync()
            instance_environment.return_sampled_variation_to_staging_area(instance.variation)

            for port in wiring.targets:
                target = self._environment.parameters_view(port.value_type, port.block)
                port.output.eval(instance.expression_context, target)

            log_event(
                logger,
                "instance_sampled",
                level=logging.DEBUG,
                instance=wiring.name,
                sources=len(wiring.sources),
                targets=len(wiring.targets),
            )

    def _sample_variation(self, marginals: Marginals | None = None) -> float:
        self._sampling_utils.sweep(self._strategy, self._environment.mask, marginals)
        score = self._factor_graph.score(self._context)
        log_event(
            logger,
            "variation_sampled",
            level=logging.DEBUG,
            mode=self.mode.value,
            variables=int(self._variation.shape[0]),
            score=score,
        )
        return score
