from __future__ import annotations

import numpy as np

from concord.errors import UngratifiableVariableError
from concord.graph.factor_graph import ExpressionContext, FactorGraph
from concord.sampling.strategy import SelectionStrategy
from concord.types import FLOAT_DTYPE, BoolArray, FloatArray, Marginals
from concord.utils.checks import require_finite_or_neg_inf, require_length


def softmax_into(scores: FloatArray, out: FloatArray, flat_index: int) -> None:
    """Normalized exponential of ``scores`` written into ``out``.

    Raises :class:`UngratifiableVariableError` when no score is finite.
    """

    require_finite_or_neg_inf(f"scores of random variable {flat_index}", scores)
    peak = np.max(scores) if scores.shape[0] else -np.inf
    if not np.isfinite(peak):
        raise UngratifiableVariableError(flat_index)
    np.subtract(scores, peak, out=out)
    np.exp(out, out=out)
    out /= np.sum(out)


class SamplingUtils:
    """Gibbs-style single-variable updates over one factor graph.

    Scores of a variable's values only involve the factors touching it; every
    other variable is held at its current value in ``context.variation``.
    """

    def __init__(self, factor_graph: FactorGraph, context: ExpressionContext) -> None:
        self._factor_graph = factor_graph
        self._context = context
        self._scratch: dict[int, FloatArray] = {}

    def scratch_scores(self, flat_index: int) -> FloatArray:
        """Reusable score buffer sized to the variable's domain."""

        domain_size = int(self._factor_graph.domain_sizes[flat_index])
        buffer = self._scratch.get(domain_size)
        if buffer is None:
            buffer = np.empty(domain_size, dtype=FLOAT_DTYPE)
            self._scratch[domain_size] = buffer
        return buffer

    def compute_conditional_scores(self, flat_index: int, out_scores: FloatArray) -> None:
        domain_size = int(self._factor_graph.domain_sizes[flat_index])
        require_length("conditional scores", out_scores, domain_size)

        variation = self._context.variation
        factors = self._factor_graph.factors_for_variable(flat_index)
        current = variation[flat_index]
        try:
            for value in range(domain_size):
                variation[flat_index] = value
                out_scores[value] = sum(factor.score(self._context) for factor in factors)
        finally:
            variation[flat_index] = current

    def compute_conditional_distribution(
        self,
        flat_index: int,
        scratch_scores: FloatArray,
        out_distribution: FloatArray,
    ) -> None:
        """Fill ``out_distribution`` with ``p(x_i = k | x_-i)`` for every value ``k``."""

        self.compute_conditional_scores(flat_index, scratch_scores)
        require_length("conditional distribution", out_distribution, scratch_scores.shape[0])
        softmax_into(scratch_scores, out_distribution, flat_index)

    def conditional_distribution(self, flat_index: int) -> FloatArray:
        scores = self.scratch_scores(flat_index)
        distribution = np.empty_like(scores)
        self.compute_conditional_distribution(flat_index, scores, distribution)
        return distribution

    def sweep(
        self,
        strategy: SelectionStrategy,
        mask: BoolArray,
        marginals: Marginals | None = None,
    ) -> None:
        """Resample every unmasked variable in flat-index order.

        Each choice is written back immediately, so later variables are
        conditioned on the values chosen earlier in the same sweep. When
        ``marginals`` is given, slot ``i`` receives the distribution that
        variable ``i`` was drawn from (masked-out variables included). A
        masked-out variable never raises :class:`UngratifiableVariableError`.
        """

        variation = self._context.variation
        for flat_index in range(self._factor_graph.num_variables):
            if not mask[flat_index] and marginals is None:
                continue
            scores = self.scratch_scores(flat_index)
            distribution = np.empty_like(scores)
            if mask[flat_index]:
                self.compute_conditional_distribution(flat_index, scores, distribution)
                variation[flat_index] = strategy.select(scores, distribution)
            else:
                self._frozen_distribution(flat_index, scores, distribution)
            if marginals is not None:
                marginals[flat_index] = distribution

    def _frozen_distribution(
        self, flat_index: int, scratch_scores: FloatArray, out_distribution: FloatArray
    ) -> None:
        """Distribution reported for a masked-out variable.

        Falls back to a one-hot on the current value when no value has a
        finite score, since the variable is not resampled.
        """

        self.compute_conditional_scores(flat_index, scratch_scores)
        require_finite_or_neg_inf(f"scores of random variable {flat_index}", scratch_scores)
        if np.any(np.isfinite(scratch_scores)):
            softmax_into(scratch_scores, out_distribution, flat_index)
            return
        out_distribution[...] = 0.0
        out_distribution[self._context.variation[flat_index]] = 1.0
