from __future__ import annotations

from collections.abc import Callable, Sequence

import numpy as np
import numpy.typing as npt

from concord.graph.factor_graph import ExpressionContext, Factor


def table_factor(
    variables: Sequence[int],
    table: npt.ArrayLike,
    weight: float = 1.0,
) -> Factor:
    """Factor scored by looking up the variables' joint value in ``table``.

    ``table`` has one axis per variable, sized to that variable's domain.
    """

    indices = tuple(int(v) for v in variables)
    scores = np.asarray(table, dtype=np.float64)
    if scores.ndim != len(indices):
        raise ValueError(f"table has {scores.ndim} axes for {len(indices)} variables")

    def score(context: ExpressionContext) -> float:
        return float(scores[tuple(context.variation[i] for i in indices)])

    return Factor(variables=indices, score_fn=score, weight=weight)


def function_factor(
    variables: Sequence[int],
    fn: Callable[..., float],
    weight: float = 1.0,
) -> Factor:
    """Factor scored by ``fn(*values)`` of the variables' current values."""

    indices = tuple(int(v) for v in variables)

    def score(context: ExpressionContext) -> float:
        return float(fn(*(int(context.variation[i]) for i in indices)))

    return Factor(variables=indices, score_fn=score, weight=weight)
