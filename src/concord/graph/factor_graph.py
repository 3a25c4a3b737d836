from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

from concord.types import FLOAT_DTYPE, INT_DTYPE, FloatArray, IntArray, Variation
from concord.utils.checks import require_length

if TYPE_CHECKING:
    from concord.graph.environment import Environment
    from concord.sampling.sampler import Sampler


class ValueType(str, Enum):
    """Element type of a parameter block or an output."""

    INT = "int"
    FLOAT = "float"

    @property
    def dtype(self) -> type[np.generic]:
        return INT_DTYPE if self is ValueType.INT else FLOAT_DTYPE


@dataclass(frozen=True)
class ParameterBlock:
    """Contiguous slice of an environment's int or float parameter storage."""

    offset: int
    size: int

    @property
    def stop(self) -> int:
        return self.offset + self.size


@dataclass(frozen=True)
class ExpressionContext:
    """Everything an expression may read: the variation and live parameters.

    ``variation`` is the sampler's own array, updated in place during sweeps.
    """

    factor_graph: FactorGraph
    environment: Environment
    variation: Variation

    def parameters(self, value_type: ValueType, name: str) -> IntArray | FloatArray:
        block = self.factor_graph.parameter_blocks(value_type)[name]
        return self.environment.parameters_view(value_type, block)

    def int_parameters(self, name: str) -> IntArray:
        return self.parameters(ValueType.INT, name)

    def float_parameters(self, name: str) -> FloatArray:
        return self.parameters(ValueType.FLOAT, name)


Expression = Callable[[ExpressionContext], npt.ArrayLike]
ScoreFunction = Callable[[ExpressionContext], float]


@dataclass(frozen=True)
class Output:
    """Named, typed, fixed-size expression over a variation and parameters."""

    value_type: ValueType
    size: int
    expression: Expression

    def __post_init__(self) -> None:
        if not isinstance(self.value_type, ValueType):
            raise TypeError(f"unsupported output value type {self.value_type!r}")
        if self.size < 0:
            raise ValueError("output size must be >= 0")

    def eval(self, context: ExpressionContext, target: np.ndarray) -> None:
        """Fill ``target`` in place; no other side effects."""

        values = np.asarray(self.expression(context)).reshape(-1)
        require_length("output values", values, self.size)
        require_length("output target", target, self.size)
        target[...] = values


@dataclass(frozen=True)
class Factor:
    """Weighted constraint over a set of variables.

    ``score_fn`` returns a log-domain satisfaction; ``-inf`` forbids the
    assignment outright.
    """

    variables: tuple[int, ...]
    score_fn: ScoreFunction
    weight: float = 1.0

    def score(self, context: ExpressionContext) -> float:
        # A zero weight disables the factor, even where it scores -inf.
        if self.weight == 0.0:
            return 0.0
        return self.weight * float(self.score_fn(context))


def _allocate_blocks(sizes: Mapping[str, int]) -> dict[str, ParameterBlock]:
    blocks: dict[str, ParameterBlock] = {}
    cursor = 0
    for name, size in sizes.items():
        if size < 0:
            raise ValueError(f"parameter block {name!r} has negative size {size}")
        blocks[name] = ParameterBlock(offset=cursor, size=int(size))
        cursor += int(size)
    return blocks


class FactorGraph:
    """Immutable factor graph over discrete random variables.

    Variables get flat indices in declaration order. Parameter blocks are laid
    out in declaration order within the int and float storages. Instance
    samplers are enumerated in insertion order.
    """

    def __init__(
        self,
        domain_sizes: Sequence[int],
        factors: Sequence[Factor] = (),
        int_parameters: Mapping[str, int] | None = None,
        float_parameters: Mapping[str, int] | None = None,
        outputs: Mapping[str, Output] | None = None,
        instance_samplers: Mapping[str, Sampler] | None = None,
    ) -> None:
        self._domain_sizes = np.array(domain_sizes, dtype=INT_DTYPE).reshape(-1)
        if np.any(self._domain_sizes < 1):
            raise ValueError("every random variable needs a domain of at least one value")
        self._domain_sizes.flags.writeable = False

        n = self.num_variables
        adjacency: list[list[Factor]] = [[] for _ in range(n)]
        for factor in factors:
            for index in sorted(set(factor.variables)):
                if not 0 <= index < n:
                    raise ValueError(f"factor references variable {index} outside [0, {n})")
                adjacency[index].append(factor)
        self._factors = tuple(factors)
        self._factors_by_variable = tuple(tuple(fs) for fs in adjacency)

        self._blocks = {
            ValueType.INT: MappingProxyType(_allocate_blocks(int_parameters or {})),
            ValueType.FLOAT: MappingProxyType(_allocate_blocks(float_parameters or {})),
        }
        self._outputs = MappingProxyType(dict(outputs or {}))
        self._instance_samplers = MappingProxyType(dict(instance_samplers or {}))

    @property
    def num_variables(self) -> int:
        return int(self._domain_sizes.shape[0])

    @property
    def domain_sizes(self) -> IntArray:
        return self._domain_sizes

    @property
    def factors(self) -> tuple[Factor, ...]:
        return self._factors

    def factors_for_variable(self, flat_index: int) -> tuple[Factor, ...]:
        return self._factors_by_variable[flat_index]

    def parameter_blocks(self, value_type: ValueType) -> Mapping[str, ParameterBlock]:
        try:
            return self._blocks[value_type]
        except KeyError:
            raise TypeError(f"unsupported parameter value type {value_type!r}") from None

    def num_parameters(self, value_type: ValueType) -> int:
        return sum(block.size for block in self.parameter_blocks(value_type).values())

    @property
    def outputs(self) -> Mapping[str, Output]:
        return self._outputs

    @property
    def instance_samplers(self) -> Mapping[str, Sampler]:
        return self._instance_samplers

    def score(self, context: ExpressionContext) -> float:
        """Total weighted score of the context's current variation."""

        return float(sum(factor.score(context) for factor in self._factors))
