from __future__ import annotations

import numpy as np
import numpy.typing as npt

from concord.graph.factor_graph import FactorGraph, ParameterBlock, ValueType
from concord.types import FLOAT_DTYPE, INT_DTYPE, BoolArray, FloatArray, IntArray, Variation
from concord.utils.checks import require_length


class Environment:
    """Mutable state of one graph instance, shared with any other consumer.

    The staging area (variation, mask, parameters) is the source of truth
    outside sampling. The live mask and parameters are what a sweep and the
    expressions actually read; they are refreshed from the staging area by
    :meth:`set_mask_and_parameters_from_staging_area`.
    """

    def __init__(
        self,
        num_variables: int,
        num_int_parameters: int = 0,
        num_float_parameters: int = 0,
    ) -> None:
        if num_variables < 0:
            raise ValueError("num_variables must be >= 0")
        self._staging_variation = np.zeros(num_variables, dtype=INT_DTYPE)
        self._staging_mask = np.ones(num_variables, dtype=np.bool_)
        self._mask = np.ones(num_variables, dtype=np.bool_)
        self._staging_parameters = {
            ValueType.INT: np.zeros(num_int_parameters, dtype=INT_DTYPE),
            ValueType.FLOAT: np.zeros(num_float_parameters, dtype=FLOAT_DTYPE),
        }
        self._parameters = {
            ValueType.INT: np.zeros(num_int_parameters, dtype=INT_DTYPE),
            ValueType.FLOAT: np.zeros(num_float_parameters, dtype=FLOAT_DTYPE),
        }

    @classmethod
    def for_graph(
        cls,
        factor_graph: FactorGraph,
        staging_variation: npt.ArrayLike | None = None,
    ) -> Environment:
        """Allocate storage sized to ``factor_graph``."""

        environment = cls(
            num_variables=factor_graph.num_variables,
            num_int_parameters=factor_graph.num_parameters(ValueType.INT),
            num_float_parameters=factor_graph.num_parameters(ValueType.FLOAT),
        )
        if staging_variation is not None:
            environment.return_sampled_variation_to_staging_area(staging_variation)
        return environment

    @property
    def num_variables(self) -> int:
        return int(self._staging_variation.shape[0])

    def num_parameters(self, value_type: ValueType) -> int:
        return int(self._storage(self._parameters, value_type).shape[0])

    def staging_variation(self) -> Variation:
        return self._staging_variation.copy()

    def return_sampled_variation_to_staging_area(self, variation: npt.ArrayLike) -> None:
        values = np.asarray(variation, dtype=INT_DTYPE)
        require_length("variation", values, self.num_variables)
        self._staging_variation[...] = values

    @property
    def staging_mask(self) -> BoolArray:
        """Writable: ``False`` freezes a variable during the next sweeps."""

        return self._staging_mask

    @property
    def mask(self) -> BoolArray:
        view = self._mask.view()
        view.flags.writeable = False
        return view

    def set_mask_and_parameters_from_staging_area(self) -> None:
        self._mask[...] = self._staging_mask
        for value_type, staged in self._staging_parameters.items():
            self._parameters[value_type][...] = staged

    def parameters_view(
        self, value_type: ValueType, block: ParameterBlock
    ) -> IntArray | FloatArray:
        """Writable view of one live parameter block."""

        return self._view(self._parameters, value_type, block)

    def staging_parameters_view(
        self, value_type: ValueType, block: ParameterBlock
    ) -> IntArray | FloatArray:
        return self._view(self._staging_parameters, value_type, block)

    @staticmethod
    def _storage(storages: dict[ValueType, np.ndarray], value_type: ValueType) -> np.ndarray:
        try:
            return storages[value_type]
        except KeyError:
            raise TypeError(f"unsupported parameter value type {value_type!r}") from None

    def _view(
        self,
        storages: dict[ValueType, np.ndarray],
        value_type: ValueType,
        block: ParameterBlock,
    ) -> np.ndarray:
        storage = self._storage(storages, value_type)
        if block.stop > storage.shape[0]:
            raise ValueError(
                f"parameter block [{block.offset}, {block.stop}) exceeds "
                f"{value_type.value} storage of size {storage.shape[0]}"
            )
        return storage[block.offset : block.stop]
