from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np

from concord.graph.factor_graph import ExpressionContext, FactorGraph, ValueType
from concord.graph.naming import is_source_name
from concord.types import FloatArray, IntArray


@dataclass
class CrateData:
    """Named output blocks, split by element type."""

    int_blocks: dict[str, IntArray] = field(default_factory=dict)
    float_blocks: dict[str, FloatArray] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {
            "int_blocks": {name: values.tolist() for name, values in self.int_blocks.items()},
            "float_blocks": {name: values.tolist() for name, values in self.float_blocks.items()},
        }


def fill_crate_with_outputs(
    factor_graph: FactorGraph,
    context: ExpressionContext,
    crate: CrateData,
) -> None:
    """Replace the crate's contents with every non-Source output, freshly allocated."""

    crate.int_blocks.clear()
    crate.float_blocks.clear()
    for name, output in factor_graph.outputs.items():
        if is_source_name(name):
            continue
        blocks: dict[str, np.ndarray]
        if output.value_type is ValueType.INT:
            blocks = crate.int_blocks
        elif output.value_type is ValueType.FLOAT:
            blocks = crate.float_blocks
        else:
            raise TypeError(f"output {name!r} has unsupported value type {output.value_type!r}")
        values = np.empty(output.size, dtype=output.value_type.dtype)
        output.eval(context, values)
        blocks[name] = values
