from concord.graph.environment import Environment
from concord.graph.factor_graph import (
    ExpressionContext,
    Factor,
    FactorGraph,
    Output,
    ParameterBlock,
    ValueType,
)
from concord.graph.factors import function_factor, table_factor
from concord.graph.naming import (
    SOURCE_SUFFIX,
    TARGET_SUFFIX,
    is_source_name,
    source_output_name,
    target_parameter_name,
)

__all__ = [
    "SOURCE_SUFFIX",
    "TARGET_SUFFIX",
    "Environment",
    "ExpressionContext",
    "Factor",
    "FactorGraph",
    "Output",
    "ParameterBlock",
    "ValueType",
    "function_factor",
    "is_source_name",
    "source_output_name",
    "table_factor",
    "target_parameter_name",
]
