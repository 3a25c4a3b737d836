from concord.projection.crate import CrateData, fill_crate_with_outputs
from concord.projection.pattern import (
    Column,
    ColumnPath,
    ColumnValuesType,
    PatternData,
    Track,
    set_columns_from_outputs,
)

__all__ = [
    "Column",
    "ColumnPath",
    "ColumnValuesType",
    "CrateData",
    "PatternData",
    "Track",
    "fill_crate_with_outputs",
    "set_columns_from_outputs",
]
