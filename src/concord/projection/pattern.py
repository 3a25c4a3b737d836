from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np

from concord.graph.factor_graph import ExpressionContext, FactorGraph, Output, ValueType
from concord.graph.naming import is_source_name
from concord.types import INT_DTYPE, IntArray


# Impulse Tracker modules have at most 64 channels.
MAX_COLUMN_COUNT = 64


class ColumnValuesType(str, Enum):
    NOTE = "Note"
    INSTRUMENT = "Instrument"
    VOLUME = "Volume"
    DELAY = "Delay"


@dataclass(frozen=True)
class ColumnPath:
    """Output name of the form ``<track>.<column>.<Note|Instrument|Volume|Delay>``.

    Column indices at or above ``MAX_COLUMN_COUNT`` do not parse.
    """

    track_name: str
    column_index: int
    values_type: ColumnValuesType

    @classmethod
    def parse(cls, name: str) -> ColumnPath | None:
        parts = name.split(".")
        if len(parts) != 3:
            return None
        track_name, column, kind = parts
        if not track_name or not column.isascii() or not column.isdigit():
            return None
        column_index = int(column)
        if column_index >= MAX_COLUMN_COUNT:
            return None
        try:
            values_type = ColumnValuesType(kind)
        except ValueError:
            return None
        return cls(track_name=track_name, column_index=column_index, values_type=values_type)


def _empty_values() -> IntArray:
    return np.zeros(0, dtype=INT_DTYPE)


@dataclass
class Column:
    note_values: IntArray = field(default_factory=_empty_values)
    instrument_values: IntArray = field(default_factory=_empty_values)
    volume_values: IntArray = field(default_factory=_empty_values)
    delay_values: IntArray = field(default_factory=_empty_values)

    def values(self, values_type: ColumnValuesType) -> IntArray:
        return getattr(self, _ATTRIBUTES[values_type])

    def set_values(self, values_type: ColumnValuesType, values: IntArray) -> None:
        setattr(self, _ATTRIBUTES[values_type], values)

    def to_payload(self) -> dict[str, list[int]]:
        return {kind.value: self.values(kind).tolist() for kind in ColumnValuesType}


_ATTRIBUTES = {
    ColumnValuesType.NOTE: "note_values",
    ColumnValuesType.INSTRUMENT: "instrument_values",
    ColumnValuesType.VOLUME: "volume_values",
    ColumnValuesType.DELAY: "delay_values",
}


@dataclass
class Track:
    columns: list[Column] = field(default_factory=list)


@dataclass
class PatternData:
    """Tracker-style grid: tracks by name, each a list of typed columns."""

    tracks: dict[str, Track] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {
            name: [column.to_payload() for column in track.columns]
            for name, track in self.tracks.items()
        }


def _eval_reusing(
    output: Output, context: ExpressionContext, previous: IntArray | None
) -> IntArray:
    if previous is not None and previous.shape == (output.size,):
        target = previous
    else:
        target = np.empty(output.size, dtype=INT_DTYPE)
    output.eval(context, target)
    return target


def set_columns_from_outputs(
    factor_graph: FactorGraph,
    context: ExpressionContext,
    pattern: PatternData,
) -> None:
    """Rebuild ``pattern.tracks`` from the graph's integer column outputs.

    Arrays already held by ``pattern`` for the same (track, column, kind) are
    refilled in place; paths that are no longer produced disappear. Output
    names that do not parse as column paths are skipped.
    """

    previous_tracks = pattern.tracks
    pattern.tracks = {}
    for name, output in factor_graph.outputs.items():
        if output.value_type is ValueType.FLOAT or is_source_name(name):
            continue
        path = ColumnPath.parse(name)
        if path is None:
            continue

        track = pattern.tracks.setdefault(path.track_name, Track())
        while len(track.columns) <= path.column_index:
            track.columns.append(Column())

        previous_track = previous_tracks.get(path.track_name)
        previous: IntArray | None = None
        if previous_track is not None and path.column_index < len(previous_track.columns):
            previous = previous_track.columns[path.column_index].values(path.values_type)

        values = _eval_reusing(output, context, previous)
        track.columns[path.column_index].set_values(path.values_type, values)
