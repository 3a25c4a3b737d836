"""Name conventions that wire instance graphs to their parent.

A parent output ``<instance>.<parameter>.Source`` feeds the instance's
parameter block ``<parameter>``. An instance output ``<output>`` feeds the
parent's parameter block ``<instance>.<output>.Target``.
"""

from __future__ import annotations

SOURCE_SUFFIX = ".Source"
TARGET_SUFFIX = ".Target"


def source_output_name(instance_name: str, parameter_name: str) -> str:
    return f"{instance_name}.{parameter_name}{SOURCE_SUFFIX}"


def target_parameter_name(instance_name: str, output_name: str) -> str:
    return f"{instance_name}.{output_name}{TARGET_SUFFIX}"


def is_source_name(name: str) -> bool:
    return name.endswith(SOURCE_SUFFIX)
