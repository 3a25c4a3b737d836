from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from concord.errors import WiringError
from concord.graph.factor_graph import FactorGraph, Output, ParameterBlock, ValueType
from concord.graph.naming import source_output_name, target_parameter_name

if TYPE_CHECKING:
    from concord.sampling.sampler import Sampler


@dataclass(frozen=True)
class SourcePort:
    """Parent output evaluated into an instance parameter block."""

    parameter_name: str
    value_type: ValueType
    block: ParameterBlock
    output: Output


@dataclass(frozen=True)
class TargetPort:
    """Instance output evaluated into a parent parameter block."""

    output_name: str
    value_type: ValueType
    output: Output
    block: ParameterBlock


@dataclass(frozen=True)
class InstanceWiring:
    name: str
    sampler: Sampler
    sources: tuple[SourcePort, ...]
    targets: tuple[TargetPort, ...]


def _require_same_size(port: str, output: Output, block: ParameterBlock) -> None:
    if output.size != block.size:
        raise WiringError(
            f"{port}: output has {output.size} values but the parameter block holds {block.size}"
        )


def _source_ports(
    parent: FactorGraph, instance_name: str, instance: FactorGraph
) -> tuple[SourcePort, ...]:
    ports: list[SourcePort] = []
    for value_type in (ValueType.INT, ValueType.FLOAT):
        for parameter_name, block in instance.parameter_blocks(value_type).items():
            output_name = source_output_name(instance_name, parameter_name)
            output = parent.outputs.get(output_name)
            if output is None:
                continue
            _require_same_size(output_name, output, block)
            ports.append(SourcePort(parameter_name, value_type, block, output))
    return tuple(ports)


def _target_ports(
    parent: FactorGraph, instance_name: str, instance: FactorGraph
) -> tuple[TargetPort, ...]:
    ports: list[TargetPort] = []
    for output_name, output in instance.outputs.items():
        parameter_name = target_parameter_name(instance_name, output_name)
        block = parent.parameter_blocks(output.value_type).get(parameter_name)
        if block is None:
            continue
        _require_same_size(parameter_name, output, block)
        ports.append(TargetPort(output_name, output.value_type, output, block))
    return tuple(ports)


def build_instance_wiring(parent: FactorGraph) -> tuple[InstanceWiring, ...]:
    """Resolve the Source/Target name convention once, in instance order.

    Ports without a counterpart on the other side are simply absent.
    """

    wiring: list[InstanceWiring] = []
    for instance_name, sampler in parent.instance_samplers.items():
        instance = sampler.factor_graph
        wiring.append(
            InstanceWiring(
                name=instance_name,
                sampler=sampler,
                sources=_source_ports(parent, instance_name, instance),
                targets=_target_ports(parent, instance_name, instance),
            )
        )
    return tuple(wiring)
