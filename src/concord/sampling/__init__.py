from concord.sampling.conditional import SamplingUtils, softmax_into
from concord.sampling.sampler import Sampler
from concord.sampling.strategy import (
    MaximizeStrategy,
    SampleStrategy,
    SelectionStrategy,
    make_strategy,
)
from concord.sampling.task import PendingScore, shared_executor
from concord.sampling.wiring import InstanceWiring, SourcePort, TargetPort, build_instance_wiring

__all__ = [
    "InstanceWiring",
    "MaximizeStrategy",
    "PendingScore",
    "SampleStrategy",
    "Sampler",
    "SamplingUtils",
    "SelectionStrategy",
    "SourcePort",
    "TargetPort",
    "build_instance_wiring",
    "make_strategy",
    "shared_executor",
    "softmax_into",
]
