from concord.utils.checks import (
    require_domain_values,
    require_finite_or_neg_inf,
    require_length,
    require_shape,
)
from concord.utils.io import ensure_dir, save_json, save_npz
from concord.utils.logging import configure_logging, log_event
from concord.utils.rng import RngStreams

__all__ = [
    "RngStreams",
    "configure_logging",
    "ensure_dir",
    "log_event",
    "require_domain_values",
    "require_finite_or_neg_inf",
    "require_length",
    "require_shape",
    "save_json",
    "save_npz",
]
