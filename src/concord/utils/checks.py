from __future__ import annotations

import numpy as np


def require_shape(name: str, array: np.ndarray, expected: tuple[int, ...]) -> None:
    """Raise a clear error if an array shape differs from expectations."""

    if array.shape != expected:
        raise ValueError(f"{name} shape mismatch: expected {expected}, received {array.shape}")


def require_length(name: str, array: np.ndarray, expected: int) -> None:
    """Variations, masks and parameter blocks are rank-1 with a fixed length."""

    require_shape(name, array, (expected,))


def require_finite_or_neg_inf(name: str, array: np.ndarray) -> None:
    """Scores may be ``-inf`` (hard constraint) but never NaN or ``+inf``."""

    if np.any(np.isnan(array)) or np.any(np.isposinf(array)):
        raise ValueError(f"{name} contains NaN or +Inf values")


def require_domain_values(name: str, variation: np.ndarray, domain_sizes: np.ndarray) -> None:
    """Ensure every value lies inside ``[0, domain_size)`` of its variable."""

    if np.any(variation < 0) or np.any(variation >= domain_sizes):
        raise ValueError(f"{name} contains values outside the variable domains")
