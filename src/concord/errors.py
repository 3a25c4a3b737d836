from __future__ import annotations


class ConcordError(Exception):
    """Base class for sampler engine errors."""


class ConcurrentSamplingViolation(ConcordError):
    """A sampling operation was started while another one was in flight."""


class UngratifiableVariableError(ConcordError):
    """No value in a variable's domain has a finite score."""

    def __init__(self, flat_index: int) -> None:
        super().__init__(f"random variable {flat_index} has no value with a finite score")
        self.flat_index = flat_index


class WiringError(ConcordError):
    """A Source or Target port matched by name but cannot carry the data."""
