"""Compute layer: packaging variants and the function factory."""

from .types import ComputeVariant, FunctionSpec, NetworkPlacement

__all__ = ["ComputeVariant", "FunctionSpec", "NetworkPlacement"]
