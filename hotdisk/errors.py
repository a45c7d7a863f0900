"""Custom exceptions for the :mod:`hotdisk` package."""
from __future__ import annotations


class HotDiskError(Exception):
    """Base exception for accretion disk evolution errors."""


class ConfigurationError(HotDiskError, ValueError):
    """Invalid, unknown or contradictory configuration values."""


class PhysicsError(HotDiskError, ValueError):
    """Non-physical input values passed to a physics routine."""


class NumericalError(HotDiskError, RuntimeError):
    """Convergence failure of a numerical solver."""


__all__ = [
    "HotDiskError",
    "ConfigurationError",
    "PhysicsError",
    "NumericalError",
]
