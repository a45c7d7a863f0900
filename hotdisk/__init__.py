"""Core package for viscous accretion disk evolution."""
from . import constants, grid
from .errors import HotDiskError

__all__ = ["constants", "grid", "HotDiskError"]
