"""Physics modules: opacity closure, viscous diffusion, radiation and boundaries."""
from . import (
    orbit,
    opacity,
    viscosity,
    boundary,
    initfields,
    radiation,
    spectrum,
)

__all__ = [
    "orbit",
    "opacity",
    "viscosity",
    "boundary",
    "initfields",
    "radiation",
    "spectrum",
]
