"""Angular-momentum grid for the disk evolution.

The diffusion equation is solved on the specific angular momentum
``h = sqrt(G M r)`` instead of the radius.  The grid is allocated once with
its full capacity; the receding outer edge of the hot disk is tracked by an
active length so that truncation never reallocates the arrays.
"""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .errors import ConfigurationError

GRID_SCALES = ("log", "linear")


def build_h_grid(h_in: float, h_out: float, n: int, scale: str = "log") -> np.ndarray:
    """Return ``n`` angular-momentum nodes from ``h_in`` to ``h_out``.

    Parameters
    ----------
    h_in, h_out:
        Inner and outer specific angular momentum (cm^2 s^-1).
    n:
        Number of nodes, at least two.
    scale:
        ``"log"`` for geometric or ``"linear"`` for arithmetic spacing.

    Returns
    -------
    numpy.ndarray
        Strictly increasing nodes with ``h[0] == h_in`` and ``h[-1] == h_out``.
    """

    if scale not in GRID_SCALES:
        raise ConfigurationError(f"Unknown grid scale {scale!r}; expected one of {GRID_SCALES}")
    if int(n) != n or n < 2:
        raise ConfigurationError(f"Grid size must be an integer >= 2, got {n!r}")
    if not (np.isfinite(h_in) and np.isfinite(h_out)) or h_in <= 0.0 or h_out <= h_in:
        raise ConfigurationError(f"Grid bounds must satisfy 0 < h_in < h_out, got {h_in!r}, {h_out!r}")
    n = int(n)
    i = np.arange(n, dtype=float) / (n - 1.0)
    if scale == "log":
        h = h_in * (h_out / h_in) ** i
    else:
        h = h_in + (h_out - h_in) * i
    # pin the end points against round-off
    h[0] = h_in
    h[-1] = h_out
    return h


@dataclass
class AngularMomentumGrid:
    """Fixed-capacity ``h``/``R`` storage with a shrinking active length.

    Parameters
    ----------
    h_nodes:
        Angular momentum nodes (cm^2 s^-1), full capacity.
    r_nodes:
        Radii ``h^2 / GM`` (cm), full capacity.
    GM:
        Gravitational parameter of the central object (cm^3 s^-2).
    n_active:
        Number of leading nodes belonging to the hot disk.
    """

    h_nodes: np.ndarray
    r_nodes: np.ndarray
    GM: float
    n_active: int

    @classmethod
    def build(cls, h_in: float, h_out: float, n: int, scale: str, GM: float) -> "AngularMomentumGrid":
        h = build_h_grid(h_in, h_out, n, scale)
        return cls(h_nodes=h, r_nodes=h * h / GM, GM=float(GM), n_active=h.size)

    @property
    def capacity(self) -> int:
        return int(self.h_nodes.size)

    @property
    def h(self) -> np.ndarray:
        """Active angular-momentum nodes (a view)."""
        return self.h_nodes[: self.n_active]

    @property
    def R(self) -> np.ndarray:
        """Active radii (a view)."""
        return self.r_nodes[: self.n_active]

    @property
    def h_in(self) -> float:
        return float(self.h_nodes[0])

    @property
    def h_out(self) -> float:
        """Outer boundary of the grid as built, independent of truncation."""
        return float(self.h_nodes[-1])

    def truncate(self, n: int) -> bool:
        """Shrink the active length to ``n``; return True if it changed.

        The active length never grows.
        """

        n = int(n)
        if n < 2:
            raise ValueError(f"active length must be at least 2, got {n}")
        if n >= self.n_active:
            return False
        self.n_active = n
        return True
