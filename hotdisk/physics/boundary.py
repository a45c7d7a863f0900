"""Outer edge of the hot disk.

The hot, ionised part of the disk ends where the disk becomes cold enough
for hydrogen to recombine.  Every step the outer edge is located on the
current radiative fields and the grid is truncated to it.  Four criteria are
available:

``Teff``
    photospheric temperature ``Tph`` above ``T_hot``;
``Tirr``
    irradiation temperature above ``T_hot`` (falls back to ``Tph`` while the
    accretion rate is still rising for power-law and ``sinusgauss`` starts);
``fourSigmaCrit``
    surface density above ``4 Sigma_crit`` (Menou et al. 1999, fig. 8);
``MdotOut``
    surface density above ``Sigma_crit`` with an outflow ``Mdot_out`` through
    the outer boundary proportional to the accretion rate.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol, Union

import numpy as np

from .. import constants
from ..errors import ConfigurationError

__all__ = [
    "MIN_ACTIVE_POINTS",
    "BoundaryPolicy",
    "TeffBoundary",
    "TirrBoundary",
    "FourSigmaCritBoundary",
    "MdotOutBoundary",
    "sigma_hot_disk",
    "find_hot_edge",
    "make_boundary",
]

logger = logging.getLogger(__name__)

MIN_ACTIVE_POINTS = 3
FOUR_SIGMA_FACTOR = 4.0
# initial shapes whose early rise is tracked on Tph by the Tirr criterion
TIRR_FALLBACK_SHAPES = frozenset({"power", "powerF", "sinusgauss"})


def sigma_hot_disk(R, alpha: float, Mx: float):
    """Minimum surface density of the hot branch (Lasota et al. 2008), g cm^-2.

    ``R`` in cm, ``Mx`` in grams.
    """

    R = np.asarray(R, dtype=float)
    return (
        39.9
        * (alpha / 0.1) ** -0.80
        * (R / 1.0e10) ** 1.11
        * (Mx / constants.M_SUN) ** -0.37
    )


def find_hot_edge(values: np.ndarray, threshold, n_active: int) -> int:
    """Return the outermost index ``i < n_active`` with ``values[i] >= threshold``.

    The search stops at ``MIN_ACTIVE_POINTS - 1`` so that the disk always keeps
    enough nodes for the diffusion step.
    """

    lower = MIN_ACTIVE_POINTS - 1
    if n_active <= lower:
        return n_active - 1
    values = np.asarray(values, dtype=float)[lower:n_active]
    threshold = np.asarray(threshold, dtype=float)
    if threshold.ndim:
        threshold = threshold[lower:n_active]
    hot = np.flatnonzero(values >= threshold)
    if hot.size == 0:
        return lower
    return lower + int(hot[-1])


class BoundaryPolicy(Protocol):
    name: str

    def outflow_rate(self, Mdot_in: float, Mdot_out: float) -> float: ...

    def locate(self, fields: Any, Mdot_in: float, Mdot_in_prev: float) -> int: ...


class _NoOutflow:
    def outflow_rate(self, Mdot_in: float, Mdot_out: float) -> float:
        return Mdot_out


@dataclass(frozen=True)
class TeffBoundary(_NoOutflow):
    T_hot: float = 0.0
    name: str = "Teff"

    def locate(self, fields: Any, Mdot_in: float, Mdot_in_prev: float) -> int:
        return find_hot_edge(fields.Tph, self.T_hot, fields.n_active)


@dataclass(frozen=True)
class TirrBoundary(_NoOutflow):
    T_hot: float = 0.0
    fallback_to_Tph: bool = False
    name: str = "Tirr"

    def locate(self, fields: Any, Mdot_in: float, Mdot_in_prev: float) -> int:
        # TODO: replace the rising-Mdot fallback with a criterion on the monotonicity of Tirr
        if self.fallback_to_Tph and Mdot_in >= Mdot_in_prev:
            return find_hot_edge(fields.Tph, self.T_hot, fields.n_active)
        return find_hot_edge(fields.Tirr, self.T_hot, fields.n_active)


@dataclass(frozen=True)
class FourSigmaCritBoundary(_NoOutflow):
    alpha: float
    Mx: float
    name: str = "fourSigmaCrit"

    def locate(self, fields: Any, Mdot_in: float, Mdot_in_prev: float) -> int:
        crit = FOUR_SIGMA_FACTOR * sigma_hot_disk(fields.R, self.alpha, self.Mx)
        return find_hot_edge(fields.Sigma, crit, fields.n_active)


@dataclass(frozen=True)
class MdotOutBoundary:
    alpha: float
    Mx: float
    kMdot_out: float = 2.0
    name: str = "MdotOut"

    def outflow_rate(self, Mdot_in: float, Mdot_out: float) -> float:
        return -self.kMdot_out * Mdot_in

    def locate(self, fields: Any, Mdot_in: float, Mdot_in_prev: float) -> int:
        crit = sigma_hot_disk(fields.R, self.alpha, self.Mx)
        return find_hot_edge(fields.Sigma, crit, fields.n_active)


AnyBoundary = Union[TeffBoundary, TirrBoundary, FourSigmaCritBoundary, MdotOutBoundary]


def make_boundary(
    kind: str,
    *,
    alpha: float,
    Mx: float,
    T_hot: float = 0.0,
    kMdot_out: float = 2.0,
    C_irr: float = 0.0,
    initial_shape: str = "",
) -> AnyBoundary:
    """Instantiate the boundary policy named ``kind``.

    ``C_irr`` and ``initial_shape`` are only consulted by ``Tirr``: the
    irradiation temperature vanishes without irradiation, so ``C_irr <= 0``
    is rejected.
    """

    if kind == "Teff":
        return TeffBoundary(T_hot=float(T_hot))
    if kind == "Tirr":
        if C_irr <= 0.0:
            raise ConfigurationError("The Tirr boundary condition needs a positive irradiation factor C_irr")
        return TirrBoundary(T_hot=float(T_hot), fallback_to_Tph=initial_shape in TIRR_FALLBACK_SHAPES)
    if kind == "fourSigmaCrit":
        return FourSigmaCritBoundary(alpha=float(alpha), Mx=float(Mx))
    if kind == "MdotOut":
        return MdotOutBoundary(alpha=float(alpha), Mx=float(Mx), kMdot_out=float(kMdot_out))
    raise ConfigurationError(
        f"Unknown boundary condition {kind!r}; expected Teff, Tirr, fourSigmaCrit or MdotOut"
    )
