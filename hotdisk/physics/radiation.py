"""Radiative structure of the disk derived from the torque profile.

Given the torque ``F`` on the active grid this module evaluates the surface
density, the semi-thickness and the temperatures used by the boundary
tracker and the photometry:

* ``Tph_vis`` - effective temperature of viscous heating,
* ``Tph_X``   - colour temperature of the relativistic inner disk
  (Page & Thorne 1974) that produces the X-ray flux,
* ``Tirr``    - temperature equivalent of the absorbed X-ray flux ``Qx``,
* ``Tph``     - total photospheric temperature.

The X-ray irradiation flux is ``Qx = C_irr eta Mdot c^2 / (4 pi R^2)`` where
``C_irr`` is either constant or scales with ``(Height/R)^2``.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Union

import numpy as np

from .. import constants
from ..errors import ConfigurationError
from .viscosity import closure_function

__all__ = [
    "IRRADIATION_TYPES",
    "ConstIrradiation",
    "SquareIrradiation",
    "make_irradiation",
    "t_gr",
    "RadiativeFields",
    "compute_radiative_fields",
]

logger = logging.getLogger(__name__)

IRRADIATION_TYPES = ("const", "square")


@dataclass(frozen=True)
class ConstIrradiation:
    C_irr: float = 0.0
    kind: str = "const"

    def factor(self, height: np.ndarray, R: np.ndarray) -> np.ndarray:
        return np.full(np.shape(R), self.C_irr, dtype=float)


@dataclass(frozen=True)
class SquareIrradiation:
    C_irr: float = 0.0
    kind: str = "square"

    def factor(self, height: np.ndarray, R: np.ndarray) -> np.ndarray:
        ratio = np.asarray(height, dtype=float) / np.asarray(R, dtype=float)
        return self.C_irr * ratio * ratio


IrradiationModel = Union[ConstIrradiation, SquareIrradiation]


def make_irradiation(kind: str, C_irr: float = 0.0) -> IrradiationModel:
    if kind == "const":
        return ConstIrradiation(C_irr=float(C_irr))
    if kind == "square":
        return SquareIrradiation(C_irr=float(C_irr))
    raise ConfigurationError(f"Unknown irradiation factor type {kind!r}; expected one of {IRRADIATION_TYPES}")


def _pt_roots(a: float) -> tuple[float, float, float]:
    """Roots of ``x^3 - 3x + 2a = 0``."""

    phi = math.acos(a) / 3.0
    return (
        2.0 * math.cos(phi - math.pi / 3.0),
        2.0 * math.cos(phi + math.pi / 3.0),
        -2.0 * math.cos(phi),
    )


def t_gr(R, kerr: float, Mx: float, Mdot: float, r_in: float) -> np.ndarray:
    """Effective temperature of a relativistic thin disk (Page & Thorne 1974).

    Parameters
    ----------
    R:
        Radii (cm).
    kerr:
        Dimensionless spin of the central black hole.
    Mx:
        Mass of the central object (g).
    Mdot:
        Accretion rate (g s^-1).
    r_in:
        Inner radius of the disk where the torque vanishes (cm).

    Returns
    -------
    numpy.ndarray
        Temperature in K, zero inside ``r_in`` and wherever the flux is not
        positive.
    """

    R = np.asarray(R, dtype=float)
    T = np.zeros_like(R)
    if Mdot <= 0.0:
        return T
    GM = constants.G * Mx
    rg = GM / (constants.C * constants.C)
    a = float(kerr)
    x0 = math.sqrt(r_in / rg)
    mask = R > r_in
    if not np.any(mask):
        return T
    x = np.sqrt(R[mask] / rg)
    roots = _pt_roots(a)

    bracket = x - x0 - 1.5 * a * np.log(x / x0)
    for k, xk in enumerate(roots):
        others = [xj for j, xj in enumerate(roots) if j != k]
        if xk == 0.0:
            continue
        coeff = 3.0 * (xk - a) ** 2 / (xk * (xk - others[0]) * (xk - others[1]))
        with np.errstate(divide="ignore", invalid="ignore"):
            bracket = bracket - coeff * np.log((x - xk) / (x0 - xk))

    with np.errstate(divide="ignore", invalid="ignore"):
        flux = (
            3.0 * Mdot * constants.C ** 6 / (8.0 * math.pi * GM * GM)
            * bracket
            / (x ** 4 * (x ** 3 - 3.0 * x + 2.0 * a))
        )
    flux = np.where(np.isfinite(flux) & (flux > 0.0), flux, 0.0)
    T[mask] = (flux / constants.SIGMA_SB) ** 0.25
    return T


@dataclass
class RadiativeFields:
    """Radial fields on the active grid; index 0 is left at zero."""

    h: np.ndarray
    R: np.ndarray
    F: np.ndarray
    W: np.ndarray
    Sigma: np.ndarray
    Height: np.ndarray
    Tph_vis: np.ndarray
    Tph_X: np.ndarray
    Tirr: np.ndarray
    Tph: np.ndarray
    C_irr: np.ndarray
    Qx: np.ndarray

    @property
    def n_active(self) -> int:
        return int(self.h.size)

    def truncated(self, n: int) -> "RadiativeFields":
        """Return views of the first ``n`` nodes."""

        return RadiativeFields(**{name: value[:n] for name, value in self.__dict__.items()})


def compute_radiative_fields(
    h: np.ndarray,
    R: np.ndarray,
    F: np.ndarray,
    closure,
    irradiation: IrradiationModel,
    *,
    Mdot_in: float,
    kerr: float,
    eta: float,
    fc: float,
) -> RadiativeFields:
    """Evaluate all derived fields for the current torque profile."""

    n = h.size
    GM = closure.GM
    W = closure_function(closure, h, F, 1, n - 1)
    zeros = np.zeros(n, dtype=float)
    Sigma = zeros.copy()
    Height = zeros.copy()
    Tph_vis = zeros.copy()
    Tph_X = zeros.copy()
    C_irr = zeros.copy()
    Qx = zeros.copy()

    hi, Ri, Fi = h[1:], R[1:], np.maximum(F[1:], 0.0)
    Sigma[1:] = closure.sigma(hi, W[1:])
    Height[1:] = closure.height(Ri, Fi)
    Tph_vis[1:] = GM * hi ** -1.75 * (3.0 * Fi / (8.0 * math.pi * constants.SIGMA_SB)) ** 0.25
    Tph_X[1:] = fc * t_gr(Ri, kerr, closure.Mx, Mdot_in, float(R[0]))
    C_irr[1:] = irradiation.factor(Height[1:], Ri)
    # negative accretion rate does not irradiate
    Qx[1:] = C_irr[1:] * eta * max(Mdot_in, 0.0) * constants.C ** 2 / (4.0 * math.pi * Ri * Ri)
    Tirr = (Qx / constants.SIGMA_SB) ** 0.25
    Tph = (Tph_vis ** 4 + Qx / constants.SIGMA_SB) ** 0.25
    return RadiativeFields(
        h=h,
        R=R,
        F=F,
        W=W,
        Sigma=Sigma,
        Height=Height,
        Tph_vis=Tph_vis,
        Tph_X=Tph_X,
        Tirr=Tirr,
        Tph=Tph,
        C_irr=C_irr,
        Qx=Qx,
    )
