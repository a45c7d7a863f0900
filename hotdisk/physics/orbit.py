"""Orbital helper relations for the binary and the central object.

The inner disk radius defaults to the innermost stable circular orbit of a
Kerr black hole (Bardeen, Press & Teukolsky 1972), the outer radius to a
fixed fraction of the Roche lobe of the accretor (Eggleton 1983).
"""
from __future__ import annotations

import math

from .. import constants
from ..errors import PhysicsError

__all__ = [
    "gravitational_radius",
    "r_isco",
    "efficiency_of_accretion",
    "semi_major_axis",
    "roche_lobe_radius",
    "r_out_tidal",
]

TIDAL_FRACTION = 0.8


def _check_kerr(kerr: float) -> float:
    if not -1.0 <= kerr <= 1.0:
        raise PhysicsError(f"Kerr parameter must lie within [-1, 1], got {kerr}")
    return float(kerr)


def gravitational_radius(Mx: float) -> float:
    """Return ``G M / c^2`` in cm for a mass ``Mx`` in grams."""

    return constants.G * Mx / (constants.C * constants.C)


def r_isco(Mx: float, kerr: float) -> float:
    """Radius of the innermost stable circular (prograde) orbit in cm."""

    a = _check_kerr(kerr)
    z1 = 1.0 + (1.0 - a * a) ** (1.0 / 3.0) * ((1.0 + a) ** (1.0 / 3.0) + (1.0 - a) ** (1.0 / 3.0))
    z2 = math.sqrt(3.0 * a * a + z1 * z1)
    sign = 1.0 if a >= 0.0 else -1.0
    x = 3.0 + z2 - sign * math.sqrt((3.0 - z1) * (3.0 + z1 + 2.0 * z2))
    return x * gravitational_radius(Mx)


def efficiency_of_accretion(kerr: float) -> float:
    """Radiative efficiency ``1 - E_isco`` of a Novikov-Thorne disk."""

    x = r_isco(constants.M_SUN, kerr) / gravitational_radius(constants.M_SUN)
    return 1.0 - math.sqrt(1.0 - 2.0 / (3.0 * x))


def semi_major_axis(Mx: float, Mopt: float, period: float) -> float:
    """Binary separation from Kepler's third law (all CGS)."""

    if Mx <= 0.0 or Mopt <= 0.0 or period <= 0.0:
        raise PhysicsError("masses and period must be positive")
    return (constants.G * (Mx + Mopt) * period * period / (4.0 * math.pi * math.pi)) ** (1.0 / 3.0)


def roche_lobe_radius(Mx: float, Mopt: float, period: float) -> float:
    """Volume-equivalent Roche lobe radius of the accretor (Eggleton 1983)."""

    q = Mx / Mopt
    q13 = q ** (1.0 / 3.0)
    q23 = q13 * q13
    return semi_major_axis(Mx, Mopt, period) * 0.49 * q23 / (0.6 * q23 + math.log1p(q13))


def r_out_tidal(Mx: float, Mopt: float, period: float) -> float:
    """Default outer disk radius, a fixed fraction of the Roche lobe."""

    return TIDAL_FRACTION * roche_lobe_radius(Mx, Mopt, period)
