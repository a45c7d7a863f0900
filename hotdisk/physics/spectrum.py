"""Black-body integrals over the disk surface.

The disk is a sum of black-body rings.  The X-ray luminosity integrates the
colour-corrected inner-disk temperature over radius and a frequency band;
the optical and infrared magnitudes integrate the photospheric temperature
at the central wavelength of each band.
"""
from __future__ import annotations

import logging
import math
from typing import Dict, Iterable

import numpy as np
from scipy.integrate import trapezoid

from .. import constants

__all__ = ["planck_nu", "planck_lambda", "luminosity", "i_lambda", "magnitude", "magnitudes"]

logger = logging.getLogger(__name__)

DEFAULT_N_NU = 100


def planck_nu(nu, T):
    """Spectral radiance ``B_nu(T)`` in erg s^-1 cm^-2 Hz^-1 sr^-1; zero for ``T <= 0``."""

    nu = np.asarray(nu, dtype=float)
    T = np.asarray(T, dtype=float)
    with np.errstate(divide="ignore", over="ignore", invalid="ignore"):
        x = constants.H_PLANCK * nu / (constants.K_B * T)
        B = 2.0 * constants.H_PLANCK * nu ** 3 / (constants.C * constants.C) / np.expm1(x)
    return np.where((T > 0.0) & np.isfinite(B), B, 0.0)


def planck_lambda(lam, T):
    """Spectral radiance ``B_lambda(T)`` in erg s^-1 cm^-2 cm^-1 sr^-1; zero for ``T <= 0``."""

    lam = np.asarray(lam, dtype=float)
    T = np.asarray(T, dtype=float)
    with np.errstate(divide="ignore", over="ignore", invalid="ignore"):
        x = constants.H_PLANCK * constants.C / (lam * constants.K_B * T)
        B = 2.0 * constants.H_PLANCK * constants.C ** 2 / lam ** 5 / np.expm1(x)
    return np.where((T > 0.0) & np.isfinite(B), B, 0.0)


def luminosity(R: np.ndarray, T: np.ndarray, nu_min: float, nu_max: float, n_nu: int = DEFAULT_N_NU) -> float:
    """Band luminosity ``int dnu int 4 pi^2 R B_nu(T) dR`` of both disk sides (erg s^-1).

    ``nu_min`` and ``nu_max`` in Hz.
    """

    R = np.asarray(R, dtype=float)
    T = np.asarray(T, dtype=float)
    if R.size < 2 or nu_max <= nu_min:
        return 0.0
    nu = np.linspace(nu_min, nu_max, int(n_nu))
    B = planck_nu(nu[:, None], T[None, :])
    per_nu = trapezoid(4.0 * math.pi ** 2 * R[None, :] * B, R, axis=1)
    return float(trapezoid(per_nu, nu))


def i_lambda(R: np.ndarray, T: np.ndarray, lam: float) -> float:
    """Specific intensity integrated over the disk face, ``int 2 pi R B_lambda(T) dR``."""

    R = np.asarray(R, dtype=float)
    if R.size < 2:
        return 0.0
    return float(trapezoid(2.0 * math.pi * R * planck_lambda(lam, T), R))


def magnitude(I: float, cos_i: float, distance: float, irr0: float) -> float:
    """Apparent magnitude of a disk with integrated intensity ``I``; ``inf`` for no flux."""

    flux = I * cos_i / (distance * distance)
    if not flux > 0.0:
        return math.inf
    return -2.5 * math.log10(flux / irr0)


def magnitudes(
    R: np.ndarray,
    Tph: np.ndarray,
    bands: Iterable[str],
    *,
    cos_i: float,
    distance: float,
) -> Dict[str, float]:
    """Return ``{"m<band>": magnitude}`` for each band name in ``bands``."""

    result: Dict[str, float] = {}
    for name in bands:
        band = constants.BANDS[name]
        result[f"m{name}"] = magnitude(i_lambda(R, Tph, band.wavelength), cos_i, distance, band.irr0)
    return result
