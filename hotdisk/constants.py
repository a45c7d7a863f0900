"""Physical constants and unit conversions for the disk evolution code.

All values are in CGS units.  Fundamental constants follow CODATA 2018;
the band zero points are taken from Allen's Astrophysical Quantities
(4th ed.) and Campins et al. (1985, AJ 90, 896) for the J band.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

# Gravitational constant (cm^3 g^-1 s^-2)
G: float = 6.67430e-8

# Speed of light in vacuum (cm s^-1)
C: float = 2.99792458e10

# Stefan-Boltzmann constant (erg cm^-2 s^-1 K^-4)
SIGMA_SB: float = 5.670374419e-5

# Planck and Boltzmann constants
H_PLANCK: float = 6.62607015e-27  # erg s
K_B: float = 1.380649e-16  # erg K^-1

# Universal gas constant (erg mol^-1 K^-1)
R_GAS: float = 8.314462618e7

M_SUN: float = 1.98847e33  # g
R_SUN: float = 6.955e10  # cm

DAY: float = 86400.0  # s
PARSEC: float = 3.0856775814913673e18  # cm
KPC: float = 1000.0 * PARSEC
ANGSTROM: float = 1.0e-8  # cm
JANSKY: float = 1.0e-23  # erg s^-1 cm^-2 Hz^-1
ELECTRON_VOLT: float = 1.602176634e-12  # erg
# Frequency corresponding to a photon energy of 1 keV (Hz)
KEV: float = 1000.0 * ELECTRON_VOLT / H_PLANCK


@dataclass(frozen=True)
class PhotometricBand:
    """Central wavelength and zero-magnitude flux of a photometric band.

    ``irr0`` is the flux density per unit wavelength of a zero-magnitude
    star in erg s^-1 cm^-2 cm^-1.
    """

    name: str
    wavelength: float
    irr0: float


_LAMBDA_J = 12600.0 * ANGSTROM

BANDS: Dict[str, PhotometricBand] = {
    "U": PhotometricBand("U", 3600.0 * ANGSTROM, 4.22e-9 / ANGSTROM),
    "B": PhotometricBand("B", 4400.0 * ANGSTROM, 6.4e-9 / ANGSTROM),
    "V": PhotometricBand("V", 5500.0 * ANGSTROM, 3.750e-9 / ANGSTROM),
    "R": PhotometricBand("R", 7100.0 * ANGSTROM, 1.75e-9 / ANGSTROM),
    "I": PhotometricBand("I", 9700.0 * ANGSTROM, 0.84e-9 / ANGSTROM),
    "J": PhotometricBand("J", _LAMBDA_J, 1600.0 * JANSKY * C / (_LAMBDA_J * _LAMBDA_J)),
}

DEFAULT_BANDS: Tuple[str, ...] = ("U", "B", "V", "R", "I", "J")

