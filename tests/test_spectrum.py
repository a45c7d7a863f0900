import math

import numpy as np
import pytest

from hotdisk import constants
from hotdisk.physics.spectrum import i_lambda, luminosity, magnitude, magnitudes, planck_lambda, planck_nu


def test_planck_functions_vanish_for_cold_matter():
    assert planck_nu(1.0e15, 0.0) == 0.0
    assert planck_lambda(5.0e-5, 0.0) == 0.0
    assert planck_nu(1.0e15, 1.0e4) > 0.0


def test_planck_lambda_and_nu_agree():
    T = 8000.0
    lam = 5.5e-5
    nu = constants.C / lam
    assert planck_lambda(lam, T) == pytest.approx(planck_nu(nu, T) * constants.C / lam ** 2, rel=1e-12)


def test_bolometric_luminosity_of_uniform_ring():
    T = 1.0e4
    R = np.linspace(1.0e10, 2.0e10, 5)
    Tarr = np.full_like(R, T)
    nu_max = 40.0 * constants.K_B * T / constants.H_PLANCK
    L = luminosity(R, Tarr, 1.0e9, nu_max, n_nu=4000)
    expected = 2.0 * math.pi * constants.SIGMA_SB * T ** 4 * (R[-1] ** 2 - R[0] ** 2)
    assert L == pytest.approx(expected, rel=0.01)


def test_cold_disk_has_no_luminosity():
    R = np.linspace(1.0e10, 2.0e10, 5)
    assert luminosity(R, np.zeros_like(R), 1.0e17, 3.0e18) == 0.0
    assert i_lambda(R, np.zeros_like(R), 5.5e-5) == 0.0


def test_magnitude_zero_point():
    band = constants.BANDS["V"]
    D = 10.0 * constants.KPC
    assert magnitude(band.irr0 * D * D, 1.0, D, band.irr0) == pytest.approx(0.0, abs=1e-12)
    assert magnitude(0.0, 1.0, D, band.irr0) == math.inf
    assert magnitude(1.0, 0.0, D, band.irr0) == math.inf


def test_magnitudes_per_band_order():
    R = np.geomspace(1.0e9, 1.0e11, 50)
    T = 2.0e4 * (R / R[0]) ** -0.75
    result = magnitudes(R, T, ["U", "V", "J"], cos_i=1.0, distance=10.0 * constants.KPC)
    assert list(result) == ["mU", "mV", "mJ"]
    assert all(np.isfinite(value) for value in result.values())
    fainter = magnitudes(R, T, ["V"], cos_i=0.5, distance=10.0 * constants.KPC)
    assert fainter["mV"] == pytest.approx(result["mV"] + 2.5 * math.log10(2.0))
