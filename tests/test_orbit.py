import math

import pytest

from hotdisk import constants
from hotdisk.errors import PhysicsError
from hotdisk.physics import orbit

MX = 10.0 * constants.M_SUN


@pytest.mark.parametrize("kerr, expected", [(0.0, 6.0), (1.0, 1.0), (-1.0, 9.0)])
def test_isco_limits(kerr, expected):
    assert orbit.r_isco(MX, kerr) / orbit.gravitational_radius(MX) == pytest.approx(expected, rel=1e-9)


def test_isco_shrinks_with_prograde_spin():
    values = [orbit.r_isco(MX, a) for a in (-0.5, 0.0, 0.5, 0.9)]
    assert values == sorted(values, reverse=True)


def test_efficiency_of_schwarzschild_disk():
    assert orbit.efficiency_of_accretion(0.0) == pytest.approx(1.0 - math.sqrt(8.0 / 9.0))
    assert orbit.efficiency_of_accretion(0.9) > orbit.efficiency_of_accretion(0.0)


def test_roche_lobe_of_equal_masses():
    a = orbit.semi_major_axis(constants.M_SUN, constants.M_SUN, constants.DAY)
    rl = orbit.roche_lobe_radius(constants.M_SUN, constants.M_SUN, constants.DAY)
    assert rl / a == pytest.approx(0.49 / (0.6 + math.log(2.0)))
    assert orbit.r_out_tidal(constants.M_SUN, constants.M_SUN, constants.DAY) == pytest.approx(0.8 * rl)


def test_invalid_orbital_inputs():
    with pytest.raises(PhysicsError):
        orbit.r_isco(MX, 1.5)
    with pytest.raises(PhysicsError):
        orbit.semi_major_axis(MX, 0.0, constants.DAY)
