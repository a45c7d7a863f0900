from pathlib import Path

import pytest

from hotdisk.config_utils import (
    apply_overrides_dict,
    build_config,
    load_config,
    parse_override_value,
    resolve_physical_setup,
)
from hotdisk import constants
from hotdisk.errors import ConfigurationError
from hotdisk.physics import orbit
from hotdisk.schema import Config, MdotOutBoundaryConfig, PowerFInitial, QuasistatInitial


def test_defaults_follow_reference_model():
    cfg = Config()
    assert cfg.binary.Mx == 10.0
    assert cfg.disk.alpha == 0.25
    assert cfg.disk.opacity == "Kramers"
    assert isinstance(cfg.disk.initial, PowerFInitial)
    assert cfg.disk.initial.F0 == 1.0e36
    assert cfg.disk.initial.power_order == 6.0
    assert cfg.disk.boundary.type == "Teff"
    assert cfg.disk.boundary.T_hot == 0.0
    assert cfg.irradiation.dilution == 1.7
    assert cfg.numerics.Nx == 1000
    assert cfg.numerics.tau == 0.25
    assert cfg.io.bands == ["U", "B", "V", "R", "I", "J"]


def test_tagged_variants_are_selected_by_shape_and_type():
    cfg = build_config(
        {
            "disk": {
                "initial": {"shape": "quasistat", "Mdot0": 1.0e18},
                "boundary": {"type": "MdotOut", "kMdot_out": 3.0},
            }
        }
    )
    assert isinstance(cfg.disk.initial, QuasistatInitial)
    assert isinstance(cfg.disk.boundary, MdotOutBoundaryConfig)
    assert build_config({"disk": {"initial": {"shape": "power"}}}).disk.initial.shape == "power"


@pytest.mark.parametrize(
    "data",
    [
        {"disk": {"initial": {"shape": "powerF", "Mdot0": 1.0e18}}},
        {"disk": {"initial": {"shape": "triangle"}}},
        {"disk": {"boundary": {"type": "Teff", "kMdot_out": 2.0}}},
        {"disk": {"boundary": {"type": "Tirr", "T_hot": 1e4}}},
        {"disk": {"opacity": "Thomson"}},
        {"irradiation": {"type": "cubic"}},
        {"irradiation": {"nu_min": 10.0, "nu_max": 2.0}},
        {"numerics": {"grid_scale": "cubic"}},
        {"io": {"bands": ["V", "K"]}},
        {"binary": {"kerr": 1.5}},
    ],
)
def test_invalid_configurations_raise_configuration_error(data):
    with pytest.raises(ConfigurationError):
        build_config(data)


def test_tirr_with_irradiation_is_accepted():
    cfg = build_config({"disk": {"boundary": {"type": "Tirr", "T_hot": 1e4}}, "irradiation": {"C_irr": 1e-3}})
    assert cfg.disk.boundary.T_hot == 1e4


def test_override_parsing_and_application():
    assert parse_override_value("true") is True
    assert parse_override_value("3") == 3
    assert parse_override_value("1e-3") == 1e-3
    assert parse_override_value("'V'") == "V"
    assert parse_override_value("[U, V]") == ["U", "V"]
    payload = apply_overrides_dict({"disk": {"alpha": 0.1}}, ["disk.alpha=0.3", "disk.boundary.type=MdotOut"])
    assert payload == {"disk": {"alpha": 0.3, "boundary": {"type": "MdotOut"}}}
    with pytest.raises(ConfigurationError):
        apply_overrides_dict({}, ["disk.alpha"])


def test_load_config_from_yaml(tmp_path: Path):
    path = tmp_path / "run.yml"
    path.write_text(
        "binary:\n"
        "  Mx: 7.0\n"
        "disk:\n"
        "  initial:\n"
        "    shape: sinusF\n"
        "    Mdot0: 1.0e18\n"
        "numerics:\n"
        "  Nx: 200\n",
        encoding="utf-8",
    )
    cfg = load_config(path, overrides=["numerics.time=2"])
    assert cfg.binary.Mx == 7.0
    assert cfg.disk.initial.Mdot0 == 1.0e18
    assert cfg.numerics.Nx == 200
    assert cfg.numerics.time == 2.0
    with pytest.raises(ConfigurationError):
        load_config(tmp_path / "missing.yml")


def test_physical_setup_radii():
    cfg = Config()
    setup = resolve_physical_setup(cfg)
    Mx = 10.0 * constants.M_SUN
    assert setup.r_in == pytest.approx(orbit.r_isco(Mx, 0.0))
    assert setup.r_out == pytest.approx(setup.r_out_tidal)
    assert setup.tau == pytest.approx(0.25 * constants.DAY)

    custom = resolve_physical_setup(build_config({"binary": {"r_in": 3.0, "r_out": 2.0}}))
    assert custom.r_in == pytest.approx(6.0 * orbit.gravitational_radius(Mx))
    assert custom.r_out == pytest.approx(2.0 * constants.R_SUN)

    with pytest.raises(ConfigurationError):
        resolve_physical_setup(build_config({"binary": {"r_in": 1.0e9}}))
