import logging
import math

import numpy as np
import pytest

from hotdisk import constants, orchestrator
from hotdisk.errors import NumericalError
from hotdisk.io.writer import read_summary_table
from hotdisk.orchestrator import DiskEvolutionEngine, count_steps, disk_mass
from hotdisk.physics.boundary import MIN_ACTIVE_POINTS
from hotdisk.run import EXIT_CONFIG_ERROR, EXIT_OK, main


def test_step_count_includes_both_ends():
    assert count_steps(1.0, 0.25) == 5
    assert count_steps(25.0, 0.25) == 101
    assert count_steps(0.0, 0.25) == 1
    assert count_steps(0.1, 0.25) == 1


def test_disk_mass_of_uniform_annulus():
    R = np.linspace(1.0, 2.0, 201)
    Sigma = np.ones_like(R)
    assert disk_mass(R, Sigma) == pytest.approx(math.pi * (2.0 ** 2 - 1.0 ** 2), rel=1e-3)


def test_power_law_run_with_fixed_edge(make_config):
    cfg = make_config(disk={"boundary": {"type": "Teff", "T_hot": 0.0}})
    engine = DiskEvolutionEngine.from_config(cfg)
    result = engine.run()
    assert result.stop_reason == orchestrator.STOP_COMPLETED
    assert [record.t for record in result.records] == [0.0, 0.25, 0.5, 0.75, 1.0]
    assert engine.grid.n_active == engine.grid.capacity
    assert len({record.Rhot for record in result.records}) == 1
    for record in result.records:
        assert record.Cirr == 0.0
        assert record.Qirr2Qvisout == 0.0
        assert record.Mdisk > 0.0
        assert record.Mdot >= 0.0
        assert set(record.magnitudes) == {"mU", "mB", "mV", "mR", "mI", "mJ"}
    assert np.all(np.isfinite(engine.F_active))
    assert np.all(engine.F_active >= 0.0)


def test_zero_horizon_gives_single_record(make_config):
    cfg = make_config(numerics={"time": 0.0})
    result = DiskEvolutionEngine.from_config(cfg).run()
    assert len(result.records) == 1
    assert result.records[0].t == 0.0


def test_hot_edge_recedes_and_keeps_minimum(make_config):
    cfg = make_config(disk={"boundary": {"type": "Teff", "T_hot": 1.0e4}, "initial": {"shape": "powerF", "F0": 1.0e37}})
    engine = DiskEvolutionEngine.from_config(cfg)
    result = engine.run()
    radii = [record.Rhot for record in result.records]
    assert radii == sorted(radii, reverse=True)
    assert engine.grid.n_active < engine.grid.capacity
    assert engine.grid.n_active >= MIN_ACTIVE_POINTS


def test_mdot_out_feedback(make_config):
    cfg = make_config(disk={"boundary": {"type": "MdotOut", "kMdot_out": 2.0}})
    engine = DiskEvolutionEngine.from_config(cfg)
    previous_n = engine.grid.n_active
    for _ in range(3):
        engine.step()
        assert engine.state.Mdot_out == pytest.approx(-2.0 * engine.state.Mdot_in)
        assert MIN_ACTIVE_POINTS <= engine.grid.n_active <= previous_n
        previous_n = engine.grid.n_active


def test_reruns_are_identical(make_config):
    cfg = make_config(irradiation={"C_irr": 1.0e-3, "type": "square"})
    first = [record.as_row() for record in DiskEvolutionEngine.from_config(cfg).run().records]
    second = [record.as_row() for record in DiskEvolutionEngine.from_config(cfg).run().records]
    assert first == second


def test_numerical_failure_keeps_earlier_records(make_config, monkeypatch):
    calls = {"n": 0}
    real_step = orchestrator.step_nonlinear_diffusion

    def flaky_step(*args, **kwargs):
        calls["n"] += 1
        if calls["n"] == 2:
            raise NumericalError("did not converge")
        return real_step(*args, **kwargs)

    monkeypatch.setattr(orchestrator, "step_nonlinear_diffusion", flaky_step)
    result = DiskEvolutionEngine.from_config(make_config()).run()
    assert result.stop_reason == orchestrator.STOP_NUMERICAL_ERROR
    assert result.steps_run == 1
    assert result.steps_planned == 5
    assert "did not converge" in result.error


def test_cli_writes_outputs(tmp_path):
    outdir = tmp_path / "cli"
    code = main(
        [
            "--outdir",
            str(outdir),
            "--prefix",
            "demo",
            "--fulldata",
            "--quiet",
            "--override",
            "numerics.Nx=100",
            "numerics.time=0.5",
            "io.parquet=true",
            "io.bands=[V, J]",
        ]
    )
    assert code == EXIT_OK
    table = read_summary_table(outdir / "demo.dat")
    assert list(table.columns)[-2:] == ["mV", "mJ"]
    assert len(table) == 3
    assert (outdir / "demo.parquet").exists()
    assert (outdir / "demo_summary.json").exists()
    for k in range(3):
        assert (outdir / f"demo_{k}.dat").exists()
    header = (outdir / "demo.dat").read_text(encoding="utf-8").splitlines()
    assert header[0].startswith("#t\tMdot\tLx")
    assert header[1].startswith("#days\tg/s")
    assert header[2].startswith("# r_out = ")


def test_cli_rejects_bad_configuration(tmp_path):
    code = main(["--outdir", str(tmp_path), "--override", "disk.boundary.type=Tirr"])
    assert code == EXIT_CONFIG_ERROR


def test_short_step_keeps_inner_accretion_rate(make_config):
    cfg = make_config(numerics={"time": 1.0e-4, "tau": 1.0e-4, "eps": 1.0e-10})
    engine = DiskEvolutionEngine.from_config(cfg)
    h = engine.grid.h
    initial_slope = (engine.F[1] - engine.F[0]) / (h[1] - h[0])
    assert initial_slope > 0.0
    record = engine.step()
    assert math.isfinite(record.Mdot)
    assert record.Mdot > 0.0
    assert record.Mdot == pytest.approx(initial_slope, rel=1.0e-2)


def test_history_frame_has_record_and_band_columns(make_config):
    cfg = make_config(io={"bands": ["V"]})
    result = DiskEvolutionEngine.from_config(cfg).run()
    df = result.history().to_frame()
    assert list(df.columns) == [name for name, _, _ in orchestrator.RECORD_COLUMNS] + ["mV"]
    assert df["t"].tolist() == [record.t for record in result.records]


def test_warns_once_when_edge_reaches_minimum(make_config, caplog):
    cfg = make_config(disk={"boundary": {"type": "Teff", "T_hot": 1.0e9}})
    engine = DiskEvolutionEngine.from_config(cfg)
    with caplog.at_level(logging.WARNING, logger="hotdisk.orchestrator"):
        result = engine.run()
    assert result.stop_reason == orchestrator.STOP_COMPLETED
    assert engine.grid.n_active == MIN_ACTIVE_POINTS
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING and r.name == "hotdisk.orchestrator"]
    assert len(warnings) == 1
    assert "Teff" in warnings[0].getMessage()


def test_cli_echoes_configured_outer_radius(tmp_path):
    outdir = tmp_path / "rout"
    code = main(
        [
            "--outdir",
            str(outdir),
            "--quiet",
            "--override",
            "numerics.Nx=60",
            "numerics.time=0",
            "binary.r_out=2.0",
        ]
    )
    assert code == EXIT_OK
    header = (outdir / "hotdisk.dat").read_text(encoding="utf-8").splitlines()
    r_out = float(header[2].split("=", 1)[1])
    assert r_out == pytest.approx(2.0 * constants.R_SUN, rel=1e-9)
