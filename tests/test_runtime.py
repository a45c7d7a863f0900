import math

from hotdisk import constants
from hotdisk.runtime import ProgressReporter, RecordHistory


def test_history_pads_late_columns():
    history = RecordHistory(["t", "Mdot"])
    history.append_row({"t": 0.0, "Mdot": 1.0})
    history.append_row({"t": 0.25, "Mdot": 2.0, "mV": 15.0})
    df = history.to_frame()
    assert list(df.columns) == ["t", "Mdot", "mV"]
    assert df["Mdot"].tolist() == [1.0, 2.0]
    assert math.isnan(df["mV"].iloc[0])
    assert df["mV"].iloc[1] == 15.0


def test_empty_history_keeps_declared_columns():
    df = RecordHistory(["t", "Mdot"]).to_frame()
    assert list(df.columns) == ["t", "Mdot"]
    assert len(df) == 0


def test_progress_reports_days(capsys):
    reporter = ProgressReporter(4, 1.0 * constants.DAY, refresh_seconds=100.0, enabled=True)
    reporter.update(0, 0.0, force=True)
    reporter.update(1, 0.25 * constants.DAY)
    reporter.update(3, 1.0 * constants.DAY)
    reporter.finish(3, 1.0 * constants.DAY)
    lines = [line for line in capsys.readouterr().out.splitlines() if line]
    assert len(lines) == 2
    assert "25.0%" in lines[0]
    assert "100.0%" in lines[-1]
    assert "t=1/1 d" in lines[-1]


def test_disabled_progress_is_silent(capsys):
    reporter = ProgressReporter(4, constants.DAY, enabled=False)
    reporter.update(3, constants.DAY, force=True)
    reporter.finish(3, constants.DAY)
    assert capsys.readouterr().out == ""
