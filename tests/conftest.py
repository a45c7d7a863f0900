from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from hotdisk import constants  # noqa: E402
from hotdisk.config_utils import build_config  # noqa: E402
from hotdisk.physics.opacity import OpacityClosure  # noqa: E402

MX = 10.0 * constants.M_SUN


@pytest.fixture(scope="session")
def kramers() -> OpacityClosure:
    return OpacityClosure.from_law("Kramers", MX, 0.25, 0.62)


@pytest.fixture
def h_grid() -> np.ndarray:
    GM = constants.G * MX
    h_in = np.sqrt(GM * 9.0e6)
    h_out = np.sqrt(GM * 3.0e11)
    return h_in * (h_out / h_in) ** np.linspace(0.0, 1.0, 200)


@pytest.fixture
def make_config(tmp_path):
    """Small, short runs: 150 nodes over one day."""

    def _make(**sections):
        data = {
            "numerics": {"Nx": 150, "time": 1.0, "tau": 0.25},
            "io": {"outdir": str(tmp_path / "out"), "prefix": "run"},
        }
        for key, value in sections.items():
            data.setdefault(key, {}).update(value)
        return build_config(data)

    return _make
