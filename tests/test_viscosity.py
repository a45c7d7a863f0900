import numpy as np
import pytest

from hotdisk.errors import NumericalError
from hotdisk.physics.viscosity import (
    _solve_tridiagonal,
    closure_function,
    discrete_mass,
    step_nonlinear_diffusion,
)


def _sinus_torque(h):
    return 1.0e36 * np.sin((h - h[0]) / (h[-1] - h[0]) * np.pi / 2.0)


def test_thomas_solver_matches_dense_solve():
    rng = np.random.default_rng(3)
    n = 12
    a = rng.uniform(-1.0, 0.0, n - 1)
    c = rng.uniform(-1.0, 0.0, n - 1)
    b = 3.0 + rng.uniform(0.0, 1.0, n)
    d = rng.normal(size=n)
    A = np.diag(b) + np.diag(a, -1) + np.diag(c, 1)
    assert np.allclose(_solve_tridiagonal(a, b, c, d), np.linalg.solve(A, d))


def test_closure_function_pads_and_checks_bounds(kramers, h_grid):
    F = _sinus_torque(h_grid)
    W = closure_function(kramers, h_grid, F, 3, 10)
    assert W.size == 11
    assert np.all(W[:3] == 0.0)
    assert np.allclose(W[3:], kramers.w(h_grid[3:11], F[3:11]))
    with pytest.raises(IndexError):
        closure_function(kramers, h_grid, F, 1, h_grid.size)
    with pytest.raises(IndexError):
        closure_function(kramers, h_grid, F, -1, 5)


def test_step_keeps_torque_finite_and_non_negative(kramers, h_grid):
    F = _sinus_torque(h_grid)
    iterations = step_nonlinear_diffusion(h_grid, F, 21600.0, kramers)
    assert 1 <= iterations <= 100
    assert F[0] == 0.0
    assert np.all(np.isfinite(F))
    assert np.all(F >= 0.0)
    assert np.all(kramers.w(h_grid, F) >= 0.0)


@pytest.mark.parametrize("Mdot_out", [0.0, -1.0e16])
def test_step_conserves_mass(kramers, h_grid, Mdot_out):
    F = _sinus_torque(h_grid)
    tau = 864.0
    mass_before = discrete_mass(h_grid, kramers.w(h_grid, F))
    step_nonlinear_diffusion(h_grid, F, tau, kramers, Mdot_out=Mdot_out, eps=1e-10)
    mass_after = discrete_mass(h_grid, kramers.w(h_grid, F))
    Mdot_in = (F[1] - F[0]) / (h_grid[1] - h_grid[0])
    expected = tau * (Mdot_out - Mdot_in)
    assert mass_after - mass_before == pytest.approx(expected, abs=1e-7 * mass_before)


def test_step_raises_when_iterations_are_exhausted(kramers, h_grid):
    F = _sinus_torque(h_grid)
    with pytest.raises(NumericalError):
        step_nonlinear_diffusion(h_grid, F, 21600.0, kramers, eps=1e-15, max_iter=1)


def test_step_rejects_degenerate_grid(kramers):
    h = np.array([1.0e17, 2.0e17])
    with pytest.raises(ValueError):
        step_nonlinear_diffusion(h, np.zeros(2), 1.0, kramers)
