"""Implicit step of the nonlinear viscous diffusion equation.

The disk evolves according to

    dW(F, h)/dt = d^2 F / dh^2

where ``F`` is the viscous torque, ``h`` the specific angular momentum and
``W`` the disk mass per unit ``h`` given by the opacity closure.  The
equation is discretised with finite volumes on the nonuniform ``h`` grid
and advanced with a backward-Euler step.  The resulting nonlinear system
is solved by Newton iteration on ``W``; the Jacobian is tridiagonal.
"""
from __future__ import annotations

import logging
from typing import Protocol, Tuple

import numpy as np

from ..errors import NumericalError

__all__ = ["DiffusionClosure", "closure_function", "step_nonlinear_diffusion"]

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITER = 100


class DiffusionClosure(Protocol):
    """Torque to mass-per-unit-``h`` relation used as the nonlinearity."""

    def w(self, h, F): ...

    def torque(self, h, W): ...

    def dtorque_dw(self, h, W): ...


def closure_function(
    closure: DiffusionClosure, h: np.ndarray, F: np.ndarray, first: int, last: int
) -> np.ndarray:
    """Return ``W[0..last]`` with ``W[i] = closure.w(h[i], F[i])`` for ``i >= first``.

    Entries below ``first`` are zero.  Indices outside the arrays raise
    :class:`IndexError`.
    """

    size = min(len(h), len(F))
    if first < 0 or last >= size or first > last + 1:
        raise IndexError(f"closure range [{first}, {last}] outside [0, {size - 1}]")
    W = np.zeros(last + 1, dtype=float)
    W[first : last + 1] = closure.w(h[first : last + 1], F[first : last + 1])
    return W


def _solve_tridiagonal(a: np.ndarray, b: np.ndarray, c: np.ndarray, d: np.ndarray) -> np.ndarray:
    """Solve a tridiagonal system using the Thomas algorithm.

    The system has lower diagonal ``a`` (length ``n-1``), main diagonal ``b``
    (length ``n``) and upper diagonal ``c`` (length ``n-1``).  ``d`` is the
    right-hand side of length ``n``.  The Newton matrix of the diffusion step
    is column diagonally dominant, so no pivoting is needed.
    """

    n = b.size
    bc = b.copy()
    dc = d.copy()
    for i in range(1, n):
        w = a[i - 1] / bc[i - 1]
        bc[i] -= w * c[i - 1]
        dc[i] -= w * dc[i - 1]
    x = np.empty(n, dtype=float)
    x[-1] = dc[-1] / bc[-1]
    for i in range(n - 2, -1, -1):
        x[i] = (dc[i] - c[i] * x[i + 1]) / bc[i]
    return x


def _control_widths(h: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Return node spacings ``d`` and control-volume widths for nodes ``1..N-1``."""

    d = np.diff(h)
    widths = np.empty(h.size - 1, dtype=float)
    widths[:-1] = 0.5 * (h[2:] - h[:-2])
    widths[-1] = 0.5 * d[-1]
    return d, widths


def discrete_mass(h: np.ndarray, W: np.ndarray) -> float:
    """Quantity conserved by the discretisation, ``sum W_i dh_i`` over ``i >= 1``."""

    _, widths = _control_widths(np.asarray(h, dtype=float))
    return float(np.sum(np.asarray(W, dtype=float)[1:] * widths))


def step_nonlinear_diffusion(
    h: np.ndarray,
    F: np.ndarray,
    tau: float,
    closure: DiffusionClosure,
    *,
    F_in: float = 0.0,
    Mdot_out: float = 0.0,
    eps: float = 1.0e-6,
    max_iter: int = DEFAULT_MAX_ITER,
) -> int:
    """Advance the torque profile ``F`` by one time step in place.

    Args:
        h: Angular momentum nodes, strictly increasing, at least three.
        F: Torque at the nodes; overwritten with the new profile.
        tau: Time step (s).
        closure: Torque/mass relation, see :class:`DiffusionClosure`.
        F_in: Torque imposed at ``h[0]``.
        Mdot_out: Prescribed ``dF/dh`` at the outer node; negative values
            remove mass through the outer boundary.
        eps: Relative tolerance on the Newton update (max norm).
        max_iter: Iteration budget.

    Returns:
        Number of Newton iterations used.

    Raises:
        NumericalError: If the iteration does not converge within
            ``max_iter`` iterations or produces non-finite values.
    """

    h = np.asarray(h, dtype=float)
    if h.ndim != 1 or h.size < 3:
        raise ValueError("diffusion step needs a one-dimensional grid of at least three nodes")
    if F.shape != h.shape:
        raise ValueError("grid and torque size mismatch")
    if tau <= 0.0:
        raise ValueError("tau must be positive")

    d, widths = _control_widths(h)
    hi = h[1:]
    W_old = closure.w(hi, F[1:])
    W = W_old.copy()
    F_new = np.empty_like(h)
    F_new[0] = F_in

    for iteration in range(1, max_iter + 1):
        F_new[1:] = closure.torque(hi, W)
        dF = closure.dtorque_dw(hi, W)
        slope = np.diff(F_new) / d  # slope[j] between nodes j and j+1
        outer_flux = np.append(slope[1:], Mdot_out)
        residual = (W - W_old) * widths - tau * (outer_flux - slope)

        # Jacobian of the residual with respect to W[1..N-1]
        diag = widths + tau * dF * (1.0 / d + np.append(1.0 / d[1:], 0.0))
        lower = -tau * dF[:-1] / d[1:]
        upper = -tau * dF[1:] / d[1:]
        delta = _solve_tridiagonal(lower, diag, upper, -residual)
        if not np.all(np.isfinite(delta)):
            raise NumericalError(f"non-finite Newton update in diffusion step after {iteration} iterations")

        W = np.maximum(W + delta, 0.0)
        scale = np.max(np.abs(W))
        if np.max(np.abs(delta)) <= eps * scale:
            F_new[1:] = closure.torque(hi, W)
            F[:] = F_new
            logger.debug("nonlinear diffusion converged: %d iterations, tau=%e", iteration, tau)
            return iteration

    raise NumericalError(f"nonlinear diffusion did not converge in {max_iter} iterations (eps={eps:g})")
