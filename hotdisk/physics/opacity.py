"""Opacity-law closure between viscous torque and surface density.

For a Kramers-like opacity ``kappa = kappa0 rho^zeta T^-gamma`` the
vertically averaged alpha-disk equations (Ketsaris & Shakura 1998;
Suleimanov, Lipunova & Shakura 2007) reduce to monomials in the torque
``F`` and the radius ``R``.  The four equations

* ``F / (2 pi R^2) = alpha (R_g/mu) T_c Sigma_0 / Pi_3``
* ``T_c^4 = 3/32 T_eff^4 Sigma_0 kappa_c / Pi_4`` with
  ``sigma T_eff^4 = 3 F omega / (8 pi R^2)``
* ``rho_c = Sigma_0 / (2 Pi_2 z_0)``
* ``z_0^2 = Pi_1 (R_g/mu) T_c / omega^2``

are linear in the logarithms of ``T_c``, ``Sigma_0``, ``z_0`` and
``rho_c`` and are solved once per run.  The result is expressed in the form
used by the diffusion equation

    W(F, h) = F^(1-m) h^n / ((1-m) D)

where ``W = 4 pi h^3 Sigma / (GM)^2`` is the disk mass per unit ``h``.
"""
from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from functools import cached_property
from typing import Callable, Optional

import numpy as np
from scipy.integrate import solve_ivp
from scipy.optimize import brentq

from .. import constants
from ..errors import ConfigurationError, NumericalError

__all__ = ["OpacityLaw", "OpacityParameters", "OpacityClosure"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OpacityParameters:
    """Opacity normalisation, exponents and vertical-structure factors."""

    kappa0: float
    zeta: float
    gamma: float
    Pi1: float
    Pi2: float
    Pi3: float
    Pi4: float


class OpacityLaw(str, enum.Enum):
    """Supported opacity laws."""

    KRAMERS = "Kramers"
    OPAL = "OPAL"

    @classmethod
    def parse(cls, value: "OpacityLaw | str") -> "OpacityLaw":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError as exc:
            names = [law.value for law in cls]
            raise ConfigurationError(f"Unknown opacity law {value!r}; expected one of {names}") from exc

    @property
    def parameters(self) -> OpacityParameters:
        return _OPACITY_PARAMETERS[self]


_OPACITY_PARAMETERS = {
    # kappa ~ rho / T^(7/2)
    OpacityLaw.KRAMERS: OpacityParameters(
        kappa0=5.0e24, zeta=1.0, gamma=3.5, Pi1=5.13, Pi2=0.52, Pi3=1.13, Pi4=0.46
    ),
    # kappa ~ rho / T^(5/2), fit to OPAL tables around 1e4 K
    OpacityLaw.OPAL: OpacityParameters(
        kappa0=1.5e20, zeta=1.0, gamma=2.5, Pi1=6.31, Pi2=0.50, Pi3=1.17, Pi4=0.46
    ),
}


def _solve_vertical_structure(par: OpacityParameters, GM: float, alpha: float, mu: float) -> np.ndarray:
    """Return log-coefficients of ``(T_c, Sigma_0, z_0, rho_c)``.

    Column 0 holds the constants, column 1 the exponents of ``F`` and
    column 2 the exponents of ``R``.
    """

    L = math.log(constants.R_GAS / mu)
    ln_teff4 = math.log(3.0 / (8.0 * math.pi * constants.SIGMA_SB)) + 0.5 * math.log(GM)
    # unknowns: ln T_c, ln Sigma_0, ln z_0, ln rho_c
    A = np.array(
        [
            [1.0, 1.0, 0.0, 0.0],
            [4.0 + par.gamma, -1.0, 0.0, -par.zeta],
            [0.0, -1.0, 1.0, 1.0],
            [-1.0, 0.0, 2.0, 0.0],
        ]
    )
    b = np.array(
        [
            [-math.log(2.0 * math.pi) - math.log(alpha) - L + math.log(par.Pi3), 1.0, -2.0],
            [ln_teff4 + math.log(3.0 / 32.0) + math.log(par.kappa0) - math.log(par.Pi4), 1.0, -3.5],
            [-math.log(2.0 * par.Pi2), 0.0, 0.0],
            [math.log(par.Pi1) + L - math.log(GM), 0.0, 3.0],
        ]
    )
    return np.linalg.solve(A, b)


@dataclass(frozen=True)
class OpacityClosure:
    """Immutable closure coefficients for one run.

    Implements the torque/diffusion-coefficient capability consumed by
    :func:`hotdisk.physics.viscosity.step_nonlinear_diffusion`.
    """

    law: OpacityLaw
    Mx: float
    alpha: float
    mu: float
    m: float
    n: float
    D: float
    height_coeff: float
    height_F_exp: float
    height_R_exp: float

    @classmethod
    def from_law(cls, law: OpacityLaw | str, Mx: float, alpha: float, mu: float) -> "OpacityClosure":
        """Resolve the closure for ``law``; ``Mx`` in grams."""

        law = OpacityLaw.parse(law)
        if Mx <= 0.0 or alpha <= 0.0 or mu <= 0.0:
            raise ConfigurationError("Mx, alpha and mu must be positive")
        GM = constants.G * Mx
        coeffs = _solve_vertical_structure(law.parameters, GM, alpha, mu)
        ln_sigma0, sigma_F, sigma_R = coeffs[1]
        ln_z0, z_F, z_R = coeffs[2]
        m = 1.0 - sigma_F
        n = 3.0 + 2.0 * sigma_R
        # Sigma = 2 Sigma_0 and W = 4 pi h^3 Sigma / GM^2 with R = h^2 / GM
        D = GM ** (2.0 + sigma_R) / ((1.0 - m) * 8.0 * math.pi * math.exp(ln_sigma0))
        closure = cls(
            law=law,
            Mx=float(Mx),
            alpha=float(alpha),
            mu=float(mu),
            m=float(m),
            n=float(n),
            D=float(D),
            height_coeff=float(math.exp(ln_z0)),
            height_F_exp=float(z_F),
            height_R_exp=float(z_R),
        )
        logger.debug("Opacity closure %s: m=%.6g n=%.6g D=%.6e", law.value, m, n, D)
        return closure

    @property
    def GM(self) -> float:
        return constants.G * self.Mx

    # ------------------------------------------------------------------
    # torque <-> mass per unit h
    # ------------------------------------------------------------------
    def w(self, h, F):
        """Disk mass per unit ``h`` for torque ``F``."""

        F = np.maximum(np.asarray(F, dtype=float), 0.0)
        return F ** (1.0 - self.m) * np.asarray(h, dtype=float) ** self.n / ((1.0 - self.m) * self.D)

    def torque(self, h, W):
        """Inverse of :meth:`w`."""

        W = np.maximum(np.asarray(W, dtype=float), 0.0)
        base = (1.0 - self.m) * self.D * W * np.asarray(h, dtype=float) ** (-self.n)
        return base ** (1.0 / (1.0 - self.m))

    def dtorque_dw(self, h, W):
        """Derivative ``dF/dW`` at fixed ``h``; vanishes at ``W = 0``."""

        W = np.maximum(np.asarray(W, dtype=float), 0.0)
        k = (1.0 - self.m) * self.D * np.asarray(h, dtype=float) ** (-self.n)
        return k ** (1.0 / (1.0 - self.m)) * W ** (self.m / (1.0 - self.m)) / (1.0 - self.m)

    def sigma(self, h, W):
        """Surface density ``Sigma = W GM^2 / (4 pi h^3)`` in g cm^-2."""

        h = np.asarray(h, dtype=float)
        return np.asarray(W, dtype=float) * self.GM ** 2 / (4.0 * math.pi * h ** 3)

    def height(self, R, F):
        """Semi-thickness ``z_0`` of the disk in cm."""

        F = np.maximum(np.asarray(F, dtype=float), 0.0)
        return self.height_coeff * F ** self.height_F_exp * np.asarray(R, dtype=float) ** self.height_R_exp

    # ------------------------------------------------------------------
    # quasi-stationary shape (Lipunova & Shakura 2000)
    # ------------------------------------------------------------------
    @cached_property
    def _shape(self) -> Callable[[np.ndarray], np.ndarray]:
        return _quasistationary_shape(self.m, self.n)

    def f_F(self, xi):
        """Quasi-stationary torque shape with ``f(0)=0``, ``f(1)=1``, ``f'(1)=0``.

        ``f`` solves ``f'' = -k xi^n f^(1-m)``, the spatial part of the
        separable solution ``F(h, t) = F_0(t) f(h/h_out)``.
        """

        xi = np.asarray(xi, dtype=float)
        return np.maximum(self._shape(np.clip(xi, 0.0, 1.0)), 0.0)


def _integrate_shape(k: float, m: float, n: float, dense: bool = False):
    def rhs(x, y):
        f, df = y
        return [df, -k * x ** n * max(f, 0.0) ** (1.0 - m)]

    return solve_ivp(rhs, (1.0, 0.0), [1.0, 0.0], rtol=1e-10, atol=1e-12, dense_output=dense)


def _quasistationary_shape(m: float, n: float) -> Callable[[np.ndarray], np.ndarray]:
    def f_at_zero(k: float) -> float:
        sol = _integrate_shape(k, m, n)
        if not sol.success:
            raise NumericalError(f"quasi-stationary shape integration failed: {sol.message}")
        return float(sol.y[0, -1])

    k_lo, k_hi = 1.0e-3, 1.0
    k_max: Optional[float] = None
    for _ in range(60):
        if f_at_zero(k_hi) < 0.0:
            k_max = k_hi
            break
        k_lo, k_hi = k_hi, 2.0 * k_hi
    if k_max is None:
        raise NumericalError("could not bracket the quasi-stationary eigenvalue")
    k = brentq(f_at_zero, k_lo, k_max, xtol=1e-12, rtol=1e-12)
    sol = _integrate_shape(k, m, n, dense=True)
    logger.debug("quasi-stationary shape: m=%.4g n=%.4g eigenvalue k=%.8g", m, n, k)

    def shape(xi: np.ndarray) -> np.ndarray:
        return sol.sol(xi)[0]

    return shape
