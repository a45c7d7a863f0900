"""Initial torque profiles on the angular-momentum grid.

Each shape maps the grid ``h`` to the starting torque ``F(h, 0)``.  The
normalised coordinate ``xi = (h - h_in) / (h_out - h_in)`` runs from zero at
the inner edge to one at the outer edge, so ``F[0] = 0`` for every shape.
Only ``sinusparabola`` prescribes a non-zero initial outflow rate
``Mdot_out`` through the outer boundary.
"""
from __future__ import annotations

import logging
import math
from typing import Any, NamedTuple, Optional

import numpy as np

from ..errors import ConfigurationError
from .boundary import sigma_hot_disk
from .opacity import OpacityClosure

__all__ = ["INITIAL_SHAPES", "InitialTorque", "canonical_shape", "initial_torque", "initial_torque_from_config"]

logger = logging.getLogger(__name__)

INITIAL_SHAPES = ("powerF", "powerSigma", "sinusF", "sinusgauss", "sinusparabola", "quasistat")
_SHAPE_ALIASES = {"power": "powerF", "sinus": "sinusF"}

SINUSPARABOLA_H_FRACTION = 0.9
SINUSGAUSS_SEED = 1.0e-6


class InitialTorque(NamedTuple):
    F: np.ndarray
    Mdot_out: float
    F0: float


def canonical_shape(shape: str) -> str:
    """Resolve aliases such as ``power`` and ``sinus``."""

    name = _SHAPE_ALIASES.get(str(shape), str(shape))
    if name not in INITIAL_SHAPES:
        raise ConfigurationError(
            f"Unknown initial condition shape {shape!r}; expected one of "
            f"{INITIAL_SHAPES + tuple(_SHAPE_ALIASES)}"
        )
    return name


def _xi(h: np.ndarray) -> np.ndarray:
    return (h - h[0]) / (h[-1] - h[0])


def _sinus(h: np.ndarray, F0: float) -> np.ndarray:
    return F0 * np.sin(_xi(h) * math.pi / 2.0)


def _sinusgauss(h: np.ndarray, F0: float, width: float, r_cut: float) -> np.ndarray:
    h_out = h[-1]

    def gauss(x):
        return F0 * np.exp(-((x - h_out) ** 2) / (2.0 * h_out * h_out / (width * width)))

    F_cut = gauss(h_out / math.sqrt(r_cut))
    F = np.maximum(gauss(h) - F_cut, 0.0)
    return F + _sinus(h, SINUSGAUSS_SEED * F0)


def _sinusparabola(h: np.ndarray, F0: float, kMdot_out: float) -> tuple[np.ndarray, float]:
    h_in = h[0]
    h_out = h[-1]
    h_F0 = SINUSPARABOLA_H_FRACTION * h_out
    if h_F0 <= h_in:
        raise ConfigurationError("sinusparabola needs h_in below 0.9 h_out")
    delta_h = h_out - h_F0
    F = np.empty_like(h)
    inner = h < h_F0
    F[inner] = F0 * np.sin((h[inner] - h_in) / (h_F0 - h_in) * math.pi / 2.0)
    tail = h[~inner] - h_F0
    F[~inner] = F0 * (1.0 - kMdot_out * math.pi / (4.0 * (h_F0 - h_in) * delta_h) * tail * tail)
    # 2 pi times the slope of the parabolic tail at h_out
    Mdot_out = -kMdot_out * F0 / (h_F0 - h_in) * math.pi * math.pi
    return F, Mdot_out


def initial_torque(
    shape: str,
    h: np.ndarray,
    closure: OpacityClosure,
    *,
    F0: float = 1.0e36,
    Mdot0: Optional[float] = None,
    power_order: float = 6.0,
    gauss_width: float = 5.0,
    gauss_r_cut: float = 0.01,
    kMdot_out: float = 2.0,
) -> InitialTorque:
    """Return the starting torque profile for ``shape``.

    Parameters
    ----------
    shape:
        One of :data:`INITIAL_SHAPES` or an alias.
    h:
        Full angular-momentum grid (cm^2 s^-1).
    closure:
        Opacity closure of the run; used by ``powerSigma``, ``quasistat`` and
        ``sinusparabola``.
    F0:
        Torque amplitude (dyn cm).  Replaced by a value derived from
        ``Mdot0`` for ``sinusF``/``quasistat`` and from the critical surface
        density for ``sinusparabola``.
    Mdot0:
        Optional initial accretion rate (g s^-1).
    """

    name = canonical_shape(shape)
    h = np.asarray(h, dtype=float)
    if h.ndim != 1 or h.size < 2:
        raise ValueError("initial torque needs a grid of at least two nodes")
    h_in = float(h[0])
    h_out = float(h[-1])
    Mdot_out = 0.0
    if Mdot0 is not None and Mdot0 > 0.0 and name not in {"sinusF", "quasistat"}:
        raise ConfigurationError(f"an initial accretion rate cannot be combined with shape {name!r}")

    if name == "powerF":
        F = F0 * _xi(h) ** power_order
    elif name == "powerSigma":
        sigma_ratio = _xi(h) ** power_order
        F = F0 * (h / h_out) ** ((3.0 - closure.n) / (1.0 - closure.m)) * sigma_ratio ** (1.0 / (1.0 - closure.m))
    elif name == "sinusF":
        if Mdot0 is not None and Mdot0 > 0.0:
            F0 = Mdot0 * (h_out - h_in) * 2.0 / math.pi
        F = _sinus(h, F0)
    elif name == "sinusgauss":
        F = _sinusgauss(h, F0, gauss_width, gauss_r_cut)
    elif name == "sinusparabola":
        R_out = h_out * h_out / closure.GM
        sigma_out = sigma_hot_disk(R_out, closure.alpha, closure.Mx)
        W_out = sigma_out * 4.0 * math.pi * h_out ** 3 / closure.GM ** 2
        F0 = float(closure.torque(h_out, W_out))
        F, Mdot_out = _sinusparabola(h, F0, kMdot_out)
    else:  # quasistat
        if Mdot0 is not None and Mdot0 > 0.0:
            F0 = Mdot0 * (h_out - h_in) / h_out * h_in / float(closure.f_F(h_in / h_out))
        F = F0 * closure.f_F(h / h_out) * (1.0 - h_in / h) / (1.0 - h_in / h_out)

    F = np.asarray(F, dtype=float)
    F[0] = 0.0
    if not np.all(np.isfinite(F)) or np.any(F < 0.0):
        raise ConfigurationError(f"initial condition {name!r} produced a non-physical torque profile")
    logger.debug("initial condition %s: F0=%.4e Mdot_out=%.4e", name, F0, Mdot_out)
    return InitialTorque(F=F, Mdot_out=float(Mdot_out), F0=float(F0))


def initial_torque_from_config(initial: Any, h: np.ndarray, closure: OpacityClosure) -> InitialTorque:
    """Build the initial profile from a validated ``disk.initial`` variant."""

    params = initial.model_dump(exclude={"shape"})
    return initial_torque(initial.shape, h, closure, **params)
