"""Time loop of the accretion disk evolution.

The engine owns the grid, the torque profile and the boundary state and
advances them with a fixed time step.  Each step runs

1. the implicit diffusion step of the torque,
2. the inner accretion rate ``Mdot_in = dF/dh`` at the inner edge,
3. the radiative fields and the X-ray luminosity,
4. the boundary policy, which may move the outer edge inwards,
5. the disk mass and the optical magnitudes of the remaining hot disk,

and emits one :class:`StepRecord`.  Records are labelled with
``t = k tau`` for ``k = 0 .. floor(T / tau)``.  A convergence failure of the
diffusion solver ends the run early; records already emitted are kept.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np

from . import constants
from .config_utils import PhysicalSetup, resolve_physical_setup
from .errors import NumericalError
from .grid import AngularMomentumGrid
from .physics.boundary import MIN_ACTIVE_POINTS, AnyBoundary, make_boundary
from .physics.initfields import canonical_shape, initial_torque_from_config
from .physics.opacity import OpacityClosure
from .physics.radiation import IrradiationModel, RadiativeFields, compute_radiative_fields, make_irradiation
from .physics.spectrum import luminosity, magnitudes
from .physics.viscosity import DEFAULT_MAX_ITER, step_nonlinear_diffusion
from .runtime import RecordHistory
from .schema import Config

logger = logging.getLogger(__name__)

STOP_COMPLETED = "completed"
STOP_NUMERICAL_ERROR = "numerical_error"
# relative slack when counting the steps that fit into the run duration
STEP_COUNT_RTOL = 1.0e-9

RECORD_COLUMNS = (
    ("t", "days", "Time since the start of the run"),
    ("Mdot", "g/s", "Accretion rate through the inner edge"),
    ("Lx", "erg/s", "X-ray luminosity of the inner disk in the configured band"),
    ("H2R", "float", "Relative semi-thickness at the outer edge of the hot disk"),
    ("Rhot", "Rsun", "Outer radius of the hot disk"),
    ("Rhot2Rtid", "float", "Outer radius of the hot disk over the tidal radius"),
    ("Tphout", "K", "Photospheric temperature at the outer edge"),
    ("Mdisk", "g", "Mass of the hot disk"),
    ("Cirr", "float", "Irradiation factor at the outer edge"),
    ("Qirr2Qvisout", "float", "Irradiation to viscous heating ratio at the outer edge"),
)


def count_steps(time: float, tau: float) -> int:
    """Number of records ``floor(time / tau) + 1`` of a run."""

    return int(math.floor(time / tau * (1.0 + STEP_COUNT_RTOL))) + 1


def disk_mass(R: np.ndarray, Sigma: np.ndarray) -> float:
    """Mass ``sum 0.5 Sigma_i 2 pi R_i dR_i`` with one-sided ``dR`` at the ends."""

    R = np.asarray(R, dtype=float)
    if R.size < 2:
        return 0.0
    step_R = np.empty_like(R)
    step_R[0] = R[1] - R[0]
    step_R[-1] = R[-1] - R[-2]
    step_R[1:-1] = R[2:] - R[:-2]
    return float(np.sum(0.5 * np.asarray(Sigma, dtype=float) * 2.0 * math.pi * R * step_R))


@dataclass
class DiskState:
    """Evolving boundary quantities of the run."""

    Mdot_in: float = 0.0
    Mdot_in_prev: float = 0.0
    Mdot_out: float = 0.0
    C_irr: float = 0.0
    step_index: int = 0


@dataclass(frozen=True)
class StepRecord:
    """Global disk parameters after one time step."""

    t: float
    Mdot: float
    Lx: float
    H2R: float
    Rhot: float
    Rhot2Rtid: float
    Tphout: float
    Mdisk: float
    Cirr: float
    Qirr2Qvisout: float
    magnitudes: Dict[str, float] = field(default_factory=dict)

    def as_row(self) -> Dict[str, float]:
        row = {name: getattr(self, name) for name, _, _ in RECORD_COLUMNS}
        row.update(self.magnitudes)
        return row


@dataclass
class RunResult:
    """Records of a run and the reason it stopped."""

    records: List[StepRecord]
    stop_reason: str
    steps_planned: int
    error: Optional[str] = None

    @property
    def steps_run(self) -> int:
        return len(self.records)

    def history(self) -> RecordHistory:
        history = RecordHistory(name for name, _, _ in RECORD_COLUMNS)
        for record in self.records:
            history.append_row(record.as_row())
        return history


StepCallback = Callable[[StepRecord, RadiativeFields], None]


class DiskEvolutionEngine:
    """Advance a hot accretion disk with a fixed time step."""

    def __init__(
        self,
        setup: PhysicalSetup,
        closure: OpacityClosure,
        grid: AngularMomentumGrid,
        F: np.ndarray,
        boundary: AnyBoundary,
        irradiation: IrradiationModel,
        *,
        fc: float = 1.7,
        bands: Sequence[str] = constants.DEFAULT_BANDS,
        eps: float = 1.0e-6,
        max_iter: int = DEFAULT_MAX_ITER,
        Mdot_out: float = 0.0,
    ) -> None:
        if F.shape != grid.h_nodes.shape:
            raise ValueError("torque profile must match the grid capacity")
        self.setup = setup
        self.closure = closure
        self.grid = grid
        self.F = F
        self.boundary = boundary
        self.irradiation = irradiation
        self.fc = float(fc)
        self.bands = tuple(bands)
        self.eps = float(eps)
        self.max_iter = int(max_iter)
        self.state = DiskState(Mdot_out=float(Mdot_out))
        self.fields: Optional[RadiativeFields] = None
        self._at_floor = False

    @classmethod
    def from_config(cls, cfg: Config) -> "DiskEvolutionEngine":
        """Resolve units, closure, grid, initial state and policies of ``cfg``."""

        setup = resolve_physical_setup(cfg)
        disk = cfg.disk
        closure = OpacityClosure.from_law(disk.opacity, setup.Mx, disk.alpha, disk.mu)
        grid = AngularMomentumGrid.build(
            setup.h_in, setup.h_out, cfg.numerics.Nx, cfg.numerics.grid_scale, setup.GM
        )
        initial = initial_torque_from_config(disk.initial, grid.h, closure)
        irradiation = make_irradiation(cfg.irradiation.type, cfg.irradiation.C_irr)
        boundary = make_boundary(
            disk.boundary.type,
            alpha=disk.alpha,
            Mx=setup.Mx,
            T_hot=getattr(disk.boundary, "T_hot", 0.0),
            kMdot_out=getattr(disk.boundary, "kMdot_out", 0.0),
            C_irr=cfg.irradiation.C_irr,
            initial_shape=disk.initial.shape,
        )
        logger.info(
            "Disk setup: Mx=%.3g Msun r_in=%.4e cm r_out=%.4e cm (tidal %.4e cm) eta=%.4f",
            cfg.binary.Mx,
            setup.r_in,
            setup.r_out,
            setup.r_out_tidal,
            setup.eta,
        )
        logger.info(
            "Closure %s: m=%.4g n=%.4g D=%.4e; initial=%s boundary=%s irradiation=%s",
            closure.law.value,
            closure.m,
            closure.n,
            closure.D,
            canonical_shape(disk.initial.shape),
            boundary.name,
            irradiation.kind,
        )
        return cls(
            setup,
            closure,
            grid,
            initial.F,
            boundary,
            irradiation,
            fc=cfg.irradiation.dilution,
            bands=cfg.io.bands,
            eps=cfg.numerics.eps,
            max_iter=cfg.numerics.max_iter,
            Mdot_out=initial.Mdot_out,
        )

    @property
    def n_steps(self) -> int:
        return count_steps(self.setup.time, self.setup.tau)

    @property
    def F_active(self) -> np.ndarray:
        return self.F[: self.grid.n_active]

    def step(self) -> StepRecord:
        """Advance by one time step and return its record.

        Raises
        ------
        NumericalError
            If the diffusion step does not converge.
        """

        grid = self.grid
        state = self.state
        setup = self.setup
        h = grid.h
        F = self.F_active

        iterations = step_nonlinear_diffusion(
            h,
            F,
            setup.tau,
            self.closure,
            F_in=float(F[0]),
            Mdot_out=state.Mdot_out,
            eps=self.eps,
            max_iter=self.max_iter,
        )
        state.Mdot_in_prev = state.Mdot_in
        state.Mdot_in = float((F[1] - F[0]) / (h[1] - h[0]))

        fields = compute_radiative_fields(
            h,
            grid.R,
            F,
            self.closure,
            self.irradiation,
            Mdot_in=state.Mdot_in,
            kerr=setup.kerr,
            eta=setup.eta,
            fc=self.fc,
        )
        Lx = luminosity(grid.R, fields.Tph_X, setup.nu_min, setup.nu_max) / self.fc ** 4

        state.Mdot_out = self.boundary.outflow_rate(state.Mdot_in, state.Mdot_out)
        edge = self.boundary.locate(fields, state.Mdot_in, state.Mdot_in_prev)
        if grid.truncate(edge + 1):
            fields = fields.truncated(grid.n_active)
            logger.debug(
                "outer edge moved to node %d, R=%.4e cm (%s)",
                edge,
                float(grid.R[-1]),
                self.boundary.name,
            )
        at_floor = edge <= MIN_ACTIVE_POINTS - 1
        if at_floor and not self._at_floor:
            logger.warning(
                "%s boundary reached the innermost allowed edge at t=%.4g d; the hot disk is down to %d nodes",
                self.boundary.name,
                state.step_index * setup.tau / constants.DAY,
                MIN_ACTIVE_POINTS,
            )
        self._at_floor = at_floor

        R = fields.R
        state.C_irr = float(fields.C_irr[-1])
        record = StepRecord(
            t=state.step_index * setup.tau / constants.DAY,
            Mdot=state.Mdot_in,
            Lx=float(Lx),
            H2R=float(fields.Height[-1] / R[-1]),
            Rhot=float(R[-1] / constants.R_SUN),
            Rhot2Rtid=float(R[-1] / setup.r_out_tidal),
            Tphout=float(fields.Tph[-1]),
            Mdisk=disk_mass(R, fields.Sigma),
            Cirr=state.C_irr,
            Qirr2Qvisout=_heating_ratio(float(fields.Qx[-1]), float(fields.Tph_vis[-1])),
            magnitudes=magnitudes(R, fields.Tph, self.bands, cos_i=setup.cos_i, distance=setup.distance),
        )
        logger.debug(
            "step %d t=%.4g d: %d Newton iterations, Mdot=%.4e g/s, n_active=%d",
            state.step_index,
            record.t,
            iterations,
            record.Mdot,
            grid.n_active,
        )
        self.fields = fields
        state.step_index += 1
        return record

    def run(self, on_step: Optional[StepCallback] = None, progress: Any = None) -> RunResult:
        """Run all steps; stop early and keep the records on a solver failure."""

        total = self.n_steps
        records: List[StepRecord] = []
        stop_reason = STOP_COMPLETED
        error: Optional[str] = None
        while self.state.step_index < total:
            try:
                record = self.step()
            except NumericalError as exc:
                logger.error(
                    "Diffusion solver failed at step %d (t=%.4g d): %s",
                    self.state.step_index,
                    self.state.step_index * self.setup.tau / constants.DAY,
                    exc,
                )
                stop_reason = STOP_NUMERICAL_ERROR
                error = str(exc)
                break
            records.append(record)
            if on_step is not None:
                on_step(record, self.fields)
            if progress is not None:
                progress.update(len(records) - 1, record.t * constants.DAY)
        if progress is not None and records:
            progress.finish(len(records) - 1, records[-1].t * constants.DAY)
        logger.info("Run finished after %d of %d steps: %s", len(records), total, stop_reason)
        return RunResult(records=records, stop_reason=stop_reason, steps_planned=total, error=error)

    def describe(self) -> Dict[str, Any]:
        """Static description of the run for the summary file."""

        return {
            "setup": self.setup.as_dict(),
            "closure": {
                "opacity": self.closure.law.value,
                "m": self.closure.m,
                "n": self.closure.n,
                "D": self.closure.D,
            },
            "boundary": self.boundary.name,
            "irradiation": self.irradiation.kind,
            "grid": {"capacity": self.grid.capacity, "n_active": self.grid.n_active},
        }


def _heating_ratio(Qx: float, Tph_vis: float) -> float:
    Qvis = constants.SIGMA_SB * Tph_vis ** 4
    if Qvis > 0.0:
        return Qx / Qvis
    return 0.0 if Qx == 0.0 else math.inf
