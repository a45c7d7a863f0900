"""Configuration schema for accretion disk evolution runs.

The Pydantic models mirror the layout of the YAML run files read by
:mod:`hotdisk.run`.  Initial torque shapes and boundary policies are tagged
unions: each variant carries only the parameters it uses, so that, for
example, an initial accretion rate cannot be combined with a power-law
start.  Physical quantities are given in astronomer-friendly units (solar
masses, days, kpc, keV) and converted by :mod:`hotdisk.config_utils`.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from . import constants
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class Binary(BaseModel):
    """Binary system and central object."""

    Mx: float = Field(10.0, gt=0.0, description="Mass of the central object [M_sun]")
    Mopt: float = Field(1.0, gt=0.0, description="Mass of the optical companion [M_sun]")
    period: float = Field(1.0, gt=0.0, description="Orbital period of the binary [days]")
    kerr: float = Field(0.0, ge=-1.0, le=1.0, description="Dimensionless spin of the black hole")
    inclination: float = Field(0.0, ge=0.0, le=90.0, description="Inclination of the disk [deg]")
    distance: float = Field(10.0, gt=0.0, description="Distance to the system [kpc]")
    r_in: Optional[float] = Field(
        None,
        gt=0.0,
        description="Inner disk radius [Schwarzschild radii 2GM/c^2]; defaults to the ISCO",
    )
    r_out: Optional[float] = Field(
        None,
        gt=0.0,
        description="Outer disk radius [R_sun]; defaults to 0.8 of the Roche lobe",
    )


class _Variant(BaseModel):
    model_config = ConfigDict(extra="forbid")


class PowerFInitial(_Variant):
    """``F ~ xi^power_order``."""

    shape: Literal["powerF", "power"] = "powerF"
    F0: float = Field(1.0e36, gt=0.0, description="Torque at the outer edge [dyn cm]")
    power_order: float = Field(6.0, gt=0.0)


class PowerSigmaInitial(_Variant):
    """``Sigma ~ xi^power_order``."""

    shape: Literal["powerSigma"] = "powerSigma"
    F0: float = Field(1.0e36, gt=0.0, description="Torque at the outer edge [dyn cm]")
    power_order: float = Field(6.0, gt=0.0)


class SinusFInitial(_Variant):
    """``F ~ sin(xi pi/2)``."""

    shape: Literal["sinusF", "sinus"] = "sinusF"
    F0: float = Field(1.0e36, gt=0.0, description="Torque at the outer edge [dyn cm]")
    Mdot0: Optional[float] = Field(
        None,
        ge=0.0,
        description="Initial accretion rate [g/s]; when positive it replaces F0",
    )


class SinusGaussInitial(_Variant):
    """Gaussian ring near the outer edge plus a weak sinus."""

    shape: Literal["sinusgauss"] = "sinusgauss"
    F0: float = Field(1.0e36, gt=0.0, description="Amplitude of the Gaussian [dyn cm]")
    gauss_width: float = Field(5.0, gt=0.0, description="Width parameter s: sigma_h = h_out / s")
    gauss_r_cut: float = Field(
        0.01,
        gt=0.0,
        lt=1.0,
        description="Radius, relative to r_out, where the Gaussian is cut to zero",
    )


class SinusParabolaInitial(_Variant):
    """Sinus with a parabolic tail at critical surface density."""

    shape: Literal["sinusparabola"] = "sinusparabola"
    kMdot_out: float = Field(2.0, ge=0.0, description="Initial outflow rate in units of the tail slope")


class QuasistatInitial(_Variant):
    """Quasi-stationary solution of Lipunova & Shakura (2000)."""

    shape: Literal["quasistat"] = "quasistat"
    F0: float = Field(1.0e36, gt=0.0, description="Torque at the outer edge [dyn cm]")
    Mdot0: Optional[float] = Field(
        None,
        ge=0.0,
        description="Initial accretion rate [g/s]; when positive it replaces F0",
    )


InitialCondition = Annotated[
    Union[
        PowerFInitial,
        PowerSigmaInitial,
        SinusFInitial,
        SinusGaussInitial,
        SinusParabolaInitial,
        QuasistatInitial,
    ],
    Field(discriminator="shape"),
]


class TeffBoundaryConfig(_Variant):
    """Keep the photospheric temperature of the edge above ``T_hot``."""

    type: Literal["Teff"] = "Teff"
    T_hot: float = Field(0.0, ge=0.0, description="Minimum temperature of the hot disk [K]")


class TirrBoundaryConfig(_Variant):
    """Keep the irradiation temperature of the edge above ``T_hot``."""

    type: Literal["Tirr"] = "Tirr"
    T_hot: float = Field(0.0, ge=0.0, description="Minimum irradiation temperature [K]")


class FourSigmaCritBoundaryConfig(_Variant):
    """Keep the surface density of the edge above ``4 Sigma_crit``."""

    type: Literal["fourSigmaCrit"] = "fourSigmaCrit"


class MdotOutBoundaryConfig(_Variant):
    """Outflow ``Mdot_out = -kMdot_out Mdot_in`` and ``Sigma >= Sigma_crit``."""

    type: Literal["MdotOut"] = "MdotOut"
    kMdot_out: float = Field(2.0, ge=0.0)


BoundaryCondition = Annotated[
    Union[
        TeffBoundaryConfig,
        TirrBoundaryConfig,
        FourSigmaCritBoundaryConfig,
        MdotOutBoundaryConfig,
    ],
    Field(discriminator="type"),
]


class Disk(BaseModel):
    """Disk model: viscosity, opacity law, initial state and outer edge."""

    alpha: float = Field(0.25, gt=0.0, le=1.0, description="Shakura-Sunyaev viscosity parameter")
    mu: float = Field(0.62, gt=0.0, description="Mean molecular weight")
    opacity: Literal["Kramers", "OPAL"] = Field(
        "Kramers",
        description="Kramers (kappa ~ rho/T^3.5) or OPAL (kappa ~ rho/T^2.5)",
    )
    initial: InitialCondition = Field(default_factory=PowerFInitial)
    boundary: BoundaryCondition = Field(default_factory=TeffBoundaryConfig)


class Irradiation(BaseModel):
    """X-ray emission of the inner disk and irradiation of the outer disk."""

    type: Literal["const", "square"] = Field(
        "const",
        description="const: Qx = C_irr L / (4 pi R^2); square: additionally times (H/R)^2",
    )
    C_irr: float = Field(0.0, ge=0.0, description="Irradiation factor")
    dilution: float = Field(1.7, gt=0.0, description="Colour correction factor fc of the inner disk")
    nu_min: float = Field(1.0, gt=0.0, description="Lower bound of the X-ray band [keV]")
    nu_max: float = Field(12.0, gt=0.0, description="Upper bound of the X-ray band [keV]")

    @model_validator(mode="after")
    def _check_band(self) -> "Irradiation":
        if self.nu_max <= self.nu_min:
            raise ConfigurationError(
                f"irradiation.nu_max ({self.nu_max}) must exceed irradiation.nu_min ({self.nu_min})"
            )
        return self


class Numerics(BaseModel):
    """Grid and time integration controls."""

    Nx: int = Field(1000, ge=3, description="Number of grid nodes")
    grid_scale: Literal["log", "linear"] = Field("log", description="Spacing of the angular-momentum grid")
    time: float = Field(25.0, ge=0.0, description="Duration of the run [days]")
    tau: float = Field(0.25, gt=0.0, description="Time step [days]")
    eps: float = Field(1.0e-6, gt=0.0, lt=1.0, description="Relative tolerance of the Newton iteration")
    max_iter: int = Field(100, ge=1, description="Newton iteration budget per step")


class Progress(BaseModel):
    """Console progress display controls."""

    enable: bool = Field(False, description="Show a progress bar with ETA on the CLI.")
    refresh_seconds: float = Field(1.0, gt=0.0)


class IO(BaseModel):
    """Output location and formats."""

    outdir: Path = Path(".")
    prefix: str = Field("hotdisk", min_length=1)
    fulldata: bool = Field(False, description="Write the radial structure of every step to PREFIX_<k>.dat")
    parquet: bool = Field(False, description="Also write the summary table as Parquet with unit metadata")
    bands: List[str] = Field(default_factory=lambda: list(constants.DEFAULT_BANDS))
    quiet: bool = Field(False, description="Suppress INFO logging and Python warnings.")
    progress: Progress = Field(default_factory=Progress)

    @field_validator("bands")
    def _check_bands(cls, value: List[str]) -> List[str]:
        unknown = [name for name in value if name not in constants.BANDS]
        if unknown:
            raise ConfigurationError(
                f"Unknown photometric bands {unknown}; expected a subset of {sorted(constants.BANDS)}"
            )
        if len(set(value)) != len(value):
            raise ConfigurationError("io.bands must not contain duplicates")
        return list(value)


class Config(BaseModel):
    """Top-level configuration object."""

    binary: Binary = Field(default_factory=Binary)
    disk: Disk = Field(default_factory=Disk)
    irradiation: Irradiation = Field(default_factory=Irradiation)
    numerics: Numerics = Field(default_factory=Numerics)
    io: IO = Field(default_factory=IO)

    @model_validator(mode="after")
    def _check_boundary_irradiation(self) -> "Config":
        if self.disk.boundary.type == "Tirr" and self.irradiation.C_irr <= 0.0:
            raise ConfigurationError("disk.boundary.type=Tirr requires irradiation.C_irr > 0")
        if self.numerics.tau > self.numerics.time and self.numerics.time > 0.0:
            logger.warning(
                "numerics.tau (%g d) exceeds numerics.time (%g d); only the first step is recorded",
                self.numerics.tau,
                self.numerics.time,
            )
        return self


__all__ = [
    "Binary",
    "PowerFInitial",
    "PowerSigmaInitial",
    "SinusFInitial",
    "SinusGaussInitial",
    "SinusParabolaInitial",
    "QuasistatInitial",
    "InitialCondition",
    "TeffBoundaryConfig",
    "TirrBoundaryConfig",
    "FourSigmaCritBoundaryConfig",
    "MdotOutBoundaryConfig",
    "BoundaryCondition",
    "Disk",
    "Irradiation",
    "Numerics",
    "Progress",
    "IO",
    "Config",
]
