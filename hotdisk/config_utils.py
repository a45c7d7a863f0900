"""Helper utilities for loading and normalising configuration inputs."""
from __future__ import annotations

import logging
import math
import warnings
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from pydantic import ValidationError

from . import constants
from .errors import ConfigurationError
from .physics import orbit
from .schema import Config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PhysicalSetup:
    """Configuration values converted to CGS units."""

    Mx: float
    Mopt: float
    period: float
    kerr: float
    cos_i: float
    distance: float
    r_in: float
    r_out: float
    r_out_tidal: float
    eta: float
    h_in: float
    h_out: float
    nu_min: float
    nu_max: float
    time: float
    tau: float

    @property
    def GM(self) -> float:
        return constants.G * self.Mx

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


def resolve_physical_setup(cfg: Config) -> PhysicalSetup:
    """Convert ``cfg`` to CGS and fill in the default inner and outer radii.

    The inner radius defaults to the ISCO and is otherwise given in
    Schwarzschild radii ``2 G Mx / c^2``; the outer radius defaults to the
    tidal radius and is otherwise given in solar radii.
    """

    binary = cfg.binary
    Mx = binary.Mx * constants.M_SUN
    Mopt = binary.Mopt * constants.M_SUN
    period = binary.period * constants.DAY
    r_out_tidal = orbit.r_out_tidal(Mx, Mopt, period)
    if binary.r_in is None:
        r_in = orbit.r_isco(Mx, binary.kerr)
    else:
        r_in = binary.r_in * 2.0 * orbit.gravitational_radius(Mx)
    r_out = r_out_tidal if binary.r_out is None else binary.r_out * constants.R_SUN
    if not (math.isfinite(r_in) and math.isfinite(r_out)) or r_in >= r_out:
        raise ConfigurationError(
            f"inner radius ({r_in:.4e} cm) must be smaller than the outer radius ({r_out:.4e} cm)"
        )
    GM = constants.G * Mx
    return PhysicalSetup(
        Mx=Mx,
        Mopt=Mopt,
        period=period,
        kerr=float(binary.kerr),
        cos_i=math.cos(math.radians(binary.inclination)),
        distance=binary.distance * constants.KPC,
        r_in=r_in,
        r_out=r_out,
        r_out_tidal=r_out_tidal,
        eta=orbit.efficiency_of_accretion(binary.kerr),
        h_in=math.sqrt(GM * r_in),
        h_out=math.sqrt(GM * r_out),
        nu_min=cfg.irradiation.nu_min * constants.KEV,
        nu_max=cfg.irradiation.nu_max * constants.KEV,
        time=cfg.numerics.time * constants.DAY,
        tau=cfg.numerics.tau * constants.DAY,
    )


def parse_override_value(raw: str) -> Any:
    """Parse a CLI override value into a Python object."""

    text = raw.strip()
    lower = text.lower()
    if lower in {"true", "false"}:
        return lower == "true"
    if lower in {"none", "null"}:
        return None
    if lower in {"nan"}:
        return float("nan")
    if lower in {"inf", "+inf", "+infinity", "infinity"}:
        return float("inf")
    if lower in {"-inf", "-infinity"}:
        return float("-inf")
    try:
        return int(text)
    except ValueError:
        try:
            return float(text)
        except ValueError:
            pass
    if (text.startswith('"') and text.endswith('"')) or (text.startswith("'") and text.endswith("'")):
        return text[1:-1]
    if text.startswith("[") and text.endswith("]"):
        return [parse_override_value(item) for item in text[1:-1].split(",") if item.strip()]
    return text


def apply_overrides_dict(payload: Dict[str, Any], overrides: Sequence[str]) -> Dict[str, Any]:
    """Apply dotted-path overrides such as ``disk.alpha=0.3`` to a configuration dictionary."""

    if not overrides:
        return payload
    for item in overrides:
        key, sep, value_str = item.partition("=")
        if not sep:
            raise ConfigurationError(f"Invalid override '{item}'; expected path=value")
        parts = [segment for segment in key.strip().split(".") if segment]
        if not parts:
            raise ConfigurationError(f"Invalid override '{item}'; empty path")
        target: Any = payload
        for segment in parts[:-1]:
            if not isinstance(target, dict):
                raise ConfigurationError(
                    f"Cannot traverse into non-mapping for override '{item}' at '{segment}'"
                )
            if segment not in target or target[segment] is None:
                target[segment] = {}
            target = target[segment]
        if not isinstance(target, dict):
            raise ConfigurationError(f"Cannot set override '{item}'; target is not a mapping")
        target[parts[-1]] = parse_override_value(value_str)
    return payload


def build_config(data: Optional[Dict[str, Any]], overrides: Optional[Sequence[str]] = None) -> Config:
    """Validate a raw mapping (plus overrides) into a :class:`Config`.

    Validation failures are re-raised as :class:`ConfigurationError`.
    """

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration root must be a mapping")
    if overrides:
        data = apply_overrides_dict(data, overrides)
    try:
        return Config(**data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration:\n{exc}") from exc


def load_config(path: Optional[Path], overrides: Optional[Sequence[str]] = None) -> Config:
    """Load a YAML configuration file into a :class:`Config` instance.

    ``path=None`` starts from the defaults so that a run can be described by
    overrides alone.
    """

    from ruamel.yaml import YAML

    data: Any = {}
    if path is not None:
        yaml = YAML(typ="safe")
        source_path = Path(path).resolve()
        if not source_path.is_file():
            raise ConfigurationError(f"Configuration file {source_path} does not exist")
        with source_path.open("r", encoding="utf-8") as fh:
            data = yaml.load(fh)
    return build_config(data, overrides)


def configure_logging(level: int, suppress_warnings: bool = False) -> None:
    """Configure root logging and optionally silence Python warnings."""

    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    root = logging.getLogger()
    root.setLevel(level)
    if suppress_warnings:
        warnings.filterwarnings("ignore")
    logging.captureWarnings(True)
