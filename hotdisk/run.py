"""Command line entry point for disk evolution runs.

Example::

    hotdisk --config run.yml --override disk.alpha=0.3 --fulldata

writes ``PREFIX.dat`` (one row per step), optionally ``PREFIX.parquet`` and
``PREFIX_<k>.dat`` radial snapshots, and ``PREFIX_summary.json`` into the
output directory.
"""
from __future__ import annotations

import argparse
import logging
import shlex
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from . import config_utils
from .config_utils import load_config
from .errors import ConfigurationError
from .io import writer
from .orchestrator import RECORD_COLUMNS, DiskEvolutionEngine, RunResult, StepRecord
from .physics.radiation import RadiativeFields
from .runtime import ProgressReporter
from .schema import Config

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 2


def record_units(bands: Sequence[str]) -> dict[str, str]:
    units = {name: unit for name, unit, _ in RECORD_COLUMNS}
    units.update({f"m{band}": "mag" for band in bands})
    return units


def record_definitions(bands: Sequence[str]) -> dict[str, str]:
    definitions = {name: text for name, _, text in RECORD_COLUMNS}
    definitions.update({f"m{band}": f"Apparent {band} magnitude of the hot disk" for band in bands})
    return definitions


def run_disk(cfg: Config, *, invocation: Optional[str] = None) -> RunResult:
    """Run the evolution described by ``cfg`` and write its outputs."""

    engine = DiskEvolutionEngine.from_config(cfg)
    io_cfg = cfg.io
    outdir = Path(io_cfg.outdir)
    prefix = io_cfg.prefix
    bands = list(io_cfg.bands)
    columns = [name for name, _, _ in RECORD_COLUMNS] + [f"m{band}" for band in bands]
    units = record_units(bands)

    comments = [f"r_out = {engine.setup.r_out:.10g}"]
    if invocation:
        comments.append(invocation)
    table = writer.SummaryTableWriter(outdir / f"{prefix}.dat", columns, units, comments)

    def on_step(record: StepRecord, fields: RadiativeFields) -> None:
        table.append([record.as_row()])
        if io_cfg.fulldata:
            k = engine.state.step_index - 1
            writer.write_snapshot(
                fields,
                outdir / f"{prefix}_{k}.dat",
                t_days=record.t,
                Mdot_in=record.Mdot,
            )

    progress = ProgressReporter(
        engine.n_steps,
        engine.setup.time,
        refresh_seconds=io_cfg.progress.refresh_seconds,
        enabled=io_cfg.progress.enable,
    )
    result = engine.run(on_step=on_step, progress=progress)

    if io_cfg.parquet:
        writer.write_parquet(
            result.history().to_frame(),
            outdir / f"{prefix}.parquet",
            units=units,
            definitions=record_definitions(bands),
        )
    summary = {
        "stop_reason": result.stop_reason,
        "error": result.error,
        "steps_run": result.steps_run,
        "steps_planned": result.steps_planned,
        "final_record": result.records[-1].as_row() if result.records else None,
        "config": cfg.model_dump(mode="json"),
    }
    summary.update(engine.describe())
    writer.write_summary(summary, outdir / f"{prefix}_summary.json")
    return result


def main(argv: Optional[List[str]] = None) -> int:
    """Command line entry point; returns the process exit code."""

    parser = argparse.ArgumentParser(description="Evolve a viscous accretion disk with a moving hot outer edge")
    parser.add_argument("--config", type=Path, help="Path to YAML configuration (defaults are used if omitted)")
    parser.add_argument(
        "--override",
        action="append",
        nargs="+",
        metavar="PATH=VALUE",
        help="Apply configuration overrides using dotted paths; e.g. --override disk.alpha=0.3",
    )
    parser.add_argument("--outdir", type=Path, help="Directory for the output files")
    parser.add_argument("--prefix", help="Prefix of the output file names")
    parser.add_argument(
        "--fulldata",
        action="store_true",
        help="Also write the radial structure of every step to PREFIX_<k>.dat",
    )
    parser.add_argument(
        "--quiet",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Suppress INFO logs and Python warnings (defaults to io.quiet).",
    )
    parser.add_argument(
        "--progress",
        action="store_true",
        help="Show a console progress bar with ETA for the time loop.",
    )
    args = parser.parse_args(argv)

    override_list: List[str] = []
    if args.override:
        for group in args.override:
            override_list.extend(group)
    try:
        cfg = load_config(args.config, overrides=override_list)
    except ConfigurationError as exc:
        config_utils.configure_logging(logging.WARNING)
        logger.error("%s", exc)
        return EXIT_CONFIG_ERROR

    if args.outdir is not None:
        cfg.io.outdir = args.outdir
    if args.prefix is not None:
        cfg.io.prefix = args.prefix
    if args.fulldata:
        cfg.io.fulldata = True
    if args.quiet is not None:
        cfg.io.quiet = bool(args.quiet)
    if args.progress:
        cfg.io.progress.enable = True
    quiet = bool(cfg.io.quiet)
    config_utils.configure_logging(logging.WARNING if quiet else logging.INFO, suppress_warnings=quiet)

    invocation = " ".join(shlex.quote(part) for part in ["hotdisk", *(sys.argv[1:] if argv is None else argv)])
    try:
        run_disk(cfg, invocation=invocation)
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return EXIT_CONFIG_ERROR
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - standard CLI entrypoint
    sys.exit(main())
