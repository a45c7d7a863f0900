"""Output helper utilities.

The routines in this module provide thin wrappers around :mod:`pandas`
to serialise run results.  The per-step summary is a tab-separated text
table with commented header lines, appended after every step; the same
table can be stored as Parquet with unit metadata.  Radial snapshots are
text tables and run summaries are JSON.  All functions ensure that
destination directories are created when necessary.
"""
from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Sequence

import numpy as np
import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

SNAPSHOT_COLUMNS = (
    ("h", "cm^2/s"),
    ("R", "cm"),
    ("F", "dyn*cm"),
    ("Sigma", "g/cm^2"),
    ("W", "g/(cm^2/s)"),
    ("Tph", "K"),
    ("Tph_vis", "K"),
    ("Tirr", "K"),
    ("Height", "cm"),
)
FLOAT_FORMAT = "%.10g"


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _header_lines(columns: Sequence[str], units: Sequence[str], comments: Iterable[str]) -> str:
    lines = ["#" + "\t".join(columns), "#" + "\t".join(units)]
    lines.extend(f"# {comment}" for comment in comments)
    return "\n".join(lines) + "\n"


class SummaryTableWriter:
    """Tab-separated table appended one step at a time.

    The file starts with two header lines (column names and units) followed
    by free-form comment lines; every line of the header begins with ``#``.
    """

    def __init__(
        self,
        path: Path,
        columns: Sequence[str],
        units: Mapping[str, str],
        comments: Iterable[str] = (),
    ) -> None:
        self.path = Path(path)
        self.columns = list(columns)
        _ensure_parent(self.path)
        with self.path.open("w", encoding="utf-8") as fh:
            fh.write(_header_lines(self.columns, [units.get(name, "") for name in self.columns], comments))

    def append(self, rows: Iterable[Mapping[str, Any]]) -> bool:
        """Append rows; returns True if any rows were written."""

        rows = list(rows)
        if not rows:
            return False
        df = pd.DataFrame(rows, columns=self.columns)
        df.to_csv(self.path, mode="a", sep="\t", header=False, index=False, float_format=FLOAT_FORMAT)
        return True


def read_summary_table(path: Path) -> pd.DataFrame:
    """Read a table written by :class:`SummaryTableWriter`."""

    path = Path(path)
    with path.open("r", encoding="utf-8") as fh:
        names = fh.readline().lstrip("#").rstrip("\n").split("\t")
    return pd.read_csv(path, sep="\t", comment="#", header=None, names=names)


def write_parquet(
    df: pd.DataFrame,
    path: Path,
    *,
    units: Mapping[str, str],
    definitions: Optional[Mapping[str, str]] = None,
    compression: str = "snappy",
) -> None:
    """Write a DataFrame to a Parquet file using ``pyarrow``.

    Parameters
    ----------
    df:
        Table to serialise.
    path:
        Destination file path.
    units, definitions:
        Per-column units and descriptions stored as JSON in the schema
        metadata under ``units`` and ``definitions``.
    """
    _ensure_parent(path)
    table = pa.Table.from_pandas(df, preserve_index=False)
    metadata = dict(table.schema.metadata or {})
    metadata.update(
        {
            b"units": json.dumps(dict(units), sort_keys=True).encode("utf-8"),
            b"definitions": json.dumps(dict(definitions or {}), sort_keys=True).encode("utf-8"),
        }
    )
    table = table.replace_schema_metadata(metadata)
    compression_arg = None if compression == "none" else compression
    pq.write_table(table, path, compression=compression_arg)


def write_snapshot(fields: Any, path: Path, *, t_days: float, Mdot_in: float) -> None:
    """Write the radial structure of one step, skipping the inner node."""

    _ensure_parent(path)
    columns = [name for name, _ in SNAPSHOT_COLUMNS]
    df = pd.DataFrame({name: np.asarray(getattr(fields, name))[1:] for name in columns}, columns=columns)
    header = _header_lines(
        columns,
        [unit for _, unit in SNAPSHOT_COLUMNS],
        [f"Time = {t_days:.10g} Mdot_in = {Mdot_in:.10g}"],
    )
    with path.open("w", encoding="utf-8") as fh:
        fh.write(header)
        df.to_csv(fh, sep="\t", header=False, index=False, float_format=FLOAT_FORMAT)


def _json_safe(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(key): _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (np.floating, float)):
        value = float(value)
        return value if math.isfinite(value) else str(value)
    if isinstance(value, np.integer):
        return int(value)
    return value


def write_summary(summary: Mapping[str, Any], path: Path) -> None:
    """Write a summary dictionary to JSON.

    Non-finite floats are stored as strings so the file stays valid JSON.
    """
    _ensure_parent(path)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(_json_safe(summary), fh, indent=2, sort_keys=True)
