"""Column-oriented storage for per-step records."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping

import pandas as pd


class RecordHistory:
    """Column-oriented record buffer.

    Rows are appended as mappings; a key that first appears in a later row
    (a photometric band, for instance) becomes a new column padded with
    ``None`` for the earlier rows.
    """

    def __init__(self, columns: Iterable[str] = ()) -> None:
        self._columns: Dict[str, List[Any]] = {name: [] for name in columns}
        self._rows = 0

    def append_row(self, record: Mapping[str, Any]) -> None:
        for key in record:
            self._columns.setdefault(key, [None] * self._rows)
        for name, values in self._columns.items():
            values.append(record.get(name))
        self._rows += 1

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self._columns, columns=list(self._columns))
