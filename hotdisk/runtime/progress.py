"""Single-line terminal progress bar for the time loop."""

from __future__ import annotations

import math
import sys
import time

from .. import constants

BAR_WIDTH = 28


class ProgressReporter:
    """Show the fraction of steps done, the simulated day and an ETA.

    The ETA assumes the remaining steps take the mean wall time of the steps
    done so far.
    """

    def __init__(
        self,
        total_steps: int,
        total_time_s: float,
        *,
        refresh_seconds: float = 1.0,
        enabled: bool = False,
    ) -> None:
        self.enabled = bool(enabled and total_steps > 0)
        self.total_steps = max(int(total_steps), 1)
        self.total_days = max(float(total_time_s), 0.0) / constants.DAY
        self.refresh_seconds = max(float(refresh_seconds), 0.1)
        self.start = time.monotonic()
        self._last_render = -math.inf
        self._done = False
        self._isatty = sys.stdout.isatty()

    def update(self, step_no: int, sim_time_s: float, *, force: bool = False) -> None:
        if not self.enabled or self._done:
            return
        now = time.monotonic()
        steps_done = min(step_no + 1, self.total_steps)
        is_last = steps_done >= self.total_steps
        if not (force or is_last) and now - self._last_render < self.refresh_seconds:
            return
        self._last_render = now

        frac = steps_done / self.total_steps
        filled = int(BAR_WIDTH * frac)
        bar = "#" * filled + "-" * (BAR_WIDTH - filled)
        eta = (now - self.start) / steps_done * (self.total_steps - steps_done)
        line = (
            f"[{bar}] {frac * 100:5.1f}% t={sim_time_s / constants.DAY:.4g}/{self.total_days:.4g} d "
            f"ETA {_format_seconds(eta)}"
        )
        if self._isatty:
            sys.stdout.write(f"\r\033[2K{line}" + ("\n" if is_last else ""))
        else:
            sys.stdout.write(line + "\n")
        sys.stdout.flush()
        self._done = is_last

    def finish(self, step_no: int, sim_time_s: float) -> None:
        """Render the final state once; a run stopped early still ends its line."""

        if not self.enabled:
            return
        self.update(step_no, sim_time_s, force=True)
        if self._isatty and not self._done:
            sys.stdout.write("\n")
            sys.stdout.flush()
        self._done = True


def _format_seconds(seconds: float) -> str:
    if seconds >= 3600.0:
        return f"{seconds / 3600.0:.1f}h"
    if seconds >= 60.0:
        return f"{seconds / 60.0:.1f}m"
    return f"{seconds:.0f}s"
