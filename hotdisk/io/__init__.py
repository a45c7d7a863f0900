"""Input/output helpers for disk evolution runs."""

from . import writer

__all__ = ["writer"]
