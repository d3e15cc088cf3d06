"""Exception types raised by the body-weight models."""

from __future__ import annotations


class ModelInputError(ValueError):
    """Inputs rejected at construction time, before any integration step."""


class ForcingIndexError(IndexError):
    """A forcing table was asked for a row it does not have."""

    def __init__(self, index: int, n_rows: int, t: float) -> None:
        super().__init__(
            f"Forcing row {index} requested at t={t:g} but the table only has {n_rows} rows; "
            f"supply a forcing table that covers the whole horizon."
        )
        self.index = index
        self.n_rows = n_rows
        self.t = t


class UnsupportedInterpolationError(ValueError):
    """Unknown interpolation mode passed to the forcing builder."""
