"""File input/output helper functions."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import pandas as pd

from ..exceptions import MissingInputError, SchemaError


def read_csv(path, **kwargs) -> pd.DataFrame:
    """Read a CSV file into a DataFrame.

    Extra keyword arguments go to :func:`pandas.read_csv` (e.g.
    ``comment="#"`` for the GoaT export).
    """
    path = Path(path)
    if not path.exists():
        logging.error("Input file not found: %s", path)
        raise MissingInputError(f"Input file not found: {path}")
    try:
        return pd.read_csv(path, **kwargs)
    except Exception as exc:
        logging.error("Failed to read CSV file %s: %s", path, exc)
        raise


def write_csv(df: pd.DataFrame, path) -> Path:
    """Write a DataFrame to a UTF-8 CSV file without the index."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(path, index=False, encoding="utf-8")
    except Exception as exc:
        logging.error("Failed to write CSV file %s: %s", path, exc)
        raise
    logging.info("Wrote %s (%s rows)", path, len(df))
    return path


def first_existing(candidates: Iterable) -> Path:
    """Return the first existing path among ``candidates``."""
    candidates = [Path(c) for c in candidates]
    for c in candidates:
        if c.exists():
            return c
    names = ", ".join(str(c) for c in candidates)
    logging.error("None of the candidate inputs exist: %s", names)
    raise MissingInputError(f"Main input not found; tried {names}")


def require_columns(df: pd.DataFrame, columns: Iterable[str], name: str = "table") -> None:
    """Raise SchemaError if ``df`` lacks any of ``columns``."""
    missing = [c for c in columns if c not in df.columns]
    if missing:
        logging.error("Missing required column(s) in %s: %s", name, ", ".join(missing))
        raise SchemaError(
            f"Missing required column(s) in {name}: {', '.join(missing)}; "
            f"available: {list(df.columns)}"
        )


def ensure_columns(df: pd.DataFrame, columns: Iterable[str]) -> pd.DataFrame:
    """Add any of ``columns`` that are absent as all-null columns."""
    absent = [c for c in columns if c not in df.columns]
    if not absent:
        return df
    logging.debug("Creating absent column(s) as null: %s", absent)
    return df.assign(**{c: pd.Series([None] * len(df), index=df.index, dtype=object) for c in absent})
