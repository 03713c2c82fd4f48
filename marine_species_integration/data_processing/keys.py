"""
Identifier and name normalisation.

Source tables spell "missing" in several ways (``-``, empty strings,
``NA``) and numeric identifiers come back from CSV readers as floats
(``9606.0``) or in scientific notation.  The helpers here turn every
identifier into a plain string or ``None`` and derive the taxon key that
joins and deduplication rely on.
"""

from __future__ import annotations

import math
import re
from decimal import Decimal, InvalidOperation
from typing import Iterable

import numpy as np
import pandas as pd

from ..exceptions import SchemaError

MISSING_SENTINELS = frozenset({"-", "", "NA", "na"})

_INTEGRAL = re.compile(r"^[+-]?\d+(\.0*)?$")
_SCIENTIFIC = re.compile(r"^[+-]?\d+(\.\d+)?[eE][+-]?\d+$")


def _is_missing(value) -> bool:
    return value is None or (pd.api.types.is_scalar(value) and pd.isna(value))


def clean_id(value) -> str | None:
    """Return ``value`` as a canonical identifier string, or None if missing."""
    if _is_missing(value):
        return None
    if isinstance(value, (bool, np.bool_)):
        return str(value)
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    if isinstance(value, (float, np.floating)):
        value = float(value)
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    text = str(value).strip()
    if text in MISSING_SENTINELS:
        return None
    if _INTEGRAL.match(text):
        return text.split(".")[0]
    if _SCIENTIFIC.match(text):
        try:
            number = Decimal(text)
        except InvalidOperation:
            return text
        if number == number.to_integral_value():
            return str(int(number))
    return text


def normalize_name(value) -> str | None:
    """Lowercase a scientific name and collapse internal whitespace."""
    if _is_missing(value):
        return None
    cleaned = re.sub(r"\s+", " ", str(value).lower()).strip()
    return cleaned or None


def clean_id_columns(df: pd.DataFrame, columns: Iterable[str]) -> pd.DataFrame:
    """Apply :func:`clean_id` to each of ``columns`` present in ``df``."""
    df = df.copy()
    for col in columns:
        if col in df.columns:
            df[col] = df[col].map(clean_id).astype(object)
    return df


def _column_or_null(df: pd.DataFrame, column: str) -> pd.Series:
    if column in df.columns:
        return df[column]
    return pd.Series([None] * len(df), index=df.index, dtype=object)


def _key_parts(df, ncbi_column, aphia_column, name_column):
    if not any(c in df.columns for c in (ncbi_column, aphia_column, name_column)):
        raise SchemaError(
            f"Cannot derive a taxon key: none of {ncbi_column!r}, "
            f"{aphia_column!r}, {name_column!r} is present"
        )
    ncbi = _column_or_null(df, ncbi_column).map(clean_id).astype(object)
    aphia = _column_or_null(df, aphia_column).map(clean_id).astype(object)
    names = _column_or_null(df, name_column).map(normalize_name).astype(object)
    return ncbi, aphia, names


def taxon_key(
    df: pd.DataFrame,
    ncbi_column: str = "ncbi_taxon_id",
    aphia_column: str = "aphia_id",
    name_column: str = "scientific_name",
) -> pd.Series:
    """Derive the taxon key of every row.

    The key is the NCBI taxon id when present, else the AphiaID, else the
    normalised scientific name.  Rows with none of the three get a
    positional ``unkeyed:<n>`` key so that they never merge with each other.
    """
    ncbi, aphia, names = _key_parts(df, ncbi_column, aphia_column, name_column)
    key = ncbi.where(ncbi.notna(), aphia)
    key = key.where(key.notna(), names)
    unkeyed = pd.Series([f"unkeyed:{i}" for i in range(len(df))], index=df.index, dtype=object)
    return key.where(key.notna(), unkeyed).rename("taxon_key")


def add_taxon_key(
    df: pd.DataFrame,
    ncbi_column: str = "ncbi_taxon_id",
    aphia_column: str = "aphia_id",
    name_column: str = "scientific_name",
) -> pd.DataFrame:
    """Return ``df`` with ``sci_name_std``, ``taxon_key`` and ``key_source``."""
    ncbi, aphia, names = _key_parts(df, ncbi_column, aphia_column, name_column)
    source = np.select(
        [ncbi.notna().to_numpy(), aphia.notna().to_numpy(), names.notna().to_numpy()],
        ["NCBI", "AphiaID", "sci_name"],
        default="none",
    )
    return df.assign(
        sci_name_std=names,
        taxon_key=taxon_key(df, ncbi_column, aphia_column, name_column),
        key_source=pd.Series(source, index=df.index, dtype=object),
    )


def prefixed_join_key(
    df: pd.DataFrame,
    ncbi_column: str = "ncbi_taxon_id",
    aphia_column: str = "aphia_id",
) -> pd.Series:
    """``ncbi:<id>`` if the NCBI id is set, else ``aphia:<id>``, else null.

    The prefix keeps an NCBI id from matching an AphiaID that happens to
    share its digits.
    """
    ncbi = _column_or_null(df, ncbi_column).map(clean_id).astype(object)
    aphia = _column_or_null(df, aphia_column).map(clean_id).astype(object)
    key = ("ncbi:" + ncbi[ncbi.notna()]).reindex(df.index)
    key = key.where(key.notna(), ("aphia:" + aphia[aphia.notna()]).reindex(df.index))
    return key.astype(object).where(key.notna(), None).rename("join_key")
