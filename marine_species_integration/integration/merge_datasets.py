"""
Joining source tables and resolving duplicated columns.

The joins here are many-to-many on purpose: when several rows on each side
share a key, every combination is emitted.  Row counts can therefore grow,
and ``full_outer_join`` checks the result against the expected outer-join
size and warns when amplification happened.  Deduplication happens later,
per taxon, in :mod:`.dedupe`.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Sequence

import numpy as np
import pandas as pd

from ..exceptions import JoinConfigurationError
from ..utils.file_io import ensure_columns

_LEFT_ROW = "__left_row"
_RIGHT_ROW = "__right_row"


def _as_list(on: str | Sequence[str]) -> list[str]:
    return [on] if isinstance(on, str) else list(on)


def _null_key_mask(df: pd.DataFrame, on: list[str]) -> pd.Series:
    return df[on].isna().any(axis=1)


def _key_counts(df: pd.DataFrame, on: list[str]) -> Counter:
    keys = df.loc[~_null_key_mask(df, on), on]
    return Counter(keys.itertuples(index=False, name=None))


def outer_join_cardinality(
    left: pd.DataFrame,
    right: pd.DataFrame,
    on: str | Sequence[str],
    how: str = "outer",
) -> int:
    """Number of rows a join of ``left`` and ``right`` on ``on`` must produce.

    Null keys never match, so rows carrying one count as unmatched.
    """
    on = _as_list(on)
    left = ensure_columns(left, on)
    right = ensure_columns(right, on)
    lc, rc = _key_counts(left, on), _key_counts(right, on)
    matched = sum(n * rc[k] for k, n in lc.items() if k in rc)
    unmatched_left = len(left) - sum(n for k, n in lc.items() if k in rc)
    if how == "left":
        return matched + unmatched_left
    unmatched_right = len(right) - sum(n for k, n in rc.items() if k in lc)
    return matched + unmatched_left + unmatched_right


def coalesce_columns(
    df: pd.DataFrame,
    fields: Sequence[str] | None = None,
    suffixes: tuple[str, str] = ("_left", "_right"),
) -> pd.DataFrame:
    """Collapse suffixed column pairs into one column, left value first.

    For every field, the result is the left value when it is not null,
    else the right value, else null.  With ``fields=None`` every pair
    present in ``df`` is resolved.  The resolved column takes the position
    of the first of the pair.
    """
    left_suffix, right_suffix = suffixes
    if fields is None:
        fields = [
            c[: -len(left_suffix)]
            for c in df.columns
            if c.endswith(left_suffix) and c[: -len(left_suffix)] + right_suffix in df.columns
        ]
    df = df.copy()
    for field in fields:
        a, b = field + left_suffix, field + right_suffix
        if a not in df.columns or b not in df.columns:
            logging.debug("No %s/%s pair to coalesce", a, b)
            continue
        resolved = df[a].where(df[a].notna(), df[b])
        pos = min(df.columns.get_loc(a), df.columns.get_loc(b))
        df = df.drop(columns=[a, b])
        df.insert(pos, field, resolved)
    return df


def full_outer_join(
    left: pd.DataFrame,
    right: pd.DataFrame,
    on: str | Sequence[str],
    suffixes: tuple[str, str] = ("_left", "_right"),
    how: str = "outer",
    coalesce: bool = True,
) -> pd.DataFrame:
    """Join two tables on ``on`` and coalesce the columns they share.

    Parameters
    ----------
    left, right : DataFrame
        Source tables.  Left values win when columns are coalesced.
    on : str or list of str
        Join key column(s).  A key missing from one side only is created
        there as an all-null column.
    suffixes : tuple of str
        Suffixes for columns present on both sides.
    how : {"outer", "left"}
        ``"outer"`` keeps unmatched rows of both sides, ``"left"`` only those
        of the left side.
    coalesce : bool
        Resolve every suffixed pair with :func:`coalesce_columns`.  When
        False the suffixed columns are kept.

    Returns
    -------
    DataFrame
        Left rows in their original order, each repeated once per matching
        right row, followed by the unmatched right rows in their order.
    """
    if how not in ("outer", "left"):
        raise ValueError(f"Unsupported join type {how!r}")
    on = _as_list(on)
    absent = [k for k in on if k not in left.columns and k not in right.columns]
    if absent:
        raise JoinConfigurationError(f"Join key(s) {absent} present in neither source")
    for side, frame in (("left", left), ("right", right)):
        missing = [k for k in on if k not in frame.columns]
        if missing:
            logging.warning("Join key(s) %s absent from %s source; treating as null", missing, side)
    left = ensure_columns(left, on)
    right = ensure_columns(right, on)

    overlap = [c for c in left.columns if c in right.columns and c not in on]
    clashes = [
        c + suffix
        for c in overlap
        for suffix in suffixes
        if c + suffix in left.columns or c + suffix in right.columns
    ]
    if clashes:
        raise JoinConfigurationError(
            f"Suffixed column name(s) {clashes} already exist; choose other suffixes than {suffixes}"
        )
    left = left.rename(columns={c: c + suffixes[0] for c in overlap}).reset_index(drop=True)
    right = right.rename(columns={c: c + suffixes[1] for c in overlap}).reset_index(drop=True)
    left[_LEFT_ROW] = np.arange(len(left))
    right[_RIGHT_ROW] = np.arange(len(right))
    for key in on:
        left[key] = left[key].astype(object)
        right[key] = right[key].astype(object)

    left_null = _null_key_mask(left, on)
    right_null = _null_key_mask(right, on)
    matched = left[~left_null].merge(right[~right_null], on=on, how="outer")
    pieces = [matched] + [f for f in (left[left_null], right[right_null]) if len(f)]
    merged = pd.concat(pieces, ignore_index=True)
    merged = merged.sort_values([_LEFT_ROW, _RIGHT_ROW], na_position="last", kind="mergesort")
    if how == "left":
        merged = merged[merged[_LEFT_ROW].notna()]

    expected = outer_join_cardinality(left, right, on, how=how)
    if len(merged) != expected:
        raise RuntimeError(
            f"Join on {on} produced {len(merged)} rows, expected {expected}"
        )
    lc, rc = _key_counts(left, on), _key_counts(right, on)
    amplified = sum(1 for k, n in lc.items() if n > 1 and rc.get(k, 0) > 1)
    if amplified:
        logging.warning(
            "Many-to-many join on %s: %s key(s) repeated on both sides", on, amplified
        )
    logging.info("Merged %s + %s -> %s rows on %s (%s)", len(left), len(right), len(merged), on, how)

    merged = merged.drop(columns=[_LEFT_ROW, _RIGHT_ROW]).reset_index(drop=True)
    if coalesce and overlap:
        merged = coalesce_columns(merged, overlap, suffixes)
    return merged
