"""
Pick one representative record per taxon.

A ranking is a function that takes the table and returns one column per
criterion, most significant first, where larger values are better.
``deduplicate`` sorts by those columns and by original row position, then
keeps the first record of every key.  Two rankings are provided:

- ``presence_then_recency``: rows with an assembly first, newest release
  date first; missing or malformed dates count as the epoch.
- ``completeness``: rows with the most non-null fields first.
"""

from __future__ import annotations

import logging
from typing import Callable, Sequence

import numpy as np
import pandas as pd

from ..exceptions import SchemaError

Ranking = Callable[[pd.DataFrame], pd.DataFrame]
KeyFunction = Callable[[pd.DataFrame], pd.Series]

_KEY = "__key"
_POS = "__pos"


def presence_then_recency(
    presence_column: str = "assembly_accession",
    date_column: str = "assembly_release_date",
    epoch: str = "1900-01-01",
) -> Ranking:
    """Rank records holding ``presence_column`` first, then by latest date."""
    epoch_ts = pd.Timestamp(epoch, tz="UTC")

    def rank(records: pd.DataFrame) -> pd.DataFrame:
        missing = [c for c in (presence_column, date_column) if c not in records.columns]
        if missing:
            raise SchemaError(f"Ranking column(s) {missing} not found")
        flag = records[presence_column]
        present = flag.notna() & ~flag.isin([False])
        dates = pd.to_datetime(records[date_column], errors="coerce", format="mixed", utc=True)
        unparsed = int((dates.isna() & records[date_column].notna()).sum())
        if unparsed:
            logging.debug("%s unparseable %s value(s) treated as %s", unparsed, date_column, epoch)
        return pd.DataFrame(
            {"present": present.astype(int), "date": dates.fillna(epoch_ts).dt.tz_localize(None)},
            index=records.index,
        )

    return rank


def completeness(columns: Sequence[str] | None = None) -> Ranking:
    """Rank records with fewer null fields first.

    Nulls are counted over ``columns`` when given, else over every column.
    """

    def rank(records: pd.DataFrame) -> pd.DataFrame:
        if columns is None:
            subset = records
        else:
            missing = [c for c in columns if c not in records.columns]
            if missing:
                raise SchemaError(f"Ranking column(s) {missing} not found")
            subset = records[list(columns)]
        return pd.DataFrame({"non_null": subset.notna().sum(axis=1)}, index=records.index)

    return rank


RANKINGS: dict[str, Callable[..., Ranking]] = {
    "presence_then_recency": presence_then_recency,
    "completeness": completeness,
}


def get_ranking(name: str, **options) -> Ranking:
    """Build a registered ranking by name."""
    try:
        factory = RANKINGS[name]
    except KeyError:
        raise ValueError(f"Unknown ranking {name!r}; choose from {sorted(RANKINGS)}") from None
    return factory(**options)


def deduplicate(
    records: pd.DataFrame,
    key: str | KeyFunction = "taxon_key",
    ranking: Ranking | None = None,
) -> pd.DataFrame:
    """Return one record per distinct key value.

    Parameters
    ----------
    records : DataFrame
        Merged table.  It is not modified.
    key : str or callable
        Column holding the key, or a function deriving it from the table.
    ranking : callable, optional
        See module docstring.  Without one, the first record of every key
        is kept.

    Returns
    -------
    DataFrame
        The best record of every key, in original relative order, with a
        fresh index.  Rows whose key is null are kept untouched.
    """
    if callable(key):
        keys = key(records)
        label = getattr(key, "__name__", "key function")
    else:
        if key not in records.columns:
            raise SchemaError(f"Key column {key!r} not found; available: {list(records.columns)}")
        keys = records[key]
        label = key
    records = records.reset_index(drop=True)
    if records.empty:
        return records.copy()

    scores = ranking(records) if ranking is not None else pd.DataFrame(index=records.index)
    work = pd.DataFrame(index=records.index)
    rank_cols = []
    for i, col in enumerate(scores.columns):
        rank_cols.append(f"__rank{i}")
        work[rank_cols[-1]] = scores[col].to_numpy()
    work[_KEY] = pd.Series(np.asarray(keys, dtype=object), index=records.index)
    work[_POS] = np.arange(len(records))

    work = work.sort_values(
        rank_cols + [_POS],
        ascending=[False] * len(rank_cols) + [True],
        kind="mergesort",
    )
    keep = work[_KEY].isna() | ~work[_KEY].duplicated(keep="first")
    positions = np.sort(work.loc[keep, _POS].to_numpy())
    result = records.iloc[positions].reset_index(drop=True)
    logging.info("Deduplicated %s -> %s rows on %s", len(records), len(result), label)
    return result
