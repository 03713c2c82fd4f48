"""
Functions to fetch species traits from FishBase.

The FishBase REST API exposes one endpoint per table (``species``,
``stocks``, ``synonyms``).  Each call filters on a scientific name and a
comma-separated ``fields`` list and answers with::

    {"count": 1, "returned": 1, "error": null, "data": [{...}, ...]}

Pipelines only depend on the ``(names, fields) -> DataFrame`` shape of
:func:`species`, :func:`stocks` and :func:`lookup`, so tests pass fixture
functions instead of these.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Sequence

import pandas as pd
from tqdm import tqdm

from .. import config
from ..exceptions import ExternalServiceError
from .api import make_request

SPECIES_FIELDS = ["Species", "SpecCode", "DepthRangeShallow", "DepthRangeDeep"]

STOCKS_FIELDS = [
    "Species", "SpecCode",
    "Northernmost", "NorthSouthN", "Southermost", "NorthSouthS",
    "Westernmost", "WestEastW", "Easternmost", "WestEastE",
    "TempMin", "TempMax",
]

STOCKS_TEMP_FIELDS = ["Species", "SpecCode", "TempMin", "TempMax"]

SPECIES_EXTENDED_FIELDS = [
    "Species", "SpecCode", "Genus", "Author", "FBname", "DemersPelag", "Subfamily",
    "DepthRangeShallow", "DepthRangeDeep", "DepthRangeComShallow", "DepthRangeComDeep",
    "Length", "CommonLength", "Weight",
]

# Columns FishBase sometimes returns as text
NUMERIC_FIELDS = [
    "TempMin", "TempMax",
    "Northernmost", "Southermost", "Westernmost", "Easternmost",
    "DepthRangeShallow", "DepthRangeDeep", "DepthRangeComShallow", "DepthRangeComDeep",
    "Length", "CommonLength", "Weight",
]


def _unique_names(names: Iterable[Any]) -> list[str]:
    seen: dict[str, None] = {}
    for name in names:
        if not isinstance(name, str):
            continue
        cleaned = re.sub(r"\s+", " ", name).strip()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


def _data(payload: dict[str, Any], table: str) -> list[dict[str, Any]]:
    if payload.get("error"):
        raise ExternalServiceError(f"FishBase {table} error: {payload['error']}")
    return payload.get("data") or []


def coerce_numeric(df: pd.DataFrame, columns: Sequence[str] = NUMERIC_FIELDS) -> pd.DataFrame:
    """Convert ``columns`` present in ``df`` to numbers; junk becomes NaN."""
    df = df.copy()
    for col in columns:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce")
    return df


def validate_names(
    names: Iterable[str],
    base_url: str = config.FISHBASE_API_URL,
    session=None,
) -> list[str]:
    """Resolve names to FishBase valid species names.

    Synonyms are replaced by their accepted name; names FishBase does not
    know are dropped.  Order follows the first occurrence of each name.
    """
    url = f"{base_url.rstrip('/')}/synonyms"
    valid: dict[str, None] = {}
    for name in tqdm(_unique_names(names), desc="FishBase names", leave=False):
        rows = _data(
            make_request(url, params={"synonym": name, "fields": "synonym,Species,Status"}, session=session),
            "synonyms",
        )
        accepted = [r for r in rows if r.get("Species")]
        accepted.sort(key=lambda r: str(r.get("Status", "")).lower() != "accepted name")
        if accepted:
            valid.setdefault(accepted[0]["Species"], None)
        else:
            logging.debug("Not found in FishBase: %s", name)
    if not valid:
        raise ExternalServiceError("FishBase validated none of the requested names")
    logging.info("FishBase validated %s species names", len(valid))
    return list(valid)


def fetch_table(
    table: str,
    names: Iterable[str],
    fields: Sequence[str],
    base_url: str = config.FISHBASE_API_URL,
    session=None,
) -> pd.DataFrame:
    """Query one FishBase table for every name and return the rows.

    Every requested field is present in the result, null where FishBase
    has no value.
    """
    url = f"{base_url.rstrip('/')}/{table}"
    rows: list[dict[str, Any]] = []
    names = _unique_names(names)
    for name in tqdm(names, desc=f"FishBase {table}", leave=False):
        params = {"Species": name, "fields": ",".join(fields)}
        rows.extend(_data(make_request(url, params=params, session=session), table))
    if not rows:
        raise ExternalServiceError(f"FishBase {table} returned no rows for {len(names)} species")
    df = pd.DataFrame(rows)
    extra = [c for c in df.columns if c not in fields]
    df = df.reindex(columns=list(fields) + extra)
    logging.info("FishBase %s: %s rows for %s species", table, len(df), len(names))
    return coerce_numeric(df)


def species(names: Iterable[str], fields: Sequence[str] = SPECIES_FIELDS, **kwargs) -> pd.DataFrame:
    """FishBase ``species`` table (depth ranges, lengths, common names)."""
    return fetch_table("species", names, fields, **kwargs)


def stocks(names: Iterable[str], fields: Sequence[str] = STOCKS_FIELDS, **kwargs) -> pd.DataFrame:
    """FishBase ``stocks`` table (temperature range, geographic extents)."""
    return fetch_table("stocks", names, fields, **kwargs)


def lookup(names: Iterable[str], fields: Sequence[str], table: str = "stocks", **kwargs) -> pd.DataFrame:
    """Any FishBase table, for fields outside the species/stocks defaults.

    Matches the ``(names, fields) -> DataFrame`` shape the pipelines take,
    e.g. ``functools.partial(lookup, table="ecology")``.
    """
    return fetch_table(table, names, fields, **kwargs)
