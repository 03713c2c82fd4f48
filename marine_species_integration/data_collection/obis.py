"""
Functions to fetch and clean occurrence records from OBIS.

Occurrences come from the OBIS v3 ``/occurrence`` endpoint, one species at
a time, paging with the ``after`` cursor (the id of the last record of the
previous page).  Cleaning keeps presence records with valid coordinates
and small coordinate uncertainty, and can drop points falling on land.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Sequence

import geopandas as gpd
import pandas as pd
from tqdm import tqdm

from .. import config
from ..exceptions import EmptyResultError
from ..utils.file_io import ensure_columns
from .api import make_request

PAGE_SIZE = 5000

COORD_COLUMNS = ["decimalLongitude", "decimalLatitude"]


def fetch_occurrences(
    species: str,
    start_date: str | None = None,
    base_url: str = config.OBIS_API_URL,
    session=None,
    page_size: int = PAGE_SIZE,
) -> pd.DataFrame:
    """Download every OBIS occurrence of ``species`` since ``start_date``.

    Returns an empty DataFrame when OBIS has no records.  The queried name
    is stored in ``scientificName_query``.
    """
    url = f"{base_url.rstrip('/')}/occurrence"
    params: dict[str, Any] = {"scientificname": species, "size": page_size}
    if start_date:
        params["startdate"] = start_date
    records: list[dict[str, Any]] = []
    while True:
        payload = make_request(url, params=dict(params), session=session)
        results = payload.get("results") or []
        records.extend(results)
        total = payload.get("total")
        if len(results) < page_size or (total is not None and len(records) >= total):
            break
        after = results[-1].get("id")
        if after is None:
            logging.warning("OBIS page without record ids for %s; stopping at %s records", species, len(records))
            break
        params["after"] = after
    df = pd.DataFrame(records)
    if not df.empty:
        df["scientificName_query"] = species
    logging.info("OBIS: %s records for %s", len(df), species)
    return df


def fetch_many(
    species_list: Sequence[str],
    start_date: str | None = None,
    fetch: Callable[..., pd.DataFrame] = fetch_occurrences,
) -> pd.DataFrame:
    """Fetch occurrences for each species in order and stack them."""
    frames = []
    for sp in tqdm(species_list, desc="OBIS species", leave=False):
        logging.info("Fetching: %s", sp)
        df = fetch(sp, start_date=start_date)
        if df is not None and len(df):
            frames.append(df)
    if not frames:
        raise EmptyResultError(
            "No OBIS records returned for the chosen species list. "
            "Try another family or increase max_species."
        )
    return pd.concat(frames, ignore_index=True)


def filter_occurrences(df: pd.DataFrame, uncertainty_max_m: float = config.UNCERTAINTY_MAX_M) -> pd.DataFrame:
    """Keep presence records with valid coordinates and low uncertainty.

    Records without an ``occurrenceStatus`` or without a coordinate
    uncertainty are kept.
    """
    df = ensure_columns(df, ["occurrenceStatus", "coordinateUncertaintyInMeters"] + COORD_COLUMNS)
    before = len(df)
    status = df["occurrenceStatus"].astype("string").str.strip().str.lower()
    lon = pd.to_numeric(df["decimalLongitude"], errors="coerce")
    lat = pd.to_numeric(df["decimalLatitude"], errors="coerce")
    uncertainty = pd.to_numeric(df["coordinateUncertaintyInMeters"], errors="coerce")
    keep = (
        (status.isna() | (status == "present")).fillna(False).astype(bool)
        & lon.between(-180, 180)
        & lat.between(-90, 90)
        & (uncertainty.isna() | (uncertainty < uncertainty_max_m))
    )
    out = df[keep].assign(
        decimalLongitude=lon[keep],
        decimalLatitude=lat[keep],
        coordinateUncertaintyInMeters=uncertainty[keep],
    )
    logging.info("Occurrence filter kept %s of %s records", len(out), before)
    return out.reset_index(drop=True)


def load_land(path) -> gpd.GeoDataFrame:
    """Read land polygons (any format geopandas reads) in WGS84."""
    path = Path(path)
    land = gpd.read_file(path)
    if land.crs is None:
        land = land.set_crs(4326)
    land = land.to_crs(4326)
    land["geometry"] = land.geometry.make_valid()
    return land


def drop_points_on_land(df: pd.DataFrame, land: gpd.GeoDataFrame) -> pd.DataFrame:
    """Remove occurrences whose coordinates intersect ``land``."""
    points = gpd.GeoDataFrame(
        df,
        geometry=gpd.points_from_xy(df["decimalLongitude"], df["decimalLatitude"]),
        crs=4326,
    )
    joined = gpd.sjoin(points, land[["geometry"]], how="inner", predicate="intersects")
    on_land = joined.index.unique()
    out = df.drop(index=on_land).reset_index(drop=True)
    logging.info("Dropped %s points on land; %s remain", len(on_land), len(out))
    return out


def summarise_occurrences(df: pd.DataFrame) -> pd.DataFrame:
    """Records and distinct years per queried species."""
    year_col = "year" if "year" in df.columns else "date_year"
    years = pd.to_numeric(df[year_col], errors="coerce") if year_col in df.columns else pd.Series(pd.NA, index=df.index)
    return (
        df.assign(_year=years)
        .groupby("scientificName_query")
        .agg(n_records=("_year", "size"), n_years=("_year", "nunique"))
        .reset_index()
    )
