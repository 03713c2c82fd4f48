"""
High‑level pipeline orchestration functions.

Each function in this module runs one stage of the marine species
integration end to end: it reads its inputs, calls into
``data_processing``, ``integration``, ``data_collection`` and
``analysis``, writes its CSV (and figure) outputs and returns the tables
it wrote.  Every constant is a keyword argument defaulting to the value
in :mod:`config`, so the stages can be rerun with other files, families
or thresholds.  Use these functions from the scripts in ``scripts/`` or
import them into your own notebooks.

Outputs of a stage are written only after all of its inputs have been
read and transformed.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, Sequence

import pandas as pd

from . import config
from .analysis import maps
from .data_collection import fishbase, obis
from .data_processing.keys import (
    add_taxon_key,
    clean_id_columns,
    prefixed_join_key,
    taxon_key,
)
from .exceptions import EmptyResultError, ExternalServiceError, SchemaError
from .integration.dedupe import completeness, deduplicate, presence_then_recency
from .integration.merge_datasets import full_outer_join
from .utils.file_io import ensure_columns, first_existing, read_csv, require_columns, write_csv

NameValidator = Callable[[Iterable[str]], Sequence[str]]
TraitLookup = Callable[[Iterable[str], Sequence[str]], pd.DataFrame]

ID_COLUMNS = ["ncbi_taxon_id", "aphia_id"]

# Raw source column -> record field
SUPP_COLUMNS = {
    "Organism Name": "scientific_name",
    "Organism Taxonomic ID": "ncbi_taxon_id",
    "Assembly Accession": "assembly_accession",
    "Assembly Release Date": "assembly_release_date",
}
GOAT_COLUMNS = {"species": "scientific_name", "ncbi_taxon_id": "ncbi_taxon_id"}
WORMS_COLUMNS = {"scientificName": "scientific_name", "AphiaID": "aphia_id"}

# FishBase trait -> record field
TRAIT_COLUMNS = {
    "TempMin": "temp_min",
    "TempMax": "temp_max",
    "DepthRangeShallow": "depth_shallow",
    "DepthRangeDeep": "depth_deep",
}

SCIENTIFIC_NAME_ALIASES = ("scientific_name", "scientificname", "scientificName")

DEFAULT_MAIN_CANDIDATES = (
    "ncbi_aphialid_merged.csv",
    "ncbi_aphiaID_merged.csv",
    "ncbi_aphiaId_merged.csv",
)


def _standardise(df: pd.DataFrame, mapping: dict[str, str], name: str) -> pd.DataFrame:
    require_columns(df, mapping, name)
    df = df.rename(columns=mapping)
    df["scientific_name"] = df["scientific_name"].str.strip()
    return clean_id_columns(df, ID_COLUMNS)


def _standardise_name_column(df: pd.DataFrame, name: str) -> pd.DataFrame:
    for alias in SCIENTIFIC_NAME_ALIASES:
        if alias in df.columns:
            return df.rename(columns={alias: "scientific_name"})
    raise SchemaError(f"No scientific name column ({', '.join(SCIENTIFIC_NAME_ALIASES)}) in {name}")


def _species_names(df: pd.DataFrame) -> list[str]:
    return df["scientific_name"].dropna().drop_duplicates().tolist()


def _require_rows(df: pd.DataFrame, name: str) -> pd.DataFrame:
    if df is None or df.empty:
        logging.error("%s returned no rows", name)
        raise ExternalServiceError(f"{name} returned no rows")
    return df


def run_source_merge(
    raw_dir: Path = config.RAW_DATA_DIR,
    out_dir: Path = config.MERGED_DATA_DIR,
    supp_file: str = "supp-table-1.csv",
    goat_file: str = "OG_species_goat.csv",
    worms_file: str = "marine-vert-species.csv",
    release_date_epoch: str = config.RELEASE_DATE_EPOCH,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Merge the NCBI, GoaT and WoRMS tables and keep one row per taxon.

    Steps:

    1. Join NCBI assemblies and the GoaT list on ``ncbi_taxon_id``.
    2. Join the result with WoRMS vertebrates on ``scientific_name``.
    3. Clean identifiers and derive the taxon key.
    4. Keep one row per taxon: rows with an assembly first, then the most
       recent release date.

    Writes ``merged_final.csv`` and ``species_clean.csv`` to ``out_dir``
    and returns both tables.
    """
    raw_dir, out_dir = Path(raw_dir), Path(out_dir)
    supp = _standardise(read_csv(raw_dir / supp_file, dtype=str), SUPP_COLUMNS, supp_file)
    goat = _standardise(read_csv(raw_dir / goat_file, dtype=str, comment="#"), GOAT_COLUMNS, goat_file)
    worms = _standardise(read_csv(raw_dir / worms_file, dtype=str), WORMS_COLUMNS, worms_file)
    logging.info("Read %s NCBI, %s GoaT, %s WoRMS rows", len(supp), len(goat), len(worms))

    logging.info("Joining NCBI assemblies with GoaT list…")
    merged = full_outer_join(supp, goat, on="ncbi_taxon_id", suffixes=("_supp", "_goat"))
    logging.info("Joining with WoRMS vertebrates…")
    merged = full_outer_join(merged, worms, on="scientific_name", suffixes=("_merged", "_worms"))
    if merged.empty:
        raise EmptyResultError("Source tables are empty; nothing to merge")

    merged = add_taxon_key(clean_id_columns(merged, ID_COLUMNS))
    logging.info("Taxon key sources: %s", merged["key_source"].value_counts().to_dict())

    ranked = merged.assign(has_assembly=merged["assembly_accession"].notna())
    species_clean = deduplicate(
        ranked,
        key="taxon_key",
        ranking=presence_then_recency("assembly_accession", "assembly_release_date", release_date_epoch),
    )

    write_csv(merged, out_dir / "merged_final.csv")
    write_csv(species_clean, out_dir / "species_clean.csv")
    return merged, species_clean


def run_occurrence_maps(
    species_clean_path: Path = config.MERGED_DATA_DIR / "species_clean.csv",
    out_dir: Path = config.MERGED_DATA_DIR,
    maps_dir: Path = config.MAPS_DIR,
    family: str = config.TARGET_FAMILY,
    max_species: int = config.MAX_SPECIES,
    start_date: str = config.OBIS_START_DATE,
    uncertainty_max_m: float = config.UNCERTAINTY_MAX_M,
    hex_bins: int = config.HEX_BINS,
    land_path: Path | None = config.LAND_POLYGONS_PATH,
    fetch: Callable[..., pd.DataFrame] = obis.fetch_occurrences,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Fetch OBIS occurrences for one family and map them.

    Takes the first ``max_species`` species of ``family`` from the
    canonical table, downloads their occurrences since ``start_date``,
    keeps clean presence records at sea and writes
    ``obis_occurrences.csv``, ``obis_summary.csv`` and two maps.  Without
    ``land_path`` points are not checked against land.
    """
    out_dir, maps_dir = Path(out_dir), Path(maps_dir)
    species_clean = read_csv(species_clean_path, dtype=str)
    require_columns(species_clean, ["family", "scientific_name"], "species table")

    in_family = species_clean[species_clean["family"].notna() & (species_clean["family"] == family)]
    sp_vec = _species_names(in_family)[:max_species]
    if not sp_vec:
        raise EmptyResultError(f"No species found under family {family!r}")
    logging.info("Fetching OBIS occurrences for %s %s species since %s", len(sp_vec), family, start_date)

    raw = obis.fetch_many(sp_vec, start_date=start_date, fetch=fetch)
    occurrences = obis.filter_occurrences(raw, uncertainty_max_m)
    land = None
    if land_path is not None:
        land = obis.load_land(land_path)
        occurrences = obis.drop_points_on_land(occurrences, land)
    else:
        logging.warning("No land polygons configured; points on land are kept")
    if occurrences.empty:
        raise EmptyResultError(f"No usable OBIS records left for {family!r} after filtering")
    summary = obis.summarise_occurrences(occurrences)

    write_csv(occurrences, out_dir / "obis_occurrences.csv")
    write_csv(summary, out_dir / "obis_summary.csv")
    maps.generate_maps(
        occurrences,
        maps_dir,
        family=family,
        start_date=start_date,
        max_species=max_species,
        hex_bins=hex_bins,
        land=land,
    )
    return occurrences, summary


def run_trait_enrichment(
    main_candidates: Sequence[Path] | None = None,
    out_dir: Path = config.MERGED_DATA_DIR,
    species_lookup: TraitLookup = fishbase.species,
    stocks_lookup: TraitLookup = fishbase.stocks,
    name_validator: NameValidator = fishbase.validate_names,
    include_extended: bool = True,
) -> pd.DataFrame:
    """Add FishBase temperature, extent and depth traits to the main table.

    The main table is the first existing file of ``main_candidates``
    (defaults to the ``ncbi_aphia*_merged.csv`` spellings in ``out_dir``).
    FishBase ``species`` and ``stocks`` rows are joined by name into it,
    then one row per taxon is kept, preferring the row with the most
    non-null fields.

    Writes ``fishbase_merged_basic.csv``, ``main_dedup_by_ncbi.csv`` and,
    with ``include_extended``, ``fishbase_raw_extended.csv``.
    """
    out_dir = Path(out_dir)
    if main_candidates is None:
        main_candidates = [out_dir / name for name in DEFAULT_MAIN_CANDIDATES]
    main_path = first_existing(main_candidates)
    main = read_csv(main_path, dtype={c: str for c in ID_COLUMNS})
    main = clean_id_columns(_standardise_name_column(main, main_path.name), ID_COLUMNS)

    dup_names = main["scientific_name"].duplicated(keep=False).sum()
    if dup_names:
        logging.info("Found %s rows with duplicated scientific names; they are deduplicated by taxon later", dup_names)

    valid_names = name_validator(_species_names(main))
    st = fishbase.coerce_numeric(_require_rows(stocks_lookup(valid_names, fishbase.STOCKS_FIELDS), "FishBase stocks"))
    sp = fishbase.coerce_numeric(_require_rows(species_lookup(valid_names, fishbase.SPECIES_FIELDS), "FishBase species"))
    require_columns(st, ["Species", "SpecCode"], "FishBase stocks")
    require_columns(sp, ["Species", "SpecCode"], "FishBase species")

    merged_fishbase = full_outer_join(sp, st, on=["Species", "SpecCode"], suffixes=("_species", "_stocks"))

    traits = merged_fishbase.rename(columns={"Species": "scientific_name", **TRAIT_COLUMNS})
    enriched = full_outer_join(main, traits, on="scientific_name", how="left", suffixes=("_main", "_fishbase"))
    main_dedup = deduplicate(enriched, key=taxon_key, ranking=completeness())

    raw_extended = None
    if include_extended:
        sp_ext = fishbase.coerce_numeric(
            _require_rows(species_lookup(valid_names, fishbase.SPECIES_EXTENDED_FIELDS), "FishBase species (extended)")
        )
        raw_extended = full_outer_join(sp_ext, st, on=["Species", "SpecCode"], suffixes=("_species", "_stocks"))

    write_csv(merged_fishbase, out_dir / "fishbase_merged_basic.csv")
    write_csv(main_dedup, out_dir / "main_dedup_by_ncbi.csv")
    if raw_extended is not None:
        write_csv(raw_extended, out_dir / "fishbase_raw_extended.csv")
    return main_dedup


def run_group_trait_merge(
    group_path: Path = config.MERGED_DATA_DIR / "new_aphia_ncbi_all_18_09_2025.csv",
    base_path: Path = config.MERGED_DATA_DIR / "non_conflicted_species_final.csv",
    cache_path: Path | None = config.MERGED_DATA_DIR / "fishbase_stocks_basic.csv",
    out_path: Path = config.MERGED_DATA_DIR / "new_final_species.csv",
    stocks_lookup: TraitLookup = fishbase.stocks,
    name_validator: NameValidator = fishbase.validate_names,
) -> pd.DataFrame:
    """Append FishBase temperature ranges to a base species table.

    1. Attach ``TempMin``/``TempMax`` to the group table by scientific name
       (one FishBase stock per species, the one with fewest missing
       temperatures).
    2. Carry them into the base table on the NCBI id, falling back to the
       AphiaID.

    FishBase stocks are read from ``cache_path`` when it exists and written
    there after a fetch otherwise.
    """
    group = read_csv(group_path, dtype={c: str for c in ID_COLUMNS})
    base = read_csv(base_path, dtype={c: str for c in ID_COLUMNS})
    group = _standardise_name_column(group, Path(group_path).name)
    group = clean_id_columns(ensure_columns(group, ID_COLUMNS), ID_COLUMNS)
    base = clean_id_columns(ensure_columns(base, ID_COLUMNS), ID_COLUMNS)

    cache_path = Path(cache_path) if cache_path is not None else None
    if cache_path is not None and cache_path.exists():
        logging.info("Using cached FishBase stocks from %s", cache_path)
        st2 = _require_rows(read_csv(cache_path), f"FishBase stocks cache {cache_path}")
        require_columns(st2, ["Species", "TempMin", "TempMax"], "FishBase stocks cache")
    else:
        valid_names = name_validator(_species_names(group))
        st2 = _require_rows(stocks_lookup(valid_names, fishbase.STOCKS_TEMP_FIELDS), "FishBase stocks")
        require_columns(st2, ["Species", "TempMin", "TempMax"], "FishBase stocks")
        if cache_path is not None:
            write_csv(st2, cache_path)
    st2 = fishbase.coerce_numeric(st2)

    st2_clean = deduplicate(st2, key="Species", ranking=completeness(["TempMin", "TempMax"]))
    traits = st2_clean.rename(columns={"Species": "scientific_name", **TRAIT_COLUMNS})
    merged_temp = full_outer_join(group, traits, on="scientific_name", how="left", suffixes=("_group", "_fishbase"))

    temp_cols = [TRAIT_COLUMNS["TempMin"], TRAIT_COLUMNS["TempMax"]]
    mt = merged_temp.assign(join_key=prefixed_join_key(merged_temp))
    mt_slim = deduplicate(mt[mt["join_key"].notna()], key="join_key")[["join_key"] + temp_cols]
    nf = base.assign(join_key=prefixed_join_key(base))
    result = full_outer_join(nf, mt_slim, on="join_key", how="left", suffixes=("_base", "_fishbase"))
    result = result.drop(columns="join_key")

    n_both_na_before = int((base["aphia_id"].isna() & base["ncbi_taxon_id"].isna()).sum())
    n_both_na_after = int((result["aphia_id"].isna() & result["ncbi_taxon_id"].isna()).sum())
    logging.info(
        "Rows with BOTH aphia_id & ncbi_taxon_id = NA: before=%s, after=%s",
        n_both_na_before,
        n_both_na_after,
    )

    write_csv(result, out_path)
    return result
