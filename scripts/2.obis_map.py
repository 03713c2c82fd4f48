#!/usr/bin/env python
"""CLI entry point for mapping OBIS occurrences of one family.

Thin wrapper around
`marine_species_integration.pipelines.run_occurrence_maps`.  Reads
`species_clean.csv` (from 1.merge_sources.py), takes the first
`--max-species` species of `--family`, downloads their OBIS occurrences and
writes:

    - data/merged/obis_occurrences.csv
    - data/merged/obis_summary.csv
    - outputs/maps/obis_hex_<family>_since_<date>.png
    - outputs/maps/obis_points_<family>_since_<date>.png

Points on land are removed only when land polygons are given, either with
`--land` or the LAND_POLYGONS_PATH environment variable (e.g. a Natural
Earth `ne_50m_land.shp`).

Example
    python scripts/2.obis_map.py --family Serranidae --max-species 30 --start-date 2000-01-01
"""
from __future__ import annotations

import sys
from pathlib import Path

# Ensure project root (folder containing marine_species_integration) is importable
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import argparse
import logging

from marine_species_integration import config
from marine_species_integration.exceptions import MarineIntegrationError
from marine_species_integration.pipelines import run_occurrence_maps


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Fetch OBIS occurrences for one family and render world maps")
    p.add_argument("--species-table", type=Path, default=config.MERGED_DATA_DIR / "species_clean.csv", help="Canonical species table")
    p.add_argument("--out-dir", type=Path, default=config.MERGED_DATA_DIR, help="Directory for OBIS CSVs")
    p.add_argument("--maps-dir", type=Path, default=config.MAPS_DIR, help="Directory for PNG maps")
    p.add_argument("--family", default=config.TARGET_FAMILY, help=f"Family to map (default {config.TARGET_FAMILY})")
    p.add_argument("--max-species", type=int, default=config.MAX_SPECIES, help="Take the first N species of the family")
    p.add_argument("--start-date", default=config.OBIS_START_DATE, help="OBIS start date (YYYY-MM-DD)")
    p.add_argument("--uncertainty-max", type=float, default=config.UNCERTAINTY_MAX_M, help="Max coordinate uncertainty in metres")
    p.add_argument("--hex-bins", type=int, default=config.HEX_BINS, help="Hexagon grid size")
    p.add_argument("--land", type=Path, default=config.LAND_POLYGONS_PATH, help="Land polygon file for dropping points on land")
    p.add_argument("--log-level", default="INFO", help="Logging level (default INFO)")
    return p.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO), format="%(levelname)s: %(message)s")
    config.ensure_dirs(args.out_dir, args.maps_dir)
    try:
        occurrences, summary = run_occurrence_maps(
            species_clean_path=args.species_table,
            out_dir=args.out_dir,
            maps_dir=args.maps_dir,
            family=args.family,
            max_species=args.max_species,
            start_date=args.start_date,
            uncertainty_max_m=args.uncertainty_max,
            hex_bins=args.hex_bins,
            land_path=args.land,
        )
    except MarineIntegrationError as exc:
        logging.error("OBIS mapping failed: %s", exc)
        raise SystemExit(1) from exc
    logging.info("Done: %s occurrences for %s species", len(occurrences), len(summary))


if __name__ == "__main__":
    main()
