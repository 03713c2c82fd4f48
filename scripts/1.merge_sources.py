#!/usr/bin/env python
"""CLI entry point for merging the NCBI, GoaT and WoRMS species tables.

Thin wrapper around
`marine_species_integration.pipelines.run_source_merge`.

Inputs (default `data/raw/`)
    - supp-table-1.csv          NCBI assemblies
    - OG_species_goat.csv       GoaT species list ('#' comment lines allowed)
    - marine-vert-species.csv   WoRMS marine vertebrates

Outputs (default `data/merged/`)
    - merged_final.csv          every joined row, with taxon_key/key_source
    - species_clean.csv         one row per taxon

Example (run from project root)
    python scripts/1.merge_sources.py --raw-dir data/raw --out-dir data/merged
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
from marine_species_integration.pipelines import run_source_merge


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Merge NCBI + GoaT + WoRMS species tables and deduplicate per taxon")
    p.add_argument("--raw-dir", type=Path, default=config.RAW_DATA_DIR, help="Directory holding the three source CSVs")
    p.add_argument("--out-dir", type=Path, default=config.MERGED_DATA_DIR, help="Output directory")
    p.add_argument("--supp-file", default="supp-table-1.csv", help="NCBI assemblies file name")
    p.add_argument("--goat-file", default="OG_species_goat.csv", help="GoaT species list file name")
    p.add_argument("--worms-file", default="marine-vert-species.csv", help="WoRMS vertebrates file name")
    p.add_argument("--epoch", default=config.RELEASE_DATE_EPOCH, help="Date used for missing release dates")
    p.add_argument("--log-level", default="INFO", help="Logging level (default INFO)")
    return p.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO), format="%(levelname)s: %(message)s")
    config.ensure_dirs(args.out_dir)
    try:
        merged, species_clean = run_source_merge(
            raw_dir=args.raw_dir,
            out_dir=args.out_dir,
            supp_file=args.supp_file,
            goat_file=args.goat_file,
            worms_file=args.worms_file,
            release_date_epoch=args.epoch,
        )
    except MarineIntegrationError as exc:
        logging.error("Source merge failed: %s", exc)
        raise SystemExit(1) from exc
    logging.info("Done: %s merged rows, %s taxa", len(merged), len(species_clean))


if __name__ == "__main__":
    main()
