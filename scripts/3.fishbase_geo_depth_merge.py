#!/usr/bin/env python
"""CLI entry point for enriching the main species table with FishBase traits.

Thin wrapper around
`marine_species_integration.pipelines.run_trait_enrichment`.  Adds
FishBase stocks (TempMin/TempMax, geographic extents) and species depth
ranges to the main table by scientific name and keeps one row per taxon
(the one with the most non-null fields).

Outputs (default `data/merged/`)
    - fishbase_merged_basic.csv
    - main_dedup_by_ncbi.csv
    - fishbase_raw_extended.csv   (skip with --no-extended)

The FishBase endpoint can be changed with the FISHBASE_API_URL environment
variable or `.env`.

Example
    python scripts/3.fishbase_geo_depth_merge.py --main data/merged/ncbi_aphialid_merged.csv
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
from marine_species_integration.pipelines import run_trait_enrichment


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Merge FishBase temperature/extent/depth traits into the main table")
    p.add_argument("--main", nargs="*", type=Path, default=None, help="Candidate main table paths; the first existing one is used")
    p.add_argument("--out-dir", type=Path, default=config.MERGED_DATA_DIR, help="Output directory")
    p.add_argument("--no-extended", action="store_true", help="Skip the extended FishBase species dump")
    p.add_argument("--log-level", default="INFO", help="Logging level (default INFO)")
    return p.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO), format="%(levelname)s: %(message)s")
    config.ensure_dirs(args.out_dir)
    try:
        main_dedup = run_trait_enrichment(
            main_candidates=args.main or None,
            out_dir=args.out_dir,
            include_extended=not args.no_extended,
        )
    except MarineIntegrationError as exc:
        logging.error("FishBase enrichment failed: %s", exc)
        raise SystemExit(1) from exc
    logging.info("Done: %s taxa in main_dedup_by_ncbi.csv", len(main_dedup))


if __name__ == "__main__":
    main()
