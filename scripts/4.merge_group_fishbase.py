#!/usr/bin/env python
"""CLI entry point for appending FishBase temperature ranges to a base table.

Thin wrapper around
`marine_species_integration.pipelines.run_group_trait_merge`.
TempMin/TempMax are attached to the group table by scientific name and
then carried into the base table on the NCBI id, falling back to the
AphiaID.  FishBase stocks are cached in `--cache` so reruns do not hit the
API; delete the file to refresh it.

Example
    python scripts/4.merge_group_fishbase.py \
        --group data/merged/new_aphia_ncbi_all_18_09_2025.csv \
        --base data/merged/non_conflicted_species_final.csv \
        --out data/merged/new_final_species.csv
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
from marine_species_integration.pipelines import run_group_trait_merge


def parse_args() -> argparse.Namespace:
    merged = config.MERGED_DATA_DIR
    p = argparse.ArgumentParser(description="Append FishBase TempMin/TempMax to the base species table")
    p.add_argument("--group", type=Path, default=merged / "new_aphia_ncbi_all_18_09_2025.csv", help="Group table with scientific names")
    p.add_argument("--base", type=Path, default=merged / "non_conflicted_species_final.csv", help="Base table to enrich")
    p.add_argument("--cache", type=Path, default=merged / "fishbase_stocks_basic.csv", help="FishBase stocks cache CSV")
    p.add_argument("--no-cache", action="store_true", help="Always fetch from FishBase and do not write a cache")
    p.add_argument("--out", type=Path, default=merged / "new_final_species.csv", help="Output CSV")
    p.add_argument("--log-level", default="INFO", help="Logging level (default INFO)")
    return p.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO), format="%(levelname)s: %(message)s")
    config.ensure_dirs(args.out.parent)
    try:
        result = run_group_trait_merge(
            group_path=args.group,
            base_path=args.base,
            cache_path=None if args.no_cache else args.cache,
            out_path=args.out,
        )
    except MarineIntegrationError as exc:
        logging.error("Group FishBase merge failed: %s", exc)
        raise SystemExit(1) from exc
    logging.info("Done: %s rows written to %s", len(result), args.out)


if __name__ == "__main__":
    main()
