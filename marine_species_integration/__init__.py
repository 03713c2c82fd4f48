"""
Marine Species Integration Package

This package merges taxonomic identifiers for marine species across NCBI
assembly metadata, the GoaT species list and WoRMS marine vertebrates,
enriches the merged tables with FishBase traits, keeps one record per
taxon, and maps OBIS occurrences.  Modules are organised by stage and can
be used independently or orchestrated together through the high‑level
pipeline functions.
"""

from . import config  # noqa: F401
from . import pipelines  # noqa: F401

__all__ = [
    "config",
    "pipelines",
]
