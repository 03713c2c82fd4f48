"""
Subpackage for integrating and deduplicating datasets.

Contains the many-to-many joiner that merges source tables and coalesces
shared columns, and the ranking-based deduplicator that keeps one record
per taxon.
"""

__all__ = ["merge_datasets", "dedupe"]
