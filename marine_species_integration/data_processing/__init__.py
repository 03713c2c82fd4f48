"""
Subpackage for cleaning source tables before they are joined.

Identifier normalisation and taxon key derivation live in ``keys``.
"""

__all__ = [
    "keys",
]
