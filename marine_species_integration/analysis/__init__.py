"""
Subpackage for visualising integrated data.

``maps`` renders OBIS occurrences as hexbin and point world maps.
"""

__all__ = ["maps"]
