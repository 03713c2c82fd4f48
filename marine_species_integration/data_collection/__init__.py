"""
Subpackage for collecting data from external services.

Modules in this package wrap the FishBase trait tables and the OBIS
occurrence API.  Each public function returns a DataFrame and raises
``ExternalServiceError`` when the service fails.
"""

__all__ = [
    "api",
    "fishbase",
    "obis",
]
