"""
Project configuration settings.

Edit the variables in this module to point to your data directories and
external services.  Pipeline entry points take every value below as a
keyword default, so tests and scripts can override them without touching
this module.
"""

from pathlib import Path
import os

from dotenv import load_dotenv

load_dotenv()

# Base directory for storing input and output data.
BASE_DIR: Path = Path(__file__).resolve().parents[1]

###############################################################################
# External services
###############################################################################

# FishBase REST tables (species, stocks, synonyms).  Point this at a mirror
# through the environment or `.env` if the default is unavailable.
FISHBASE_API_URL: str = os.getenv("FISHBASE_API_URL", "https://fishbase.ropensci.org")

# OBIS occurrence API (v3).
OBIS_API_URL: str = os.getenv("OBIS_API_URL", "https://api.obis.org/v3")

# Timeout (seconds) for a single HTTP request.
REQUEST_TIMEOUT: int = 30

###############################################################################
# Directory paths
###############################################################################

# Raw source tables (NCBI assemblies, GoaT list, WoRMS vertebrates)
RAW_DATA_DIR: Path = BASE_DIR / "data" / "raw"

# Merged and deduplicated tables, FishBase/OBIS caches
MERGED_DATA_DIR: Path = BASE_DIR / "data" / "merged"

# Rendered figures
MAPS_DIR: Path = BASE_DIR / "outputs" / "maps"

# Optional land polygons (e.g. Natural Earth ne_50m_land.shp) used to drop
# occurrence points that fall on land.  Unset means no land filtering.
_land = os.getenv("LAND_POLYGONS_PATH")
LAND_POLYGONS_PATH: Path | None = Path(_land) if _land else None

###############################################################################
# Run constants
###############################################################################

# Family whose species are mapped from OBIS
TARGET_FAMILY: str = "Serranidae"
# Take the first N species within the family
MAX_SPECIES: int = 30
# OBIS time filter (ISO date)
OBIS_START_DATE: str = "2000-01-01"
# Coordinate uncertainty threshold in metres
UNCERTAINTY_MAX_M: float = 10000
# Hexagon grid size for the density map
HEX_BINS: int = 60
# Missing or malformed assembly release dates sort as this date
RELEASE_DATE_EPOCH: str = "1900-01-01"


def ensure_dirs(*dirs: Path) -> None:
    """Create output directories if they do not already exist."""
    for _dir in dirs or (RAW_DATA_DIR, MERGED_DATA_DIR, MAPS_DIR):
        Path(_dir).mkdir(parents=True, exist_ok=True)
