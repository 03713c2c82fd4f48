import geopandas as gpd
import pandas as pd
from shapely.geometry import box

from marine_species_integration.analysis import maps


def _occurrences():
    return pd.DataFrame(
        {
            "decimalLongitude": [-120.0, -119.5, 10.0, 140.0, 141.0],
            "decimalLatitude": [30.0, 30.5, -20.0, 35.0, 36.0],
        }
    )


def test_generate_maps_writes_both_figures(tmp_path):
    hex_path, points_path = maps.generate_maps(
        _occurrences(),
        tmp_path / "maps",
        family="Serranidae",
        start_date="2000-01-01",
        max_species=30,
        hex_bins=20,
    )
    assert hex_path.name == "obis_hex_Serranidae_since_2000-01-01.png"
    assert points_path.name == "obis_points_Serranidae_since_2000-01-01.png"
    assert hex_path.stat().st_size > 0
    assert points_path.stat().st_size > 0


def test_maps_draw_land_background(tmp_path):
    land = gpd.GeoDataFrame(geometry=[box(-10, -10, 10, 10)], crs=4326)
    out = maps.plot_points_map(_occurrences(), tmp_path / "points.png", "Title", "Subtitle", land=land)
    assert out.exists()
