"""Static world maps of occurrence records."""

import logging
from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd

WORLD_EXTENT = (-180, 180, -90, 90)


def _draw_land(ax, land):
    if land is not None:
        land.plot(ax=ax, color="0.95", edgecolor="0.8", linewidth=0.2, zorder=0)


def _finish(fig, ax, title, subtitle, out_path):
    ax.set_xlim(WORLD_EXTENT[0], WORLD_EXTENT[1])
    ax.set_ylim(WORLD_EXTENT[2], WORLD_EXTENT[3])
    ax.set_aspect("equal")
    ax.set_axis_off()
    ax.set_title(f"{title}\n{subtitle}", loc="left")
    fig.tight_layout()
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path, dpi=150)
    plt.close(fig)
    logging.info("Saved map %s", out_path)
    return out_path


def plot_hexbin_map(occurrences: pd.DataFrame, out_path, title, subtitle, bins=60, land=None):
    """Hexagon density map of sightings, log-scaled counts."""
    fig, ax = plt.subplots(figsize=(11, 6.5))
    _draw_land(ax, land)
    hb = ax.hexbin(
        occurrences["decimalLongitude"],
        occurrences["decimalLatitude"],
        gridsize=bins,
        extent=WORLD_EXTENT,
        bins="log",
        mincnt=1,
        cmap="viridis",
        edgecolors="white",
        linewidths=0.2,
        alpha=0.85,
    )
    fig.colorbar(hb, ax=ax, orientation="horizontal", label="Sightings (count)", shrink=0.6, pad=0.02)
    return _finish(fig, ax, title, subtitle, out_path)


def plot_points_map(occurrences: pd.DataFrame, out_path, title, subtitle, land=None):
    fig, ax = plt.subplots(figsize=(11, 6.5))
    _draw_land(ax, land)
    ax.scatter(
        occurrences["decimalLongitude"],
        occurrences["decimalLatitude"],
        s=0.6,
        alpha=0.3,
        color="black",
    )
    return _finish(fig, ax, title, subtitle, out_path)


def generate_maps(occurrences, maps_dir, family, start_date, max_species, hex_bins=60, land=None):
    """Render the hexbin and point maps for one family.

    Parameters
    ----------
    occurrences : DataFrame
        Cleaned occurrences with ``decimalLongitude``/``decimalLatitude``.
    maps_dir : Path or str
        Directory where figures should be saved.
    family, start_date, max_species
        Used in titles and file names.
    land : GeoDataFrame, optional
        Drawn as the map background when given.

    Returns
    -------
    tuple of Path
        Hexbin map path and point map path.
    """
    maps_dir = Path(maps_dir)
    subtitle = f"Species: up to {max_species}; Since {start_date}"
    hex_path = plot_hexbin_map(
        occurrences,
        maps_dir / f"obis_hex_{family}_since_{start_date}.png",
        f"Global OBIS Sightings ({family})",
        subtitle,
        bins=hex_bins,
        land=land,
    )
    points_path = plot_points_map(
        occurrences,
        maps_dir / f"obis_points_{family}_since_{start_date}.png",
        f"Global OBIS Points ({family})",
        subtitle,
        land=land,
    )
    return hex_path, points_path
