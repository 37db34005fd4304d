"""
boundaries.py – state / territory outlines for the base map.

Compatible with GeoPandas 1.x
"""
from __future__ import annotations

import hashlib
import logging
from pathlib import Path

import geopandas as gpd

from . import DATA_DIR

logger = logging.getLogger("nwis_map.boundaries")

_BOUNDARY_CACHE = DATA_DIR / "_boundaries"


# ────────────────────────────────────────────────────────────────────────────
# Helpers
# ────────────────────────────────────────────────────────────────────────────
def _cache_path(source: str, id_column: str, cache_dir: Path) -> Path:
    digest = hashlib.md5(f"{source}|{id_column}".encode()).hexdigest()[:16]
    return cache_dir / f"{digest}.gpkg"


def _normalise(gdf: gpd.GeoDataFrame, id_column: str) -> gpd.GeoDataFrame:
    """Keep polygons only, one ``region_id`` column, upper-cased."""
    if id_column not in gdf.columns:
        raise KeyError(f"Boundary source has no '{id_column}' column")
    gdf = gdf[gdf.geometry.geom_type.isin(["Polygon", "MultiPolygon"])]
    out = gpd.GeoDataFrame(
        {"region_id": gdf[id_column].astype(str).str.upper().to_numpy()},
        geometry=gdf.geometry.to_numpy(),
        crs=gdf.crs,
    )
    if out.crs is None:
        logger.warning("Boundary source has no CRS – assuming EPSG:4326")
        out = out.set_crs("EPSG:4326")
    return out


# ────────────────────────────────────────────────────────────────────────────
# Public API
# ────────────────────────────────────────────────────────────────────────────
def load_states(
    source: str,
    id_column: str = "STUSPS",
    cache_dir: Path | None = None,
    refresh: bool = False,
) -> gpd.GeoDataFrame:
    """
    Return state / territory polygons with a ``region_id`` column.

    Order of battle:
      1. Return cached GeoPackage if present (and not *refresh*).
      2. Read *source* (local path or URL, anything GeoPandas can open).
      3. Persist to cache and return.
    """
    cache_dir = Path(cache_dir) if cache_dir is not None else _BOUNDARY_CACHE
    cache_dir.mkdir(exist_ok=True, parents=True)
    cache_file = _cache_path(source, id_column, cache_dir)

    # 1 ▸ Cache
    if cache_file.exists() and not refresh:
        try:
            gdf = gpd.read_file(cache_file)
            logger.debug("Boundary cache hit (%s)", cache_file.name)
            return gdf
        except Exception as exc:  # noqa: BLE001
            logger.warning("Boundary cache read failed (%s) – reloading", exc)

    # 2 ▸ Download / read
    logger.info("Reading boundaries from %s", source)
    gdf = _normalise(gpd.read_file(source), id_column)

    # 3 ▸ Cache + return
    gdf.to_file(cache_file, driver="GPKG")
    logger.info("Cached %d boundaries to %s", len(gdf), cache_file)
    return gdf


def project(gdf: gpd.GeoDataFrame, crs: str) -> gpd.GeoDataFrame:
    """Reproject to the working (planar) CRS."""
    return gdf.to_crs(crs)

