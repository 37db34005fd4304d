# ── nwis_map/composite.py ──────────────────────────────────────────────────
"""
composite.py – assemble the "lower 48 + AK/HI/PR moved in" map.

* `build_composite_map` – base polygons plus one moved polygon per region
* `shift_points`        – the same moves applied to sites tagged with a region

Both take the region table as an argument (``{region_id: RegionTransform}``)
and return new frames; nothing is modified in place.
"""
from __future__ import annotations

import logging
from typing import Dict, Mapping

import geopandas as gpd
import pandas as pd

from .models import RegionTransform
from .shift import apply_transform, reposition_frame

log = logging.getLogger("nwis_map.composite")


def region_references(
    states: gpd.GeoDataFrame,
    regions: Mapping[str, RegionTransform],
    id_col: str = "region_id",
) -> Dict[str, gpd.GeoSeries]:
    """Untransformed outline for every reference key named in *regions*."""
    refs: Dict[str, gpd.GeoSeries] = {}
    for region, params in regions.items():
        key = params.reference_for(region)
        if key in refs:
            continue
        rows = states[states[id_col] == key]
        if rows.empty:
            log.warning("No outline for reference %s (region %s)", key, region)
            continue
        refs[key] = rows.geometry
    return refs


def build_composite_map(
    states: gpd.GeoDataFrame,
    regions: Mapping[str, RegionTransform],
    id_col: str = "region_id",
) -> gpd.GeoDataFrame:
    """
    Pass through every row not in *regions* and append one dissolved,
    repositioned row per region (labelled with the region id).
    """
    refs = region_references(states, regions, id_col)
    base = states[~states[id_col].isin(list(regions))]
    parts = [base[[id_col, base.geometry.name]]]

    for region, params in regions.items():
        rows = states[states[id_col] == region]
        key = params.reference_for(region)
        if rows.empty or key not in refs:
            log.warning("Region %s missing from boundaries – skipped", region)
            continue
        dissolved = rows.dissolve(by=id_col, as_index=False)[[id_col, rows.geometry.name]]
        moved = reposition_frame(dissolved, refs[key], params, ids=[region], id_col=id_col)
        log.debug("Moved %s (scale=%.2f, rot=%.0f°)", region, params.scale, params.rotation)
        parts.append(moved)

    out = pd.concat(parts, ignore_index=True)
    return gpd.GeoDataFrame(out, geometry=states.geometry.name, crs=states.crs)


def shift_points(
    points: gpd.GeoDataFrame,
    regions: Mapping[str, RegionTransform],
    references: Mapping[str, gpd.GeoSeries],
    region_col: str = "region_id",
) -> gpd.GeoDataFrame:
    """
    Map every point through its region's transform (or the identity when its
    region is not in *regions*).  Row order and index are preserved.
    """
    if points.empty:
        return points.copy()

    work = points.reset_index(drop=True)
    parts = []
    for region, group in work.groupby(region_col, sort=False, dropna=False):
        params = regions.get(region)
        key = params.reference_for(region) if params is not None else None
        if params is None:
            parts.append(group)
        elif key not in references:
            log.warning("No reference outline for %s – %d sites left in place", region, len(group))
            parts.append(group)
        else:
            parts.append(apply_transform(group, references[key], params))

    out = pd.concat(parts).sort_index()
    out.index = points.index
    return gpd.GeoDataFrame(out, geometry=points.geometry.name, crs=points.crs)

