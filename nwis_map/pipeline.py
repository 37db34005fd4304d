"""
pipeline.py – composite site map end-to-end

    boundaries → project → sites (fetch or given) → move AK/HI/PR
    → move their sites → render
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import geopandas as gpd
import matplotlib.pyplot as plt
import pandas as pd
import requests

from .boundaries import load_states, project
from .composite import build_composite_map, region_references, shift_points
from .config import MapConfig
from .render import render_map
from .site_io import save_geojson, sites_to_points
from .sites import fetch_sites

logger = logging.getLogger("nwis_map.pipeline")


@dataclass
class PipelineResult:
    base: gpd.GeoDataFrame
    points: gpd.GeoDataFrame
    artefact: Optional[Path] = None
    failed_jurisdictions: List[str] = field(default_factory=list)


def prepare_base(config: MapConfig, states: Optional[gpd.GeoDataFrame] = None) -> gpd.GeoDataFrame:
    """Projected outlines with excluded territories dropped."""
    if states is None:
        states = load_states(
            config.boundaries.source,
            config.boundaries.id_column,
            cache_dir=config.paths.cache_dir,
        )
    states = states[~states["region_id"].isin(config.boundaries.exclude)]
    return project(states, config.projection)


def run_pipeline(
    config: MapConfig,
    sites: Optional[pd.DataFrame] = None,
    states: Optional[gpd.GeoDataFrame] = None,
    session: Optional[requests.Session] = None,
    out_path: Path | str | None = None,
) -> PipelineResult:
    """
    Build the composite map and write it to *out_path*
    (default ``<output_dir>/site_map.png``).
    """
    config.create_directories()

    # 1 ▸ boundaries ------------------------------------------------------
    projected = prepare_base(config, states)
    logger.info("Loaded %d outlines", len(projected))

    # 2 ▸ sites -----------------------------------------------------------
    failed: List[str] = []
    if sites is None:
        batch = fetch_sites(config.jurisdictions, config.sites, session)
        sites = batch.sites
        failed = batch.failures
    if sites.empty:
        logger.warning("No sites to plot – drawing base map only")
        points = gpd.GeoDataFrame(
            {"region_id": [], "site_no": [], "weight": []},
            geometry=[], crs=config.projection,
        )
    else:
        points = sites_to_points(sites, crs=config.projection)

    # 3 ▸ composite -------------------------------------------------------
    base = build_composite_map(projected, config.regions)
    refs = region_references(projected, config.regions)
    moved_points = shift_points(points, config.regions, refs)

    # 4 ▸ render ----------------------------------------------------------
    artefact = Path(out_path) if out_path else config.paths.output_dir / "site_map.png"
    fig = render_map(base, moved_points, config.style, artefact)
    plt.close(fig)

    if not moved_points.empty:
        save_geojson(moved_points, artefact.with_suffix(".geojson"))

    logger.info("✓ %d outlines | %d sites | %d failed jurisdictions",
                len(base), len(moved_points), len(failed))
    return PipelineResult(base, moved_points, artefact, failed)
