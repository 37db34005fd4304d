"""
render.py – draw the composite base map and the site layer.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import geopandas as gpd
import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
from matplotlib.figure import Figure  # noqa: E402

from .models import PlotStyle  # noqa: E402

log = logging.getLogger("nwis_map.render")

_SIZE_RANGE = (0.25, 2.0)   # × point_size


def marker_sizes(weights, point_size: float) -> np.ndarray:
    """Linear map of *weights* onto [0.25, 2] × point_size (flat if constant)."""
    w = np.asarray(weights, dtype=float)
    if w.size == 0:
        return w
    lo, hi = np.nanmin(w), np.nanmax(w)
    if not np.isfinite(lo) or hi == lo:
        return np.full(w.shape, point_size)
    frac = (w - lo) / (hi - lo)
    lo_s, hi_s = _SIZE_RANGE
    return point_size * (lo_s + frac * (hi_s - lo_s))


def render_map(
    base: gpd.GeoDataFrame,
    points: Optional[gpd.GeoDataFrame],
    style: PlotStyle,
    out_path: Path | str | None = None,
    title: Optional[str] = None,
) -> Figure:
    """
    Plot *base* polygons and *points* on one axis.

    ``style.scale_by_color`` colours sites by ``weight``;
    ``style.scale_by_size`` sizes them by ``weight``.
    """
    if points is not None and not points.empty and points.crs != base.crs:
        raise ValueError("base map and points must share one CRS")

    fig, ax = plt.subplots(figsize=style.figsize)
    base.plot(ax=ax, color=style.base_fill, edgecolor=style.edge_color, linewidth=0.5)

    if points is not None and not points.empty:
        size = (
            marker_sizes(points["weight"], style.point_size)
            if style.scale_by_size
            else style.point_size
        )
        kwargs = dict(ax=ax, markersize=size, alpha=style.alpha)
        if style.scale_by_color:
            kwargs.update(column="weight", cmap=style.cmap, legend=True,
                          legend_kwds={"label": "Number of observations", "shrink": 0.6})
        else:
            kwargs.update(color=style.point_color)
        points.plot(**kwargs)

    ax.set_axis_off()
    ax.set_aspect("equal")
    if title:
        ax.set_title(title)
    fig.tight_layout()

    if out_path is not None:
        out_path = Path(out_path)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(out_path, dpi=style.dpi, bbox_inches="tight")
        log.info("Map written to %s", out_path)
    return fig
