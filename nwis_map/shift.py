"""
shift.py – move a region (polygon or points) to a new place on the map.

The transform is rotate → scale → translate, pivoting on the centroid of a
*reference* geometry.  Using the same reference for a state outline and for
the sites inside it moves both by the exact same similarity transform, so the
sites stay where they belong on the shrunken / rotated outline.

Rotation is in degrees, **positive = clockwise**.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple, TypeVar, Union

import geopandas as gpd
from shapely import affinity
from shapely.geometry.base import BaseGeometry

from .models import RegionTransform

log = logging.getLogger("nwis_map.shift")

Geo = TypeVar("Geo", BaseGeometry, gpd.GeoSeries, gpd.GeoDataFrame)


class RepositionError(ValueError):
    """Raised when a region cannot be repositioned."""


class DegenerateReferenceError(RepositionError):
    """Reference geometry is empty or has no extent to scale against."""


class CRSMismatchError(RepositionError):
    """Geometry and reference are not in the same coordinate system."""


# ────────────────────────────────────────────────────────────────────────────
# helpers
# ────────────────────────────────────────────────────────────────────────────
def _single(geo: Union[BaseGeometry, gpd.GeoSeries, gpd.GeoDataFrame]) -> BaseGeometry:
    """Collapse a series / frame into one geometry (for centroid + bbox)."""
    if isinstance(geo, BaseGeometry):
        return geo
    if len(geo) == 0:
        raise DegenerateReferenceError("reference geometry is empty")
    return geo.geometry.union_all() if isinstance(geo, gpd.GeoDataFrame) else geo.union_all()


def _crs_of(geo) -> Optional[object]:
    return getattr(geo, "crs", None)


def _check_crs(geometry, reference) -> None:
    g_crs, r_crs = _crs_of(geometry), _crs_of(reference)
    if g_crs is not None and r_crs is not None and g_crs != r_crs:
        raise CRSMismatchError(
            f"geometry is in {g_crs.to_string()} but reference is in {r_crs.to_string()}"
        )


def _max_extent(geom: BaseGeometry) -> float:
    minx, miny, maxx, maxy = geom.bounds
    return max(maxx - minx, maxy - miny)


def _apply(geo: Geo, fn_name: str, *args, **kwargs) -> Geo:
    """Run one shapely.affinity op over a geometry, series or frame."""
    if isinstance(geo, BaseGeometry):
        return getattr(affinity, fn_name)(geo, *args, **kwargs)
    moved = getattr(geo.geometry, fn_name)(*args, **kwargs)
    if isinstance(geo, gpd.GeoDataFrame):
        out = geo.copy()
        out[geo.geometry.name] = moved
        return out
    return moved


# ────────────────────────────────────────────────────────────────────────────
# public API
# ────────────────────────────────────────────────────────────────────────────
def reposition(
    geometry: Geo,
    reference: Union[BaseGeometry, gpd.GeoSeries, gpd.GeoDataFrame, None] = None,
    scale: float = 1.0,
    shift: Tuple[float, float] = (0.0, 0.0),
    rotation: float = 0.0,
    shift_unit: float = 1.0,
    crs=None,
) -> Geo:
    """
    Rotate, scale and shift *geometry* as a unit, anchored on *reference*.

    Parameters
    ----------
    geometry   : shapely geometry, GeoSeries or GeoDataFrame to move
    reference  : geometry whose centroid is the pivot and whose bounding box
                 is the scale baseline; defaults to *geometry*
    scale      : factor applied to the larger bounding-box side of the
                 (rotated) reference
    shift      : offset of the reference centroid, in *shift_unit* units
    rotation   : degrees, positive = clockwise
    shift_unit : multiplier turning *shift* into CRS units (metres)
    crs        : override the CRS tag of a series / frame result

    Returns a new object of the same type; *geometry* is left untouched.
    The transformed reference has its centroid at
    ``anchor + shift * shift_unit`` and its larger bbox side equal to
    ``scale`` times the rotated reference's.
    """
    if scale <= 0:
        raise RepositionError("scale must be positive")
    if reference is None:
        reference = geometry
    _check_crs(geometry, reference)

    ref = _single(reference)
    if ref.is_empty:
        raise DegenerateReferenceError("reference geometry is empty")

    # 1 ▸ anchor
    anchor = ref.centroid

    # 2 ▸ rotate (shapely is counter-clockwise positive)
    moved = _apply(geometry, "rotate", -rotation, origin=anchor)
    ref_rot = affinity.rotate(ref, -rotation, origin=anchor)

    # 3 ▸ absolute scale from the rotated reference's bbox
    extent = _max_extent(ref_rot)
    if not extent > 0:
        raise DegenerateReferenceError("reference geometry has a zero-size bounding box")

    # 4 ▸ larger side becomes scale * extent, i.e. a plain factor of `scale`
    moved = _apply(moved, "scale", scale, scale, origin=anchor)
    ref_scaled = affinity.scale(ref_rot, scale, scale, origin=anchor)

    # 5 ▸ centroid drift
    new_anchor = ref_scaled.centroid

    # 6 ▸ translate
    dx = shift[0] * shift_unit + (anchor.x - new_anchor.x)
    dy = shift[1] * shift_unit + (anchor.y - new_anchor.y)
    moved = _apply(moved, "translate", dx, dy)

    # 7 ▸ CRS tag
    if crs is not None and not isinstance(moved, BaseGeometry):
        moved = moved.set_crs(crs, allow_override=True)

    log.debug(
        "Repositioned: rot=%.1f° scale=%.3f shift=(%.0f, %.0f)",
        rotation, scale, dx, dy,
    )
    return moved


def apply_transform(geometry: Geo, reference, params: RegionTransform, crs=None) -> Geo:
    """`reposition` driven by a :class:`RegionTransform`."""
    return reposition(
        geometry,
        reference,
        scale=params.scale,
        shift=params.shift,
        rotation=params.rotation,
        shift_unit=params.shift_unit,
        crs=crs,
    )


def reposition_frame(
    frame: gpd.GeoDataFrame,
    reference,
    params: RegionTransform,
    ids: Optional[Sequence] = None,
    id_col: str = "region_id",
    crs=None,
) -> gpd.GeoDataFrame:
    """
    Reposition every row of *frame* and, when *ids* is given, label the
    output rows with them (one id per row).
    """
    out = apply_transform(frame, reference, params, crs=crs)
    if ids is not None:
        ids = list(ids)
        if len(ids) != len(out):
            raise ValueError(f"got {len(ids)} ids for {len(out)} rows")
        out[id_col] = ids
    return out
