"""
site_io.py – site-table CSV validation, points GeoDataFrame, GeoJSON helpers
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Final, List, Optional

import geopandas as gpd
import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger("nwis_map.io")

# ────────────────────────────────────────────────────────────────────────────
CSV_REQUIRED_COLS: Final[List[str]] = [
    "region_id",
    "site_no",
    "dec_lat_va",
    "dec_long_va",
    "count_nu",
]


class SiteRecord(BaseModel):
    """One row of a saved site table after initial cleaning."""

    model_config = ConfigDict(extra="ignore")

    region_id: str
    site_no: str
    station_nm: Optional[str] = None
    dec_lat_va: float = Field(..., ge=-90, le=90)
    dec_long_va: float = Field(..., ge=-180, le=180)
    count_nu: int = Field(..., ge=0)

    # ────────────── validators ──────────────────────────────────────────
    @field_validator("region_id", mode="before")
    @classmethod
    def _upper(cls, v: str) -> str:  # noqa: D401
        return v.strip().upper() if isinstance(v, str) else v

    @field_validator("site_no", mode="before")
    @classmethod
    def _site_str(cls, v):
        # pandas may hand us 1234567 for "01234567"
        return str(v).strip() if v is not None else v


# ────────────────────────────────────────────────────────────────────────────
def load_sites(csv_path: Path | str) -> pd.DataFrame:
    """
    Parse a saved site CSV and return the valid rows as a DataFrame.

    Rows failing validation are skipped with a warning.
    """
    csv_path = Path(csv_path)
    if not csv_path.is_file():
        raise FileNotFoundError(csv_path)

    try:
        df = pd.read_csv(csv_path, dtype={"site_no": str})
    except pd.errors.EmptyDataError:
        logger.warning("%s is empty – no sites", csv_path.name)
        return pd.DataFrame(columns=list(SiteRecord.model_fields))

    missing = [c for c in CSV_REQUIRED_COLS if c not in df.columns]
    if missing:
        raise ValueError(f"Missing columns {missing}")

    rows: list[dict] = []
    for raw in df.to_dict(orient="records"):
        # Convert pandas NaN → None so Optional fields validate
        raw = {k: (None if pd.isna(v) else v) for k, v in raw.items()}
        try:
            rows.append(SiteRecord(**raw).model_dump())
        except ValidationError as err:
            logger.warning("Skipping invalid site row: %s", err)

    logger.info("Loaded %d sites from %s", len(rows), csv_path.name)
    return pd.DataFrame(rows, columns=list(SiteRecord.model_fields))


def save_sites(df: pd.DataFrame, out_path: Path | str) -> Path:
    """Write the site table to CSV."""
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out_path, index=False)
    logger.info("Site table written to %s (%d rows)", out_path, len(df))
    return out_path


def sites_to_points(df: pd.DataFrame, crs: str | None = None) -> gpd.GeoDataFrame:
    """
    Site rows → point layer (``region_id``, ``site_no``, ``weight``) in
    EPSG:4326, reprojected to *crs* when given.
    """
    frame = pd.DataFrame(
        {
            "region_id": df["region_id"].astype(str).to_numpy(),
            "site_no": df["site_no"].astype(str).to_numpy(),
            "station_nm": df["station_nm"].to_numpy() if "station_nm" in df else None,
            "weight": pd.to_numeric(df["count_nu"]).to_numpy(),
        }
    )
    gdf = gpd.GeoDataFrame(
        frame,
        geometry=gpd.points_from_xy(df["dec_long_va"], df["dec_lat_va"]),
        crs="EPSG:4326",
    )
    return gdf.to_crs(crs) if crs is not None else gdf


# ────────────────────────────────────────────────────────────────────────────
def save_geojson(gdf: gpd.GeoDataFrame, out_path: Path | str):
    """Write a GeoJSON file and log the result."""
    out_path = Path(out_path)
    gdf.to_file(out_path, driver="GeoJSON")
    logger.info("GeoJSON written to %s (%d features)", out_path, len(gdf))
