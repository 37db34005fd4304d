"""Core dataclasses: region transform, site query, plot style, fetch outcomes."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import pandas as pd

SITE_COLUMNS = [
    "site_no", "station_nm", "dec_lat_va", "dec_long_va",
    "parm_cd", "data_type_cd", "begin_date", "end_date", "count_nu",
]


class SiteType(Enum):
    STREAM = "ST"
    LAKE = "LK"
    ESTUARY = "ES"
    SPRING = "SP"
    WELL = "GW"


@dataclass(frozen=True)
class RegionTransform:
    """
    How one region is moved into the composite map.

    ``shift`` is expressed in units of ``shift_unit`` metres (tens of km by
    default); ``rotation`` is in degrees, positive = clockwise.
    ``reference_key`` names the region whose outline anchors the transform,
    ``None`` meaning the region itself.
    """

    scale: float
    shift: Tuple[float, float] = (0.0, 0.0)
    rotation: float = 0.0
    reference_key: Optional[str] = None
    shift_unit: float = 10_000.0

    def __post_init__(self):
        if self.scale <= 0:
            raise ValueError("scale must be positive")
        if self.shift_unit <= 0:
            raise ValueError("shift_unit must be positive")
        if len(self.shift) != 2:
            raise ValueError("shift must be a 2-D vector")
        # YAML hands us lists
        object.__setattr__(self, "shift", (float(self.shift[0]), float(self.shift[1])))

    def reference_for(self, region_id: str) -> str:
        return self.reference_key or region_id


@dataclass(frozen=True)
class SiteQuery:
    """Fixed parameters of the NWIS site-service query and the row filters."""

    url: str = "https://waterservices.usgs.gov/nwis/site/"
    parameter_cd: str = "00060"          # discharge, ft³/s
    site_type: SiteType = SiteType.STREAM
    data_type: Optional[str] = "dv"      # daily values
    min_count: int = 365 * 30
    min_years: float = 30.0
    timeout: int = 60

    def __post_init__(self):
        if isinstance(self.site_type, str):
            object.__setattr__(self, "site_type", SiteType(self.site_type))
        if self.min_count < 0:
            raise ValueError("min_count must be >= 0")
        if self.min_years < 0:
            raise ValueError("min_years must be >= 0")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    def params(self, jurisdiction: str) -> dict:
        return {
            "format": "rdb",
            "stateCd": jurisdiction.lower(),
            "parameterCd": self.parameter_cd,
            "siteType": self.site_type.value,
            "seriesCatalogOutput": "true",
            "siteStatus": "all",
        }


@dataclass(frozen=True)
class PlotStyle:
    point_size: float = 4.0
    alpha: float = 0.6
    base_fill: str = "#e5e5e5"
    edge_color: str = "white"
    point_color: str = "dodgerblue"
    cmap: str = "viridis"
    scale_by_color: bool = False
    scale_by_size: bool = False
    figsize: Tuple[float, float] = (10.0, 6.5)
    dpi: int = 150

    def __post_init__(self):
        if self.point_size <= 0:
            raise ValueError("point_size must be positive")
        if not 0 < self.alpha <= 1:
            raise ValueError("alpha must be in (0, 1]")
        object.__setattr__(self, "figsize", tuple(self.figsize))


@dataclass(frozen=True)
class FetchOutcome:
    """Result of querying one jurisdiction: either ``data`` or ``error``."""

    jurisdiction: str
    data: Optional[pd.DataFrame] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchResult:
    outcomes: List[FetchOutcome] = field(default_factory=list)

    @property
    def failures(self) -> List[str]:
        return [o.jurisdiction for o in self.outcomes if not o.ok]

    @property
    def succeeded(self) -> List[str]:
        return [o.jurisdiction for o in self.outcomes if o.ok]

    @property
    def sites(self) -> pd.DataFrame:
        """All successfully fetched rows, in jurisdiction order."""
        frames = [o.data for o in self.outcomes if o.ok and o.data is not None]
        if not frames:
            return pd.DataFrame(columns=["region_id", *SITE_COLUMNS])
        return pd.concat(frames, ignore_index=True)
