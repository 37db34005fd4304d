# File: nwis_map/config.py
"""
Configuration management for the composite site map.
Everything the run needs (projection, region moves, site query,
plot style, paths) lives in one dataclass tree that round-trips through
YAML or JSON.
"""
import json
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from . import DATA_DIR, OUTPUT_DIR
from .models import PlotStyle, RegionTransform, SiteQuery

# US National Atlas Equal Area (EPSG:2163 spherical Lambert azimuthal)
US_EQUAL_AREA = (
    "+proj=laea +lat_0=45 +lon_0=-100 +x_0=0 +y_0=0 "
    "+a=6370997 +b=6370997 +units=m +no_defs"
)

CENSUS_STATES_URL = (
    "https://www2.census.gov/geo/tiger/GENZ2018/shp/cb_2018_us_state_20m.zip"
)

US_JURISDICTIONS: Tuple[str, ...] = (
    "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "DC", "FL",
    "GA", "HI", "ID", "IL", "IN", "IA", "KS", "KY", "LA", "ME",
    "MD", "MA", "MI", "MN", "MS", "MO", "MT", "NE", "NV", "NH",
    "NJ", "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA", "RI",
    "SC", "SD", "TN", "TX", "UT", "VT", "VA", "WA", "WV", "WI",
    "WY", "PR",
)


def default_region_transforms() -> Dict[str, RegionTransform]:
    """Alaska, Hawaii and Puerto Rico tucked in below the lower 48."""
    return {
        "AK": RegionTransform(scale=0.47, shift=(90, -465), rotation=-50),
        "HI": RegionTransform(scale=1.5, shift=(520, -110), rotation=-35),
        "PR": RegionTransform(scale=2.5, shift=(-140, 90), rotation=20),
    }


@dataclass
class PathConfig:
    """File and directory paths configuration"""
    data_dir: Path = DATA_DIR
    output_dir: Path = OUTPUT_DIR
    cache_dir: Path = DATA_DIR / "_cache"

    def __post_init__(self):
        """Ensure paths are Path objects"""
        for field_name in self.__dataclass_fields__:
            value = getattr(self, field_name)
            if isinstance(value, str):
                setattr(self, field_name, Path(value))


@dataclass
class BoundaryConfig:
    """Where the state / territory outlines come from"""
    source: str = CENSUS_STATES_URL
    id_column: str = "STUSPS"
    # drop these before plotting (not part of the composite map)
    exclude: List[str] = field(default_factory=lambda: ["VI", "GU", "MP", "AS"])


@dataclass
class MapConfig:
    """Main configuration class containing all settings"""
    paths: PathConfig = None
    boundaries: BoundaryConfig = None
    sites: SiteQuery = None
    style: PlotStyle = None
    regions: Dict[str, RegionTransform] = None
    jurisdictions: List[str] = None

    projection: str = US_EQUAL_AREA
    version: str = "1.0.0"

    def __post_init__(self):
        """Initialize default configurations"""
        if self.paths is None:
            self.paths = PathConfig()
        if self.boundaries is None:
            self.boundaries = BoundaryConfig()
        if self.sites is None:
            self.sites = SiteQuery()
        if self.style is None:
            self.style = PlotStyle()
        if self.regions is None:
            self.regions = default_region_transforms()
        if self.jurisdictions is None:
            self.jurisdictions = list(US_JURISDICTIONS)

    def create_directories(self):
        """Create necessary directories"""
        for directory in (self.paths.data_dir, self.paths.output_dir, self.paths.cache_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def save_to_file(self, file_path: Union[str, Path]):
        """Save configuration to file (JSON or YAML)"""
        file_path = Path(file_path)
        config_dict = self.to_dict()

        if file_path.suffix.lower() in ['.yaml', '.yml']:
            with open(file_path, 'w') as f:
                yaml.safe_dump(config_dict, f, default_flow_style=False, indent=2, sort_keys=False)
        else:
            with open(file_path, 'w') as f:
                json.dump(config_dict, f, indent=2, default=str)

    @classmethod
    def load_from_file(cls, file_path: Union[str, Path]) -> 'MapConfig':
        """Load configuration from file"""
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        if file_path.suffix.lower() in ['.yaml', '.yml']:
            with open(file_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}
        else:
            with open(file_path, 'r') as f:
                config_data = json.load(f)

        return cls.from_dict(config_data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to plain (YAML-safe) dictionary"""
        def convert_value(value):
            if isinstance(value, Path):
                return str(value)
            elif isinstance(value, Enum):
                return value.value
            elif isinstance(value, dict):
                return {k: convert_value(v) for k, v in value.items()}
            elif isinstance(value, (list, tuple)):
                return [convert_value(item) for item in value]
            else:
                return value

        return convert_value(asdict(self))

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'MapConfig':
        """Create configuration from dictionary"""
        config_kwargs = {}

        if 'paths' in config_dict:
            config_kwargs['paths'] = PathConfig(**config_dict['paths'])

        if 'boundaries' in config_dict:
            config_kwargs['boundaries'] = BoundaryConfig(**config_dict['boundaries'])

        if 'sites' in config_dict:
            config_kwargs['sites'] = SiteQuery(**config_dict['sites'])

        if 'style' in config_dict:
            config_kwargs['style'] = PlotStyle(**config_dict['style'])

        # an explicit (possibly empty) table replaces the defaults
        if 'regions' in config_dict:
            config_kwargs['regions'] = {
                region.upper(): RegionTransform(**params)
                for region, params in (config_dict['regions'] or {}).items()
            }

        if 'jurisdictions' in config_dict:
            config_kwargs['jurisdictions'] = [j.upper() for j in config_dict['jurisdictions']]

        for name in ('projection', 'version'):
            if name in config_dict:
                config_kwargs[name] = config_dict[name]

        return cls(**config_kwargs)

    def validate(self) -> List[str]:
        """Validate configuration and return list of issues"""
        issues = []

        if not self.projection:
            issues.append("Projection not configured")

        if not self.boundaries.source:
            issues.append("Boundary source not configured")

        if not self.jurisdictions:
            issues.append("No jurisdictions to query")

        unknown = sorted(set(self.jurisdictions) - set(US_JURISDICTIONS))
        if unknown:
            issues.append(f"Unknown jurisdiction codes: {', '.join(unknown)}")

        for region, params in self.regions.items():
            ref = params.reference_for(region)
            if ref in self.boundaries.exclude:
                issues.append(f"Region {region} uses excluded reference {ref}")

        return issues

    def __str__(self) -> str:
        return f"MapConfig(version={self.version}, regions={sorted(self.regions)})"


def load_config(file_path: Optional[Union[str, Path]] = None) -> MapConfig:
    """Config from *file_path*, or the built-in defaults."""
    if file_path is None:
        return MapConfig()
    return MapConfig.load_from_file(file_path)
