"""Structured parameter schema for OmegaConf.

Defaults describe the Greek region the tool was written for; the parameter
file and command line override them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

DEFAULT_PALETTE = ("orange", "blue", "red", "green", "khaki", "yellow", "orange")

DEFAULT_GMT_DEFAULTS = {
    "MAP_FRAME_TYPE": "fancy",
    "PS_PAGE_ORIENTATION": "portrait",
    "FONT_ANNOT_PRIMARY": "10",
    "FONT_LABEL": "10",
    "MAP_FRAME_WIDTH": "0.12c",
    "FONT_TITLE": "18p,Palatino-BoldItalic",
}


@dataclass
class RegionConfig:
    west: float = 19.0
    east: float = 30.6
    south: float = 33.0
    north: float = 42.0
    projscale: float = 6000000.0
    frame: str = "a2f1"


@dataclass
class MapConfig:
    title: str = ""
    projection_center: str = "24/37"
    scale_bar: str = "-Lf20/33.5/36:24/100+l+jr"
    # Argument of -U; empty disables the time stamp.
    stamp: str = ""
    page_size: str = "22cx22c"
    coast_resolution: str = "f"


@dataclass
class PathsConfig:
    input_dir: str = "."
    topography_bathymetry: str = ""
    topography_land: str = ""
    faults: str = ""
    logo: str = ""


@dataclass
class DataConfig:
    horizontal: List[str] = field(default_factory=list)
    vertical: List[str] = field(default_factory=list)
    strain: Optional[str] = None


@dataclass
class FeaturesConfig:
    topography: bool = False
    faults: bool = False
    labels: bool = False
    legend: bool = False
    logo: bool = False
    jpeg: bool = False


@dataclass
class VelocityConfig:
    scale: float = 0.05
    scale_lon: float = 20.5
    scale_lat: float = 34.0
    scale_magnitude: float = 20.0


@dataclass
class StrainConfig:
    scale: float = 0.05
    scale_lon: float = 20.5
    scale_lat: float = 35.0


@dataclass
class LegendConfig:
    geometry: str = "-Jx1i -R0/8/0/8 -Dx18.5c/12.6c/3.6c/3.5c/BL"


@dataclass
class LogoConfig:
    position: str = "-C16c/15.6c"
    width: str = "1.1c"


@dataclass
class OutputConfig:
    name: str = "gpsvelstr"
    vector_suffix: str = "eps"
    raster_suffix: str = "jpg"


@dataclass
class ScratchConfig:
    directory: str = "."
    bathymetry_cpt: str = "bath.cpt"
    land_cpt: str = "land.cpt"
    legend: str = ".legend"


@dataclass
class GmtConfig:
    executable: str = "gmt"
    verbosity: str = "n"
    defaults: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_GMT_DEFAULTS))


@dataclass
class RasterConfig:
    executable: str = "gs"
    quality: int = 100
    resolution: int = 300


@dataclass
class ParamsSchema:
    region: RegionConfig = field(default_factory=RegionConfig)
    map: MapConfig = field(default_factory=MapConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    data: DataConfig = field(default_factory=DataConfig)
    features: FeaturesConfig = field(default_factory=FeaturesConfig)
    velocity: VelocityConfig = field(default_factory=VelocityConfig)
    strain: StrainConfig = field(default_factory=StrainConfig)
    legend: LegendConfig = field(default_factory=LegendConfig)
    logo: LogoConfig = field(default_factory=LogoConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    scratch: ScratchConfig = field(default_factory=ScratchConfig)
    palette: List[str] = field(default_factory=lambda: list(DEFAULT_PALETTE))
    gmt: GmtConfig = field(default_factory=GmtConfig)
    raster: RasterConfig = field(default_factory=RasterConfig)


__all__ = [
    "DEFAULT_PALETTE",
    "DEFAULT_GMT_DEFAULTS",
    "ParamsSchema",
]
