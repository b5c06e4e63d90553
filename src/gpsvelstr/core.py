"""Core run data model: configuration snapshot, datasets, layer plan, manifest."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from gpsvelstr.errors import PlanError

VELOCITY_FIELDS = 10
STRAIN_MIN_FIELDS = 8
# 1-based columns the layer builders parse as numbers.
VELOCITY_NUMERIC_COLUMNS = (2, 3, 5, 6, 7, 8, 9)
STRAIN_NUMERIC_COLUMNS = (2, 3, 4, 6, 8)


class WriteMode(str, Enum):
    CREATE = "create"
    APPEND = "append"


@dataclass(frozen=True)
class DatasetFile:
    """A tabular input file and the outcome of its field-count check."""

    path: Path
    expected_fields: int
    observed_fields: Optional[int]
    valid: bool
    problem: Optional[str] = None

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class Region:
    west: float
    east: float
    south: float
    north: float
    projscale: float
    frame: str


@dataclass(frozen=True)
class RunConfiguration:
    """Immutable snapshot of every resolved run parameter."""

    region: Region
    title: str = ""
    projection_center: str = "24/37"
    scale_bar: str = ""
    stamp: str = ""
    page_size: str = "22cx22c"
    coast_resolution: str = "f"

    topography: bool = False
    bathymetry_grid: Optional[Path] = None
    land_grid: Optional[Path] = None
    faults: bool = False
    faults_path: Optional[Path] = None

    horizontal: Tuple[DatasetFile, ...] = ()
    vertical: Tuple[DatasetFile, ...] = ()
    horizontal_colors: Tuple[str, ...] = ()
    vertical_colors: Tuple[str, ...] = ()
    strain: Optional[DatasetFile] = None

    velocity_scale: float = 0.05
    velocity_anchor: Tuple[float, float] = (0.0, 0.0)
    velocity_magnitude: float = 20.0
    strain_scale: float = 0.05
    strain_anchor: Tuple[float, float] = (0.0, 0.0)

    labels: bool = False
    legend: bool = False
    legend_geometry: str = ""
    logo: bool = False
    logo_path: Optional[Path] = None
    logo_position: str = ""
    logo_width: str = "1.1c"
    jpeg: bool = False

    vector_output: Path = Path("gpsvelstr.eps")
    raster_output: Path = Path("gpsvelstr.jpg")
    scratch_dir: Path = Path(".")
    bathymetry_cpt: str = "bath.cpt"
    land_cpt: str = "land.cpt"
    legend_file: str = ".legend"

    palette: Tuple[str, ...] = ()
    gmt_executable: str = "gmt"
    gmt_verbosity: str = "n"
    gmt_defaults: Tuple[Tuple[str, str], ...] = ()
    raster_executable: str = "gs"
    raster_quality: int = 100
    raster_resolution: int = 300

    warnings: Tuple[str, ...] = field(default=(), compare=False)

    @property
    def strain_enabled(self) -> bool:
        return self.strain is not None

    def scratch_path(self, name: str) -> Path:
        return self.scratch_dir / name

    def to_dict(self) -> Dict[str, Any]:
        """Plain, YAML/JSON-friendly view of the configuration."""
        return _plain(asdict(self))


def _plain(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if isinstance(value, Path):
        return str(value)
    return value


class LayerKind(str, Enum):
    BASEMAP = "basemap"
    TOPOGRAPHY = "topography"
    FAULTS = "faults"
    HORIZONTAL_VELOCITY = "horizontal-velocity"
    HORIZONTAL_SCALE = "horizontal-scale"
    VERTICAL_VELOCITY = "vertical-velocity"
    VERTICAL_SCALE = "vertical-scale"
    STRAIN = "strain"
    LEGEND = "legend"
    LOGO = "logo"
    CLOSE = "close"


# Stacking rank; a plan must never decrease in rank.
LAYER_RANK: Dict[LayerKind, int] = {
    LayerKind.BASEMAP: 0,
    LayerKind.TOPOGRAPHY: 0,
    LayerKind.FAULTS: 1,
    LayerKind.HORIZONTAL_VELOCITY: 2,
    LayerKind.HORIZONTAL_SCALE: 3,
    LayerKind.VERTICAL_VELOCITY: 4,
    LayerKind.VERTICAL_SCALE: 5,
    LayerKind.STRAIN: 6,
    LayerKind.LEGEND: 7,
    LayerKind.LOGO: 8,
    LayerKind.CLOSE: 9,
}

_BASEMAP_KINDS = (LayerKind.BASEMAP, LayerKind.TOPOGRAPHY)
_PER_FILE_KINDS = (LayerKind.HORIZONTAL_VELOCITY, LayerKind.VERTICAL_VELOCITY)


@dataclass(frozen=True)
class LayerSpec:
    kind: LayerKind
    dataset: Optional[DatasetFile] = None
    color: Optional[str] = None

    @property
    def label(self) -> str:
        if self.dataset is None:
            return self.kind.value
        return f"{self.kind.value}[{self.dataset.name}]"


@dataclass(frozen=True)
class LayerPlan:
    layers: Tuple[LayerSpec, ...]

    def __iter__(self):
        return iter(self.layers)

    def __len__(self) -> int:
        return len(self.layers)

    def kinds(self) -> List[LayerKind]:
        return [layer.kind for layer in self.layers]

    def validate(self) -> "LayerPlan":
        """Check stacking invariants; return self for chaining."""
        kinds = self.kinds()
        if not kinds:
            raise PlanError("Layer plan is empty.")
        if kinds[0] not in _BASEMAP_KINDS:
            raise PlanError(
                f"Layer plan must start with a basemap layer, got {kinds[0].value!r}."
            )
        basemaps = sum(1 for kind in kinds if kind in _BASEMAP_KINDS)
        if basemaps != 1:
            raise PlanError(f"Layer plan must contain one basemap layer, got {basemaps}.")
        if kinds[-1] is not LayerKind.CLOSE or kinds.count(LayerKind.CLOSE) != 1:
            raise PlanError("Layer plan must end with exactly one closing layer.")
        for previous, current in zip(kinds, kinds[1:]):
            if LAYER_RANK[current] < LAYER_RANK[previous]:
                raise PlanError(
                    f"Layer {current.value!r} cannot be drawn after {previous.value!r}."
                )
        for kind in LayerKind:
            if kind in _PER_FILE_KINDS:
                continue
            if kinds.count(kind) > 1:
                raise PlanError(f"Layer {kind.value!r} appears more than once.")
        for layer in self.layers:
            if layer.kind in _PER_FILE_KINDS and (
                layer.dataset is None or layer.color is None
            ):
                raise PlanError(f"Layer {layer.kind.value!r} needs a dataset and a color.")
        for per_file, scale in (
            (LayerKind.HORIZONTAL_VELOCITY, LayerKind.HORIZONTAL_SCALE),
            (LayerKind.VERTICAL_VELOCITY, LayerKind.VERTICAL_SCALE),
        ):
            if (per_file in kinds) != (scale in kinds):
                raise PlanError(
                    f"Layer {scale.value!r} must accompany {per_file.value!r} layers."
                )
        return self


@dataclass(frozen=True)
class StepRecord:
    layer: str
    module: str
    target: str
    mode: str
    keep_open: Optional[bool]
    status: int
    elapsed_seconds: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class RunManifest(BaseModel):
    """Summary of a finished (or aborted) run."""

    model_config = ConfigDict(extra="forbid")

    schema_version: int = 1
    version: str
    status: str
    created_at: str
    vector_output: str
    raster_output: Optional[str] = None
    raster_status: Optional[int] = None
    layers: List[str]
    steps: List[Dict[str, Any]]
    warnings: List[str] = []
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


__all__ = [
    "VELOCITY_FIELDS",
    "STRAIN_MIN_FIELDS",
    "VELOCITY_NUMERIC_COLUMNS",
    "STRAIN_NUMERIC_COLUMNS",
    "WriteMode",
    "DatasetFile",
    "Region",
    "RunConfiguration",
    "LayerKind",
    "LAYER_RANK",
    "LayerSpec",
    "LayerPlan",
    "StepRecord",
    "RunManifest",
]
