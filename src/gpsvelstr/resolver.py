"""Resolve defaults, the parameter file and CLI overrides into a RunConfiguration."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import logging
from pathlib import Path
from typing import Any, Optional, Union

from omegaconf import OmegaConf
from omegaconf.errors import OmegaConfBaseException

from gpsvelstr.colors import assign_colors
from gpsvelstr.config.schema import ParamsSchema
from gpsvelstr.core import (
    STRAIN_MIN_FIELDS,
    STRAIN_NUMERIC_COLUMNS,
    VELOCITY_FIELDS,
    VELOCITY_NUMERIC_COLUMNS,
    DatasetFile,
    Region,
    RunConfiguration,
)
from gpsvelstr.errors import ConfigError
from gpsvelstr.io_utils import read_yaml_payload
from gpsvelstr.validators import (
    dataset_error,
    inspect_dataset,
    numeric_error,
    validate_dataset,
)

DEFAULT_PARAMS_FILE = "default-param.yaml"

_LOGGER = logging.getLogger("gpsvelstr.config")


def load_params(
    params_path: Union[str, Path],
    overrides: Optional[Sequence[str]] = None,
    cli: Optional[Mapping[str, Any]] = None,
) -> dict[str, Any]:
    """Merge built-in defaults < parameter file < dotlist overrides < CLI flags."""
    path = Path(params_path)
    if not path.is_file():
        raise ConfigError(
            f"Parameter file not found: {path}",
            user_message=f"{path} file does not exist.",
            context={"path": str(path)},
        )
    payload = read_yaml_payload(path, error_cls=ConfigError)
    if payload is None:
        payload = {}
    if not isinstance(payload, Mapping):
        raise ConfigError(f"Parameter file {path} must contain a mapping.")
    try:
        merged = OmegaConf.merge(
            OmegaConf.structured(ParamsSchema),
            OmegaConf.create(dict(payload)),
            OmegaConf.from_dotlist(list(overrides or [])),
            OmegaConf.create(dict(cli or {})),
        )
        resolved = OmegaConf.to_container(merged, resolve=True)
    except OmegaConfBaseException as exc:
        raise ConfigError(f"Invalid parameters in {path}: {exc}") from exc
    if not isinstance(resolved, dict):
        raise ConfigError("Resolved parameters must be a mapping.")
    return resolved


def _optional_path(value: Optional[str]) -> Optional[Path]:
    if value is None or not str(value).strip():
        return None
    return Path(value)


def _asset_exists(path: Optional[Path]) -> bool:
    return path is not None and path.is_file()


class _Resolution:
    """Mutable scratch state while a RunConfiguration is being built."""

    def __init__(self, logger: logging.Logger) -> None:
        self.logger = logger
        self.warnings: list[str] = []

    def downgrade(self, message: str) -> bool:
        self.logger.warning(message)
        self.warnings.append(message)
        return False


def _check_region(region: Mapping[str, Any]) -> Region:
    result = Region(
        west=float(region["west"]),
        east=float(region["east"]),
        south=float(region["south"]),
        north=float(region["north"]),
        projscale=float(region["projscale"]),
        frame=str(region["frame"]),
    )
    if result.west >= result.east:
        raise ConfigError(
            f"Region west ({result.west}) must be smaller than east ({result.east})."
        )
    if result.south >= result.north:
        raise ConfigError(
            f"Region south ({result.south}) must be smaller than north ({result.north})."
        )
    if result.projscale <= 0:
        raise ConfigError(f"Projection scale must be positive, got {result.projscale}.")
    return result


def _check_positive(value: Any, label: str) -> float:
    number = float(value)
    if number <= 0:
        raise ConfigError(f"{label} must be positive, got {number}.")
    return number


def _velocity_datasets(
    horizontal: Sequence[str],
    vertical: Sequence[str],
    logger: logging.Logger,
) -> tuple[tuple[DatasetFile, ...], tuple[DatasetFile, ...]]:
    inspected_h = tuple(inspect_dataset(path, VELOCITY_FIELDS) for path in horizontal)
    inspected_v = tuple(inspect_dataset(path, VELOCITY_FIELDS) for path in vertical)
    errors = []
    for item in (*inspected_h, *inspected_v):
        error = dataset_error(item)
        if error is None:
            error = numeric_error(item, VELOCITY_NUMERIC_COLUMNS)
        if error is not None:
            errors.append(error)
    for error in errors:
        logger.error(error.user_message)
    if errors:
        raise errors[0]
    return inspected_h, inspected_v


def _strain_dataset(value: Optional[str], input_dir: str) -> Optional[DatasetFile]:
    path = _optional_path(value)
    if path is None:
        return None
    if not path.is_absolute():
        path = Path(input_dir) / path
    if not path.is_file():
        raise ConfigError(
            f"Strain input file {path} does not exist.",
            user_message=(
                f"input file {path} does not exist; "
                "please download it and then use this switch."
            ),
            context={"path": str(path)},
        )
    dataset = validate_dataset(path, STRAIN_MIN_FIELDS, at_least=True)
    error = numeric_error(dataset, STRAIN_NUMERIC_COLUMNS)
    if error is not None:
        raise error
    return dataset


def build_configuration(
    params: Mapping[str, Any],
    *,
    logger: Optional[logging.Logger] = None,
) -> RunConfiguration:
    """Check assets and data files and freeze ``params`` into a RunConfiguration."""
    state = _Resolution(logger or _LOGGER)
    features = params["features"]
    paths = params["paths"]

    try:
        region = _check_region(params["region"])
        velocity_scale = _check_positive(params["velocity"]["scale"], "Velocity scale")
        strain_scale = _check_positive(params["strain"]["scale"], "Strain scale")
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid numeric parameter: {exc}") from exc

    bathymetry = _optional_path(paths["topography_bathymetry"])
    land = _optional_path(paths["topography_land"])
    topography = bool(features["topography"])
    if topography and not (_asset_exists(bathymetry) and _asset_exists(land)):
        topography = state.downgrade(
            "grd file for topography does not exist, falling back to coastline."
        )

    faults_path = _optional_path(paths["faults"])
    faults = bool(features["faults"])
    if faults and not _asset_exists(faults_path):
        faults = state.downgrade(
            "Faults database does not exist; please download it and then use this switch."
        )

    logo_path = _optional_path(paths["logo"])
    logo = bool(features["logo"])
    if logo and not _asset_exists(logo_path):
        logo = state.downgrade("Logo file does not exist.")

    data = params["data"]
    horizontal, vertical = _velocity_datasets(
        list(data["horizontal"] or []),
        list(data["vertical"] or []),
        state.logger,
    )
    palette = tuple(str(color) for color in params["palette"])
    horizontal_colors = assign_colors(
        len(horizontal), palette, label="horizontal velocity"
    )
    vertical_colors = assign_colors(len(vertical), palette, label="vertical velocity")
    strain = _strain_dataset(data["strain"], paths["input_dir"])

    output = params["output"]
    scratch = params["scratch"]
    velocity = params["velocity"]
    strain_cfg = params["strain"]
    map_cfg = params["map"]
    gmt = params["gmt"]
    raster = params["raster"]
    return RunConfiguration(
        region=region,
        title=str(map_cfg["title"] or ""),
        projection_center=str(map_cfg["projection_center"]),
        scale_bar=str(map_cfg["scale_bar"] or ""),
        stamp=str(map_cfg["stamp"] or ""),
        page_size=str(map_cfg["page_size"]),
        coast_resolution=str(map_cfg["coast_resolution"]),
        topography=topography,
        bathymetry_grid=bathymetry,
        land_grid=land,
        faults=faults,
        faults_path=faults_path,
        horizontal=horizontal,
        vertical=vertical,
        horizontal_colors=horizontal_colors,
        vertical_colors=vertical_colors,
        strain=strain,
        velocity_scale=velocity_scale,
        velocity_anchor=(float(velocity["scale_lon"]), float(velocity["scale_lat"])),
        velocity_magnitude=float(velocity["scale_magnitude"]),
        strain_scale=strain_scale,
        strain_anchor=(float(strain_cfg["scale_lon"]), float(strain_cfg["scale_lat"])),
        labels=bool(features["labels"]),
        legend=bool(features["legend"]),
        legend_geometry=str(params["legend"]["geometry"]),
        logo=logo,
        logo_path=logo_path,
        logo_position=str(params["logo"]["position"]),
        logo_width=str(params["logo"]["width"]),
        jpeg=bool(features["jpeg"]),
        vector_output=Path(f"{output['name']}.{output['vector_suffix']}"),
        raster_output=Path(f"{output['name']}.{output['raster_suffix']}"),
        scratch_dir=Path(scratch["directory"]),
        bathymetry_cpt=str(scratch["bathymetry_cpt"]),
        land_cpt=str(scratch["land_cpt"]),
        legend_file=str(scratch["legend"]),
        palette=palette,
        gmt_executable=str(gmt["executable"]),
        gmt_verbosity=str(gmt["verbosity"]),
        gmt_defaults=tuple((str(key), str(value)) for key, value in gmt["defaults"].items()),
        raster_executable=str(raster["executable"]),
        raster_quality=int(raster["quality"]),
        raster_resolution=int(raster["resolution"]),
        warnings=tuple(state.warnings),
    )


def resolve_configuration(
    params_path: Union[str, Path] = DEFAULT_PARAMS_FILE,
    overrides: Optional[Sequence[str]] = None,
    cli: Optional[Mapping[str, Any]] = None,
    *,
    logger: Optional[logging.Logger] = None,
) -> RunConfiguration:
    params = load_params(params_path, overrides, cli)
    return build_configuration(params, logger=logger)


__all__ = [
    "DEFAULT_PARAMS_FILE",
    "load_params",
    "build_configuration",
    "resolve_configuration",
]
