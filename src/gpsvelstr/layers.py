"""Renderer calls for each layer kind.

Builders are pure: they read the configuration and dataset rows and return
the ordered steps of a layer. Column numbers below are 1-based, matching the
velocity file layout (site, lat, lon, -, vn, svn, ve, sve, vu, -).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
import shlex
from typing import Optional

from gpsvelstr.backends.base import DrawCall
from gpsvelstr.core import DatasetFile, LayerKind, LayerSpec, RunConfiguration
from gpsvelstr.errors import PlanError, ValidationError
from gpsvelstr.validators import read_rows

BATHYMETRY_CPT_ARGS = ("-Cgebco.cpt", "-T-7000/0/150", "-Z")
LAND_CPT_ARGS = ("-Cgray.cpt", "-T-3000/1800/50", "-Z")
FAULT_PEN = "-W.5,204/102/0"
CLOSING_POINT = "9999 9999\n"


@dataclass(frozen=True)
class LayerStep:
    """A renderer call; ``scratch`` names a non-page output file."""

    call: DrawCall
    scratch: Optional[str] = None


def _num(value: float) -> str:
    return f"{float(value):.10g}"


def _split(value: str) -> tuple[str, ...]:
    return tuple(shlex.split(value)) if value else ()


def _table(rows: Iterable[Sequence[str]]) -> str:
    lines = [" ".join(str(item) for item in row) for row in rows]
    return "".join(f"{line}\n" for line in lines)


def _float(value: str, dataset: DatasetFile) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise ValidationError(
            f"Non-numeric value {value!r} in {dataset.path}.",
            context={"path": str(dataset.path)},
        ) from exc


def _columns(dataset: DatasetFile, *columns: int) -> list[list[str]]:
    return [[fields[col - 1] for col in columns] for fields in read_rows(dataset.path)]


def region_args(config: RunConfiguration) -> tuple[str, str]:
    region = config.region
    return (
        f"-R{_num(region.west)}/{_num(region.east)}/{_num(region.south)}/{_num(region.north)}",
        f"-Jm{config.projection_center}/1:{_num(region.projscale)}",
    )


def _frame_arg(config: RunConfiguration) -> str:
    if config.title:
        return f"-B{config.region.frame}:.{config.title}:"
    return f"-B{config.region.frame}"


def _stamp_args(config: RunConfiguration) -> tuple[str, ...]:
    return (f"-U{config.stamp}",) if config.stamp else ()


def _verbosity(config: RunConfiguration) -> str:
    return f"-V{config.gmt_verbosity}"


def basemap_steps(config: RunConfiguration) -> list[LayerStep]:
    """Plain coastline basemap: frame, then filled coast."""
    region, proj = region_args(config)
    return [
        LayerStep(
            DrawCall(
                "psbasemap",
                (region, proj, *_split(config.scale_bar), _frame_arg(config), "-P"),
                label="frame",
            )
        ),
        LayerStep(
            DrawCall(
                "pscoast",
                (
                    region,
                    proj,
                    "-W0.25",
                    "-G195",
                    f"-D{config.coast_resolution}",
                    "-Na",
                    *_stamp_args(config),
                ),
                label="coastline",
            )
        ),
    ]


def topography_steps(config: RunConfiguration) -> list[LayerStep]:
    """Bathymetry and land shading clipped by the coastline, then frame and coast."""
    region, proj = region_args(config)
    bath_cpt = config.scratch_path(config.bathymetry_cpt)
    land_cpt = config.scratch_path(config.land_cpt)
    resolution = f"-D{config.coast_resolution}"
    return [
        LayerStep(
            DrawCall("makecpt", BATHYMETRY_CPT_ARGS, label="bathymetry color table"),
            scratch=config.bathymetry_cpt,
        ),
        LayerStep(
            DrawCall(
                "grdimage",
                (str(config.bathymetry_grid), region, proj, f"-C{bath_cpt}"),
                label="bathymetry",
            )
        ),
        LayerStep(
            DrawCall("pscoast", (proj, "-P", region, resolution, "-Gc"), label="sea mask")
        ),
        LayerStep(
            DrawCall("makecpt", LAND_CPT_ARGS, label="land color table"),
            scratch=config.land_cpt,
        ),
        LayerStep(
            DrawCall(
                "grdimage",
                (str(config.land_grid), region, proj, f"-C{land_cpt}"),
                label="land",
            )
        ),
        LayerStep(DrawCall("pscoast", (region, proj, "-Q"), label="land mask")),
        LayerStep(
            DrawCall(
                "psbasemap",
                (region, proj, _frame_arg(config), *_split(config.scale_bar)),
                label="frame",
            )
        ),
        LayerStep(
            DrawCall(
                "pscoast",
                (proj, region, resolution, "-W0.25p,black", *_stamp_args(config)),
                label="coastline",
            )
        ),
    ]


def faults_steps(config: RunConfiguration) -> list[LayerStep]:
    region, proj = region_args(config)
    return [
        LayerStep(
            DrawCall("psxy", (str(config.faults_path), region, proj, FAULT_PEN), label="faults")
        )
    ]


def _label_step(config: RunConfiguration, dataset: DatasetFile, *extra: str) -> LayerStep:
    region, proj = region_args(config)
    rows = [
        [lon, lat, "9", "0", "1", "RB", site]
        for site, lat, lon in _columns(dataset, 1, 2, 3)
    ]
    return LayerStep(
        DrawCall(
            "pstext",
            (region, proj, "-Dj0.2c/0.2c", *extra),
            stdin=_table(rows),
            label=f"labels {dataset.name}",
        )
    )


def horizontal_steps(config: RunConfiguration, layer: LayerSpec) -> list[LayerStep]:
    """Station markers, error-ellipse pass, solid pass and optional labels."""
    dataset, color = layer.dataset, layer.color
    region, proj = region_args(config)
    scale = _num(config.velocity_scale)
    markers = _table(_columns(dataset, 3, 2))
    vectors = _table(
        [*cols, "0", site]
        for site, *cols in _columns(dataset, 1, 3, 2, 7, 5, 8, 6)
    )
    steps = [
        LayerStep(
            DrawCall(
                "psxy",
                (region, proj, "-Sc0.10c", "-W0.005c", f"-G{color}"),
                stdin=markers,
                label=f"stations {dataset.name}",
            )
        ),
        LayerStep(
            DrawCall(
                "psvelo",
                (
                    region,
                    proj,
                    f"-Se{scale}/0.95/0",
                    "-W.3p,100",
                    "-A10p+e",
                    f"-G{color}",
                    "-L",
                    _verbosity(config),
                ),
                stdin=vectors,
                label=f"error ellipses {dataset.name}",
            )
        ),
        LayerStep(
            DrawCall(
                "psvelo",
                (
                    region,
                    proj,
                    f"-Se{scale}/0/0",
                    f"-W2p,{color}",
                    "-A10p+e",
                    f"-G{color}",
                    "-L",
                    _verbosity(config),
                ),
                stdin=vectors,
                label=f"vectors {dataset.name}",
            )
        ),
    ]
    if config.labels:
        steps.append(_label_step(config, dataset))
    return steps


def vertical_steps(config: RunConfiguration, layer: LayerSpec) -> list[LayerStep]:
    """Station markers, downward (red) and upward (blue) passes, optional labels."""
    dataset, color = layer.dataset, layer.color
    region, proj = region_args(config)
    scale = _num(config.velocity_scale)
    rows = _columns(dataset, 1, 2, 3, 9)
    down: list[list[str]] = []
    upward: list[list[str]] = []
    for site, lat, lon, up in rows:
        selected = down if _float(up, dataset) < 0 else upward
        selected.append([lon, lat, "0", up, "0", "0", "0", site])
    steps = [
        LayerStep(
            DrawCall(
                "psxy",
                (region, proj, "-Sc0.15c", "-W0.005c", f"-G{color}"),
                stdin=_table([lon, lat] for _, lat, lon, _ in rows),
                label=f"stations {dataset.name}",
            )
        ),
    ]
    for pen_color, selected, direction in (("red", down, "down"), ("blue", upward, "up")):
        steps.append(
            LayerStep(
                DrawCall(
                    "psvelo",
                    (
                        region,
                        proj,
                        f"-Se{scale}/0.95/0",
                        f"-W2p,{pen_color}",
                        "-A10p+e",
                        f"-G{pen_color}",
                        "-L",
                        _verbosity(config),
                    ),
                    stdin=_table(selected),
                    label=f"vectors {direction} {dataset.name}",
                )
            )
        )
    if config.labels:
        steps.append(_label_step(config, dataset, "-Gwhite"))
    return steps


def velocity_scale_steps(config: RunConfiguration, kind: LayerKind) -> list[LayerStep]:
    region, proj = region_args(config)
    lon, lat = (_num(value) for value in config.velocity_anchor)
    magnitude = _num(config.velocity_magnitude)
    if kind is LayerKind.HORIZONTAL_SCALE:
        row, fill = [lon, lat, magnitude, "0", "0", "0", "0", magnitude, "mm"], "black"
    else:
        row, fill = [lon, lat, "0", magnitude, "0", "0", "0", magnitude, "mm"], "blue"
    return [
        LayerStep(
            DrawCall(
                "psvelo",
                (
                    region,
                    proj,
                    f"-Se{_num(config.velocity_scale)}/0.95/10",
                    "-W2p,blue",
                    "-A10p+e",
                    f"-G{fill}",
                    "-L",
                    _verbosity(config),
                ),
                stdin=_table([row]),
                label=kind.value,
            )
        )
    ]


def strain_steps(config: RunConfiguration, layer: LayerSpec) -> list[LayerStep]:
    """Compression axes, extension axes, both scale glyphs, then the scale label."""
    region, proj = region_args(config)
    rows = _columns(layer.dataset, 2, 3, 4, 6, 8)
    compression: list[list[str]] = []
    extension: list[list[str]] = []
    for lat, lon, ext, comp, azimuth in rows:
        axis = _num(_float(azimuth, layer.dataset) + 90)
        compression.append([lon, lat, "0", comp, axis])
        extension.append([lon, lat, ext, "0", axis])
    lon, lat = (_num(value) for value in config.strain_anchor)

    def _axes(stdin: str, color: str, label: str) -> LayerStep:
        return LayerStep(
            DrawCall(
                "psvelo",
                (
                    proj,
                    region,
                    f"-Sx{_num(config.strain_scale)}",
                    "-L",
                    "-A10p+e",
                    f"-G{color}",
                    f"-W2p,{color}",
                    _verbosity(config),
                ),
                stdin=stdin,
                label=label,
            )
        )

    return [
        _axes(_table(compression), "blue", "compression axes"),
        _axes(_table(extension), "red", "extension axes"),
        _axes(_table([[lon, lat, "0", "-.01", "90"]]), "blue", "compression scale"),
        _axes(_table([[lon, lat, ".01", "0", "90"]]), "red", "extension scale"),
        LayerStep(
            DrawCall(
                "pstext",
                (region, proj, "-Dj0c/1c", "-Gwhite"),
                stdin=_table([[lon, lat, "9", "0", "1", "CB", "10", "nstrain"]]),
                label="strain scale label",
            )
        ),
    ]


def legend_descriptor(config: RunConfiguration) -> str:
    """GMT legend descriptor listing each dataset with its colour."""
    lines = ["H 12 Times-Roman Legend", "D 0.1i 1p"]
    for dataset, color in zip(config.horizontal, config.horizontal_colors):
        lines.append(f"S 0.1i c 0.10c {color} 0.005c 0.3i {dataset.name}")
    for dataset, color in zip(config.vertical, config.vertical_colors):
        lines.append(f"S 0.1i c 0.15c {color} 0.005c 0.3i {dataset.name} (vertical)")
    if config.strain_enabled:
        lines.append("S 0.1i - 0.3i blue 2p,blue 0.3i compression")
        lines.append("S 0.1i - 0.3i red 2p,red 0.3i extension")
    return "".join(f"{line}\n" for line in lines)


def legend_steps(config: RunConfiguration) -> list[LayerStep]:
    legend_path = config.scratch_path(config.legend_file)
    return [
        LayerStep(
            DrawCall(
                "pslegend",
                (str(legend_path), *_split(config.legend_geometry), "-C0.1c/0.1c", "-L1.3"),
                label="legend",
            )
        )
    ]


def logo_steps(config: RunConfiguration) -> list[LayerStep]:
    return [
        LayerStep(
            DrawCall(
                "psimage",
                (
                    str(config.logo_path),
                    *_split(config.logo_position),
                    f"-W{config.logo_width}",
                    "-F0.4",
                ),
                label="logo",
            )
        )
    ]


def close_steps(config: RunConfiguration) -> list[LayerStep]:
    region, proj = region_args(config)
    return [LayerStep(DrawCall("psxy", (proj, region), stdin=CLOSING_POINT, label="close page"))]


def steps_for(config: RunConfiguration, layer: LayerSpec) -> list[LayerStep]:
    """Dispatch ``layer`` to its builder."""
    kind = layer.kind
    if kind is LayerKind.BASEMAP:
        return basemap_steps(config)
    if kind is LayerKind.TOPOGRAPHY:
        return topography_steps(config)
    if kind is LayerKind.FAULTS:
        return faults_steps(config)
    if kind is LayerKind.HORIZONTAL_VELOCITY:
        return horizontal_steps(config, layer)
    if kind is LayerKind.VERTICAL_VELOCITY:
        return vertical_steps(config, layer)
    if kind in (LayerKind.HORIZONTAL_SCALE, LayerKind.VERTICAL_SCALE):
        return velocity_scale_steps(config, kind)
    if kind is LayerKind.STRAIN:
        return strain_steps(config, layer)
    if kind is LayerKind.LEGEND:
        return legend_steps(config)
    if kind is LayerKind.LOGO:
        return logo_steps(config)
    if kind is LayerKind.CLOSE:
        return close_steps(config)
    raise PlanError(f"No renderer calls defined for layer {kind.value!r}.")


__all__ = [
    "LayerStep",
    "region_args",
    "basemap_steps",
    "topography_steps",
    "faults_steps",
    "horizontal_steps",
    "vertical_steps",
    "velocity_scale_steps",
    "strain_steps",
    "legend_descriptor",
    "legend_steps",
    "logo_steps",
    "close_steps",
    "steps_for",
]
