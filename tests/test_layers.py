from pathlib import Path

from conftest import STRAIN_ROWS, VELOCITY_ROWS, write_table
from gpsvelstr.core import DatasetFile, LayerKind, LayerSpec, Region, RunConfiguration
from gpsvelstr.layers import (
    basemap_steps,
    close_steps,
    horizontal_steps,
    legend_descriptor,
    region_args,
    steps_for,
    strain_steps,
    topography_steps,
    velocity_scale_steps,
    vertical_steps,
)

REGION = Region(19.0, 30.6, 33.0, 42.0, 6000000.0, "a2f1")


def _config(**kwargs) -> RunConfiguration:
    kwargs.setdefault("region", REGION)
    return RunConfiguration(**kwargs)


def _velocity(tmp_path: Path) -> DatasetFile:
    path = write_table(tmp_path / "itrf.vel", VELOCITY_ROWS)
    return DatasetFile(path, 10, 10, True)


def test_region_args() -> None:
    assert region_args(_config()) == ("-R19/30.6/33/42", "-Jm24/37/1:6000000")


def test_basemap_title_and_stamp() -> None:
    config = _config(title="Greece", stamp="gpsvelstr", scale_bar="-Lf20/33.5/36:24/100+l+jr")

    frame, coast = basemap_steps(config)

    assert frame.call.module == "psbasemap"
    assert "-Ba2f1:.Greece:" in frame.call.args
    assert "-Lf20/33.5/36:24/100+l+jr" in frame.call.args
    assert coast.call.module == "pscoast"
    assert "-Ugpsvelstr" in coast.call.args


def test_topography_writes_color_tables_to_scratch() -> None:
    config = _config(bathymetry_grid=Path("bath.grd"), land_grid=Path("land.grd"))

    steps = topography_steps(config)

    assert [step.call.module for step in steps] == [
        "makecpt",
        "grdimage",
        "pscoast",
        "makecpt",
        "grdimage",
        "pscoast",
        "psbasemap",
        "pscoast",
    ]
    assert [step.scratch for step in steps if step.scratch] == ["bath.cpt", "land.cpt"]
    assert "-Cbath.cpt" in steps[1].call.args


def test_horizontal_vectors_use_velocity_columns(tmp_path: Path) -> None:
    dataset = _velocity(tmp_path)
    layer = LayerSpec(LayerKind.HORIZONTAL_VELOCITY, dataset, "orange")

    steps = horizontal_steps(_config(velocity_scale=0.05), layer)

    markers, ellipses, solid = steps
    assert markers.call.stdin.splitlines()[0] == "22.9967 40.5667"
    assert "-Gorange" in markers.call.args
    assert ellipses.call.stdin.splitlines()[0] == "22.9967 40.5667 -8.20 12.10 0.28 0.31 0 AUTH"
    assert "-Se0.05/0.95/0" in ellipses.call.args
    assert "-W2p,orange" in solid.call.args


def test_labels_are_optional(tmp_path: Path) -> None:
    layer = LayerSpec(LayerKind.HORIZONTAL_VELOCITY, _velocity(tmp_path), "blue")

    steps = horizontal_steps(_config(labels=True), layer)

    assert steps[-1].call.module == "pstext"
    assert steps[-1].call.stdin.splitlines()[1] == "23.8644 38.0467 9 0 1 RB NOA1"


def test_vertical_passes_split_by_sign(tmp_path: Path) -> None:
    layer = LayerSpec(LayerKind.VERTICAL_VELOCITY, _velocity(tmp_path), "green")

    markers, down, up = vertical_steps(_config(), layer)

    assert "-Ggreen" in markers.call.args
    assert "-W2p,red" in down.call.args
    assert [row.split()[-1] for row in down.call.stdin.splitlines()] == ["AUTH", "PAT0"]
    assert up.call.stdin == "23.8644 38.0467 0 0.80 0 0 0 NOA1\n"


def test_scale_glyphs() -> None:
    config = _config(velocity_anchor=(20.5, 34.0), velocity_magnitude=20.0)

    (horizontal,) = velocity_scale_steps(config, LayerKind.HORIZONTAL_SCALE)
    (vertical,) = velocity_scale_steps(config, LayerKind.VERTICAL_SCALE)

    assert horizontal.call.stdin == "20.5 34 20 0 0 0 0 20 mm\n"
    assert vertical.call.stdin == "20.5 34 0 20 0 0 0 20 mm\n"


def test_strain_axes(tmp_path: Path) -> None:
    path = write_table(tmp_path / "strain.dat", STRAIN_ROWS)
    layer = LayerSpec(LayerKind.STRAIN, DatasetFile(path, 8, 8, True))

    steps = strain_steps(_config(strain_scale=0.05, strain_anchor=(20.5, 35.0)), layer)

    compression, extension = steps[0], steps[1]
    assert compression.call.stdin.splitlines()[0] == "23.00 38.00 0 -35.6 202"
    assert extension.call.stdin.splitlines()[1] == "22.00 39.00 18.4 0 69.5"
    assert "-Sx0.05" in compression.call.args
    assert steps[-1].call.module == "pstext"
    assert len(steps) == 5


def test_legend_lists_datasets_with_colors(tmp_path: Path) -> None:
    dataset = _velocity(tmp_path)
    config = _config(horizontal=(dataset,), horizontal_colors=("orange",), legend=True)

    text = legend_descriptor(config)

    assert text.startswith("H 12 Times-Roman Legend\n")
    assert "orange" in text and "itrf.vel" in text


def test_close_and_dispatch() -> None:
    config = _config()

    (close,) = close_steps(config)

    assert close.call.stdin == "9999 9999\n"
    assert steps_for(config, LayerSpec(LayerKind.CLOSE)) == [close]
