import json
import logging
from dataclasses import replace
from pathlib import Path

import pytest

from conftest import VELOCITY_ROWS, write_table
from gpsvelstr.artifact import ArtifactState
from gpsvelstr.backends.dummy import PAGE_HEADER, PAGE_TRAILER, DummyRasterizer, DummyRenderer
from gpsvelstr.core import DatasetFile, LayerKind, LayerPlan, LayerSpec, WriteMode
from gpsvelstr.errors import ConfigError, DrawCallFailed, PlanError, ValidationError
from gpsvelstr.pipelines import LayerPipeline, PipelineState
from gpsvelstr.plan import build_layer_plan
from gpsvelstr.runner import render_figure


def _page_modes(renderer: DummyRenderer) -> list[tuple[WriteMode, bool]]:
    return [(call.mode, call.keep_open) for call in renderer.page_calls()]


def _assert_one_page(renderer: DummyRenderer) -> None:
    modes = _page_modes(renderer)
    assert modes[0] == (WriteMode.CREATE, True)
    assert modes[-1] == (WriteMode.APPEND, False)
    assert all(mode == (WriteMode.APPEND, True) for mode in modes[1:-1])


def test_minimal_run(make_config, workdir: Path) -> None:
    config = make_config()
    renderer = DummyRenderer()

    result = render_figure(config, renderer=renderer)

    assert result.ok
    assert renderer.modules() == ["psbasemap", "pscoast", "psxy"]
    _assert_one_page(renderer)
    assert renderer.defaults["PS_MEDIA"] == "22cx22c"
    assert renderer.defaults["MAP_FRAME_TYPE"] == "fancy"
    text = (workdir / "map.eps").read_text(encoding="utf-8")
    assert text.startswith(PAGE_HEADER) and text.endswith(PAGE_TRAILER)
    assert result.final.final_paths() == [config.vector_output]


def test_full_run(full_config, workdir: Path) -> None:
    renderer = DummyRenderer()
    rasterizer = DummyRasterizer()

    result = render_figure(full_config, renderer=renderer, rasterizer=rasterizer)

    assert result.ok
    _assert_one_page(renderer)
    assert renderer.modules()[:2] == ["makecpt", "grdimage"]
    assert "psimage" in renderer.modules()
    assert "pslegend" in renderer.modules()
    assert (workdir / "map.jpg").exists()
    assert rasterizer.requests == [(workdir / "map.eps", workdir / "map.jpg", 100, 300)]
    for name in ("bath.cpt", "land.cpt", ".legend"):
        assert not (workdir / name).exists()
    assert {path.name for path in result.final.purged} == {"bath.cpt", "land.cpt", ".legend"}


def test_colors_follow_file_order(make_config, velocity_files) -> None:
    first, second = velocity_files("itrf.vel", "euref.vel")

    for order, expected in (((first, second), "-Gorange"), ((second, first), "-Gblue")):
        renderer = DummyRenderer()
        config = make_config({"data": {"horizontal": list(order)}})
        render_figure(config, renderer=renderer)
        itrf_calls = [call for call in renderer.calls if call.label == "stations itrf.vel"]
        assert expected in itrf_calls[0].args


def test_failing_call_stops_the_run(make_config, velocity_files, workdir, caplog) -> None:
    config = make_config({"data": {"horizontal": velocity_files("a.vel", "b.vel")}})
    renderer = DummyRenderer(fail_on="psvelo")

    with caplog.at_level(logging.ERROR, logger="gpsvelstr.run"):
        with pytest.raises(DrawCallFailed) as exc:
            render_figure(config, renderer=renderer)

    assert renderer.calls[-1].module == "psvelo"
    assert all(call.keep_open is not False for call in renderer.calls)
    assert exc.value.context["layer"] == "horizontal-velocity[a.vel]"
    assert any("must not be used" in record.getMessage() for record in caplog.records)


def test_gmtset_failure_aborts_before_drawing(make_config) -> None:
    class _BrokenDefaults(DummyRenderer):
        def configure(self, defaults):
            from gpsvelstr.backends.base import CallStatus

            return CallStatus(71, "gmtset: bad key")

    renderer = _BrokenDefaults()

    with pytest.raises(DrawCallFailed):
        render_figure(make_config(), renderer=renderer)
    assert renderer.calls == []


def test_raster_failure_keeps_vector_output(full_config, workdir: Path) -> None:
    result = render_figure(
        full_config, renderer=DummyRenderer(), rasterizer=DummyRasterizer(status=1)
    )

    assert not result.ok
    assert result.final.raster_error.exit_status == 3
    assert (workdir / "map.eps").read_text(encoding="utf-8").endswith(PAGE_TRAILER)
    assert not (workdir / "map.jpg").exists()
    manifest = result.manifest()
    assert manifest.status == "raster-failed"
    assert manifest.raster_status == 1


def test_manifest_is_written(make_config, workdir: Path) -> None:
    result = render_figure(make_config(), renderer=DummyRenderer())

    path = result.write_manifest(workdir / "summary.json")

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["status"] == "ok"
    assert payload["layers"] == ["basemap", "close"]
    assert [step["module"] for step in payload["steps"]] == ["psbasemap", "pscoast", "psxy"]


def test_pipeline_states(make_config) -> None:
    config = make_config()
    pipeline = LayerPipeline(config, DummyRenderer())

    pipeline.run(build_layer_plan(config))

    assert pipeline.state is PipelineState.CLOSED
    assert pipeline.artifact.state is ArtifactState.CLOSED
    with pytest.raises(PlanError):
        pipeline.run(build_layer_plan(config))


def test_pipeline_rejects_invalid_plan(make_config) -> None:
    renderer = DummyRenderer()
    pipeline = LayerPipeline(make_config(), renderer)

    with pytest.raises(PlanError):
        pipeline.run(LayerPlan((LayerSpec(LayerKind.LEGEND), LayerSpec(LayerKind.CLOSE))))
    assert renderer.calls == []


def test_aborted_pipeline(make_config) -> None:
    config = make_config()
    pipeline = LayerPipeline(config, DummyRenderer(fail_at=0))

    with pytest.raises(DrawCallFailed):
        pipeline.run(build_layer_plan(config))

    assert pipeline.state is PipelineState.ABORTED
    assert pipeline.artifact.state is ArtifactState.ABORTED


def test_missing_grids_fall_back_to_coastline(make_config, workdir: Path) -> None:
    config = make_config({"features": {"topography": True}})
    renderer = DummyRenderer()

    result = render_figure(config, renderer=renderer)

    assert result.ok
    assert renderer.modules() == ["psbasemap", "pscoast", "psxy"]
    assert config.warnings
    assert (workdir / "map.eps").read_text(encoding="utf-8").endswith(PAGE_TRAILER)


def test_bad_numbers_are_rejected_before_drawing(make_config, workdir: Path) -> None:
    bad = write_table(
        workdir / "up.vel",
        [*VELOCITY_ROWS, "BAD1 39.0 22.0 0 1.0 0.2 1.0 0.2 n/a 0"],
    )
    renderer = DummyRenderer()

    with pytest.raises(ConfigError):
        render_figure(make_config({"data": {"vertical": [str(bad)]}}), renderer=renderer)

    assert renderer.calls == []
    assert not (workdir / "map.eps").exists()


def test_builder_failure_aborts_the_page(make_config, workdir: Path) -> None:
    bad = write_table(workdir / "up.vel", ["BAD1 39.0 22.0 0 1.0 0.2 1.0 0.2 n/a 0"])
    config = replace(
        make_config(),
        vertical=(DatasetFile(bad, 10, 10, True),),
        vertical_colors=("orange",),
    )
    renderer = DummyRenderer()
    pipeline = LayerPipeline(config, renderer)

    with pytest.raises(ValidationError):
        pipeline.run(build_layer_plan(config))

    assert renderer.modules() == ["psbasemap", "pscoast"]
    assert pipeline.state is PipelineState.ABORTED
    assert pipeline.artifact.state is ArtifactState.ABORTED
    assert not pipeline.artifact.usable
