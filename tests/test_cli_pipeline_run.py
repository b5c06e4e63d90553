import json
import logging
from pathlib import Path

import pytest

from conftest import VELOCITY_ROWS, write_table
from gpsvelstr.backends.dummy import PAGE_TRAILER
from gpsvelstr.cli import _cli_main, build_parser, cli_overrides

LOGGER = logging.getLogger("gpsvelstr.test.cli")


def test_flags_map_to_nested_overrides() -> None:
    args = build_parser().parse_args(
        ["-vhor", "a.vel", "b.vel", "-vhor", "c.vel", "-topo", "-r", "20", "28", "34", "41", "5000000", "a1f1"]
    )

    overrides = cli_overrides(args)

    assert overrides["data"] == {"horizontal": ["a.vel", "b.vel", "c.vel"]}
    assert overrides["features"] == {"topography": True}
    assert overrides["region"]["projscale"] == "5000000"
    assert "velocity" not in overrides


def test_later_flags_win() -> None:
    args = build_parser().parse_args(["-o", "first", "-o", "second", "-vsc", "0.1", "-vsc", "0.2"])

    overrides = cli_overrides(args)

    assert overrides["output"] == {"name": "second"}
    assert overrides["velocity"] == {"scale": 0.2}


def test_no_arguments_is_a_usage_error(capsys) -> None:
    with pytest.raises(SystemExit) as exc:
        _cli_main(cli_logger=LOGGER, argv=[])

    assert exc.value.code == 2
    assert "usage:" in capsys.readouterr().out.lower()


def test_dummy_run_writes_page_and_summary(params_path: Path, workdir: Path, capsys) -> None:
    write_table(workdir / "itrf.vel", VELOCITY_ROWS)

    _cli_main(
        cli_logger=LOGGER,
        argv=[
            "--params",
            str(params_path),
            "--renderer",
            "dummy",
            "--rasterizer",
            "dummy",
            "-vhor",
            "itrf.vel",
            "-leg",
            "-jpg",
            "-o",
            "greece",
            "--summary",
            "summary.json",
        ],
    )

    payload = json.loads(capsys.readouterr().out)
    assert payload["vector_output"] == "greece.eps"
    assert payload["raster_output"] == "greece.jpg"
    assert "legend" in payload["layers"]
    assert (workdir / "greece.eps").read_text(encoding="utf-8").endswith(PAGE_TRAILER)
    summary = json.loads((workdir / "summary.json").read_text(encoding="utf-8"))
    assert summary["status"] == "ok"


def test_invalid_input_exits_one(params_path: Path, workdir: Path) -> None:
    with pytest.raises(SystemExit) as exc:
        _cli_main(
            cli_logger=LOGGER,
            argv=["--params", str(params_path), "--renderer", "dummy", "-vhor", "missing.vel"],
        )

    assert exc.value.code == 1
    assert not (workdir / "map.eps").exists()


def test_raster_failure_exits_three(params_path: Path, workdir: Path, monkeypatch) -> None:
    from gpsvelstr.backends import dummy

    monkeypatch.setattr(dummy.DummyRasterizer, "from_config", classmethod(lambda cls, config: cls(status=1)))

    with pytest.raises(SystemExit) as exc:
        _cli_main(
            cli_logger=LOGGER,
            argv=["--params", str(params_path), "--renderer", "dummy", "--rasterizer", "dummy", "-jpg"],
        )

    assert exc.value.code == 3
    assert (workdir / "map.eps").exists()
    assert not (workdir / "map.jpg").exists()


def test_unknown_renderer_exits_one(params_path: Path) -> None:
    with pytest.raises(SystemExit) as exc:
        _cli_main(cli_logger=LOGGER, argv=["--params", str(params_path), "--renderer", "nope"])

    assert exc.value.code == 1


def test_print_config(params_path: Path, capsys) -> None:
    _cli_main(
        cli_logger=LOGGER,
        argv=["--params", str(params_path), "--print-config", "--set", "map.title=Aegean"],
    )

    out = capsys.readouterr().out
    assert "title: Aegean" in out
    assert "projection_center: 24/37" in out


def test_legacy_encoded_file_runs(params_path: Path, workdir: Path, capsys) -> None:
    rows = [row.encode("ascii") for row in VELOCITY_ROWS]
    rows[0] = b"\xc1\xc8\xcd\xc1" + rows[0][4:]
    (workdir / "greek.vel").write_bytes(b"\n".join(rows) + b"\n")

    _cli_main(
        cli_logger=LOGGER,
        argv=["--params", str(params_path), "--renderer", "dummy", "-vhor", "greek.vel", "-l"],
    )

    payload = json.loads(capsys.readouterr().out)
    assert "horizontal-velocity[greek.vel]" in payload["layers"]
