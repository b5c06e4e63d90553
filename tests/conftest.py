from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Sequence

import pytest
import yaml


def pytest_configure() -> None:
    src_root = Path(__file__).resolve().parents[1] / "src"
    src_path = str(src_root)
    if src_path not in sys.path:
        sys.path.insert(0, src_path)


# site lat lon - vn svn ve sve vu -
VELOCITY_ROWS = (
    "AUTH 40.5667 22.9967 0 12.10 0.31 -8.20 0.28 -1.20 0",
    "NOA1 38.0467 23.8644 0 -10.55 0.25 -14.01 0.22 0.80 0",
    "PAT0 38.2836 21.7867 0 -4.12 0.40 -9.77 0.35 -0.35 0",
)

# site lat lon emax - emin - azimuth
STRAIN_ROWS = (
    "GR01 38.00 23.00 42.1 1.2 -35.6 1.1 112.0",
    "GR02 39.00 22.00 18.4 0.9 -12.2 0.7 -20.5",
)


def write_table(path: Path, rows: Sequence[str]) -> Path:
    path.write_text("".join(f"{row}\n" for row in rows), encoding="utf-8")
    return path


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def params_path(workdir: Path) -> Path:
    path = workdir / "default-param.yaml"
    payload = {
        "output": {"name": str(workdir / "map")},
        "scratch": {"directory": str(workdir)},
        "paths": {"input_dir": str(workdir)},
    }
    path.write_text(yaml.safe_dump(payload), encoding="utf-8")
    return path


@pytest.fixture
def velocity_files(workdir: Path) -> Callable[..., list[str]]:
    def _make(*names: str, rows: Sequence[str] = VELOCITY_ROWS) -> list[str]:
        return [str(write_table(workdir / name, rows)) for name in names]

    return _make


@pytest.fixture
def assets(workdir: Path) -> dict[str, str]:
    """Placeholder grids, fault database and logo (content is never read)."""
    paths = {}
    for key, name in (
        ("topography_bathymetry", "bath.grd"),
        ("topography_land", "land.grd"),
        ("faults", "faults.gmt"),
        ("logo", "logo.eps"),
    ):
        target = workdir / name
        target.write_text("placeholder\n", encoding="utf-8")
        paths[key] = str(target)
    return paths


@pytest.fixture
def make_config(params_path: Path) -> Callable[..., Any]:
    from gpsvelstr.resolver import resolve_configuration

    def _make(
        cli: Optional[Mapping[str, Any]] = None,
        overrides: Optional[Sequence[str]] = None,
    ):
        return resolve_configuration(params_path, overrides, cli)

    return _make


@pytest.fixture
def full_config(
    make_config: Callable[..., Any],
    velocity_files: Callable[..., list[str]],
    assets: dict[str, str],
    workdir: Path,
):
    write_table(workdir / "strain.dat", STRAIN_ROWS)
    return make_config(
        {
            "paths": assets,
            "data": {
                "horizontal": velocity_files("itrf.vel", "euref.vel"),
                "vertical": velocity_files("up.vel"),
                "strain": "strain.dat",
            },
            "features": {
                "topography": True,
                "faults": True,
                "labels": True,
                "legend": True,
                "logo": True,
                "jpeg": True,
            },
        }
    )
