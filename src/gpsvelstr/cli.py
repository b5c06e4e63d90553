"""CLI entry point."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys
from typing import Any, Optional, Sequence

from gpsvelstr import __version__
from gpsvelstr.errors import GpsvelstrError, RasterizationFailed
from gpsvelstr.io_utils import format_yaml
from gpsvelstr.logging_utils import (
    DEFAULT_LOG_LEVEL,
    configure_logging,
    log_exception,
    run_with_error_handling,
)
from gpsvelstr.registry import resolve_backend
from gpsvelstr.resolver import DEFAULT_PARAMS_FILE, resolve_configuration
from gpsvelstr.runner import render_figure

USAGE_STATUS = 2

_EPILOG = """\
exit status:
  0  success (also for -h)
  1  invalid input, configuration error or failed drawing command
  2  usage error or no arguments
  3  vector output written but conversion to JPEG failed

example:
  gpsvelstr -topo -vhor itrf.vel euref.vel -leg -jpg -o greece
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gpsvelstr",
        description="Plot GPS velocities and strain rates on a GMT map.",
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    region = parser.add_argument_group("map")
    region.add_argument(
        "-r",
        dest="region",
        nargs=6,
        metavar=("WEST", "EAST", "SOUTH", "NORTH", "PROJSCALE", "FRAME"),
        help="Region to plot, projection scale and frame (default: Greece).",
    )
    region.add_argument("-mt", dest="title", metavar="TITLE", help="Map title.")
    region.add_argument(
        "-topo",
        dest="topography",
        action="store_true",
        default=None,
        help="Plot topography and bathymetry instead of a plain coastline.",
    )
    region.add_argument(
        "-faults",
        dest="faults",
        action="store_true",
        default=None,
        help="Plot the fault database.",
    )

    velocities = parser.add_argument_group("velocities")
    velocities.add_argument(
        "-vhor",
        dest="horizontal",
        nargs="+",
        action="extend",
        metavar="FILE",
        help="Horizontal velocity files; each file is drawn with its own color.",
    )
    velocities.add_argument(
        "-vver",
        dest="vertical",
        nargs="+",
        action="extend",
        metavar="FILE",
        help="Vertical velocity files.",
    )
    velocities.add_argument(
        "-vsc", dest="velocity_scale", type=float, metavar="SCALE", help="Velocity scale."
    )

    strains = parser.add_argument_group("strains")
    strains.add_argument(
        "-str",
        dest="strain",
        metavar="FILE",
        help="Strain rate file (relative to paths.input_dir).",
    )
    strains.add_argument(
        "-strsc", dest="strain_scale", type=float, metavar="SCALE", help="Strain scale."
    )

    other = parser.add_argument_group("other options")
    other.add_argument("-o", dest="output", metavar="NAME", help="Base name of output files.")
    other.add_argument(
        "-l", dest="labels", action="store_true", default=None, help="Plot station labels."
    )
    other.add_argument(
        "-leg", dest="legend", action="store_true", default=None, help="Insert a legend."
    )
    other.add_argument(
        "-logo", dest="logo", action="store_true", default=None, help="Plot the logo."
    )
    other.add_argument(
        "-jpg",
        dest="jpeg",
        action="store_true",
        default=None,
        help="Convert the EPS output to JPEG.",
    )

    runtime = parser.add_argument_group("runtime")
    runtime.add_argument(
        "--params",
        default=DEFAULT_PARAMS_FILE,
        metavar="PATH",
        help=f"Parameter file (default: {DEFAULT_PARAMS_FILE}).",
    )
    runtime.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Override a parameter (ex: --set velocity.scale_lat=35.5).",
    )
    runtime.add_argument(
        "--renderer",
        default="gmt",
        help="Renderer backend (gmt or dummy).",
    )
    runtime.add_argument(
        "--rasterizer",
        default="ghostscript",
        help="Rasterizer backend (ghostscript or dummy).",
    )
    runtime.add_argument("--log-file", metavar="PATH", help="Also write log messages to PATH.")
    runtime.add_argument("--summary", metavar="PATH", help="Write a JSON run summary to PATH.")
    runtime.add_argument(
        "--print-config",
        action="store_true",
        help="Print the resolved configuration and exit.",
    )
    runtime.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    runtime.add_argument(
        "--traceback",
        action="store_true",
        help="Show full traceback on errors.",
    )
    runtime.add_argument("--version", action="version", version=f"gpsvelstr {__version__}")
    return parser


def cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Nested parameter overrides for the flags that were given."""
    overrides: dict[str, Any] = {}

    def _set(section: str, key: str, value: Any) -> None:
        if value is not None:
            overrides.setdefault(section, {})[key] = value

    if args.region is not None:
        west, east, south, north, projscale, frame = args.region
        overrides["region"] = {
            "west": west,
            "east": east,
            "south": south,
            "north": north,
            "projscale": projscale,
            "frame": frame,
        }
    _set("map", "title", args.title)
    _set("data", "horizontal", args.horizontal)
    _set("data", "vertical", args.vertical)
    _set("data", "strain", args.strain)
    _set("velocity", "scale", args.velocity_scale)
    _set("strain", "scale", args.strain_scale)
    _set("output", "name", args.output)
    for key in ("topography", "faults", "labels", "legend", "logo", "jpeg"):
        _set("features", key, getattr(args, key))
    return overrides


def _cli_main(
    *,
    cli_logger: logging.Logger,
    argv: Optional[Sequence[str]] = None,
) -> None:
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = build_parser()
    if not argv:
        parser.print_help()
        raise SystemExit(USAGE_STATUS)
    args = parser.parse_args(argv)
    if args.verbose or args.log_file:
        cli_logger = configure_logging(
            logging.DEBUG if args.verbose else DEFAULT_LOG_LEVEL,
            force=True,
            log_file=args.log_file,
        )
    try:
        config = resolve_configuration(
            args.params,
            args.overrides,
            cli_overrides(args),
            logger=logging.getLogger("gpsvelstr.config"),
        )
        if args.print_config:
            print(format_yaml(config.to_dict()), end="")
            return
        renderer = resolve_backend("renderer", args.renderer).from_config(config)
        rasterizer = None
        if config.jpeg:
            rasterizer = resolve_backend("rasterizer", args.rasterizer).from_config(config)
        result = render_figure(config, renderer=renderer, rasterizer=rasterizer)
    except GpsvelstrError as exc:
        log_exception(cli_logger, exc, show_traceback=args.traceback)
        raise SystemExit(exc.exit_status) from None

    if args.summary:
        result.write_manifest(Path(args.summary))
    payload = {
        "vector_output": str(result.final.vector_output),
        "raster_output": (
            str(result.final.raster_output) if result.final.raster_output else None
        ),
        "layers": [layer.label for layer in result.plan],
        "warnings": list(config.warnings),
    }
    print(json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=True))
    if not result.ok:
        raise SystemExit(RasterizationFailed.exit_status)


def main() -> None:
    """Entry point with standard logging/error handling."""
    logger = configure_logging()
    run_with_error_handling(_cli_main, logger=logger, cli_logger=logger)


if __name__ == "__main__":
    main()
