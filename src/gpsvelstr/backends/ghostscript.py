"""Ghostscript rasterizer (EPS to JPEG)."""

from __future__ import annotations

import logging
from pathlib import Path
import subprocess
from typing import Optional

from gpsvelstr.backends.base import CallStatus, Rasterizer
from gpsvelstr.backends.gmt import COMMAND_NOT_FOUND
from gpsvelstr.core import RunConfiguration
from gpsvelstr.registry import register


class GhostscriptRasterizer(Rasterizer):
    name = "ghostscript"

    def __init__(
        self,
        executable: str = "gs",
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.executable = executable
        self.logger = logger or logging.getLogger("gpsvelstr.backends.ghostscript")

    @classmethod
    def from_config(cls, config: RunConfiguration) -> "GhostscriptRasterizer":
        return cls(config.raster_executable)

    def command(
        self,
        source: Path,
        target: Path,
        *,
        quality: int,
        resolution: int,
    ) -> list[str]:
        return [
            self.executable,
            "-sDEVICE=jpeg",
            f"-dJPEGQ={quality}",
            "-dNOPAUSE",
            "-dBATCH",
            "-dSAFER",
            f"-r{resolution}",
            f"-sOutputFile={target}",
            str(source),
        ]

    def rasterize(
        self,
        source: Path,
        target: Path,
        *,
        quality: int,
        resolution: int,
    ) -> CallStatus:
        argv = self.command(source, target, quality=quality, resolution=resolution)
        self.logger.debug("Executing: %s", " ".join(argv))
        try:
            completed = subprocess.run(
                argv,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
                check=False,
            )
        except OSError as exc:
            return CallStatus(COMMAND_NOT_FOUND, str(exc))
        return CallStatus(completed.returncode, completed.stderr or "")


register("rasterizer", GhostscriptRasterizer.name, GhostscriptRasterizer)

__all__ = ["GhostscriptRasterizer"]
