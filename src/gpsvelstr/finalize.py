"""Post-drawing steps: optional raster export and scratch clean-up."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Optional

from gpsvelstr.artifact import ArtifactState, OutputArtifact, ScratchFiles
from gpsvelstr.backends.base import Rasterizer
from gpsvelstr.core import RunConfiguration
from gpsvelstr.errors import ArtifactStateError, BackendError, RasterizationFailed


@dataclass(frozen=True)
class FinalizeResult:
    vector_output: Path
    raster_output: Optional[Path] = None
    raster_error: Optional[RasterizationFailed] = None
    purged: tuple[Path, ...] = ()

    @property
    def ok(self) -> bool:
        return self.raster_error is None

    def final_paths(self) -> list[Path]:
        paths = [self.vector_output]
        if self.raster_output is not None:
            paths.append(self.raster_output)
        return paths


def purge_scratch(
    scratch: Optional[ScratchFiles],
    *,
    logger: Optional[logging.Logger] = None,
) -> tuple[Path, ...]:
    """Remove scratch files; never raises."""
    if scratch is None:
        return ()
    logger = logger or logging.getLogger("gpsvelstr.finalize")
    removed = tuple(scratch.purge())
    for path in removed:
        logger.debug("Removed scratch file %s.", path)
    return removed


def rasterize(
    artifact: OutputArtifact,
    config: RunConfiguration,
    rasterizer: Rasterizer,
    *,
    logger: logging.Logger,
) -> Optional[RasterizationFailed]:
    logger.info("Converting %s to %s.", artifact.path, config.raster_output)
    status = rasterizer.rasterize(
        artifact.path,
        config.raster_output,
        quality=config.raster_quality,
        resolution=config.raster_resolution,
    )
    if status.ok:
        return None
    error = RasterizationFailed(
        f"Rasterizer failed with status {status.returncode} converting {artifact.path}.",
        status=status.returncode,
        user_message=(
            f"Conversion to {config.raster_output} failed (status {status.returncode}); "
            f"the vector output {artifact.path} is complete."
        ),
        context={"source": str(artifact.path), "target": str(config.raster_output)},
    )
    logger.error(error.user_message)
    return error


def finalize(
    artifact: OutputArtifact,
    config: RunConfiguration,
    rasterizer: Optional[Rasterizer] = None,
    scratch: Optional[ScratchFiles] = None,
    *,
    logger: Optional[logging.Logger] = None,
) -> FinalizeResult:
    """Export the closed page to a raster if requested, then purge scratch files."""
    logger = logger or logging.getLogger("gpsvelstr.finalize")
    try:
        if artifact.state is not ArtifactState.CLOSED:
            raise ArtifactStateError(
                f"Cannot finalize {artifact.path}: page is {artifact.state.value}.",
                context={"path": str(artifact.path), "state": artifact.state.value},
            )
        raster_output: Optional[Path] = None
        raster_error: Optional[RasterizationFailed] = None
        if config.jpeg:
            if rasterizer is None:
                raise BackendError("JPEG export requested but no rasterizer is configured.")
            raster_error = rasterize(artifact, config, rasterizer, logger=logger)
            if raster_error is None:
                raster_output = config.raster_output
    finally:
        purged = purge_scratch(scratch, logger=logger)
    return FinalizeResult(
        vector_output=artifact.path,
        raster_output=raster_output,
        raster_error=raster_error,
        purged=purged,
    )


__all__ = ["FinalizeResult", "purge_scratch", "rasterize", "finalize"]
