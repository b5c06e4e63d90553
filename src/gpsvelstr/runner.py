"""Run a full figure: session setup, layer pipeline, finalization."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from pathlib import Path
from typing import Optional

from gpsvelstr import __version__
from gpsvelstr.artifact import ScratchFiles
from gpsvelstr.backends.base import Rasterizer, Renderer
from gpsvelstr.core import LayerPlan, RunConfiguration, RunManifest, StepRecord
from gpsvelstr.errors import DrawCallFailed, GpsvelstrError
from gpsvelstr.finalize import FinalizeResult, finalize
from gpsvelstr.io_utils import write_json_atomic
from gpsvelstr.pipelines import LayerPipeline
from gpsvelstr.plan import build_layer_plan


def _utc_now_iso() -> str:
    timestamp = datetime.now(timezone.utc).replace(microsecond=0)
    return timestamp.isoformat().replace("+00:00", "Z")


def session_defaults(config: RunConfiguration) -> dict[str, str]:
    defaults = dict(config.gmt_defaults)
    defaults["PS_MEDIA"] = config.page_size
    return defaults


@dataclass(frozen=True)
class RenderResult:
    config: RunConfiguration
    plan: LayerPlan
    steps: tuple[StepRecord, ...]
    final: FinalizeResult

    @property
    def ok(self) -> bool:
        return self.final.ok

    def manifest(self) -> RunManifest:
        raster_error = self.final.raster_error
        return RunManifest(
            version=__version__,
            status="ok" if self.ok else "raster-failed",
            created_at=_utc_now_iso(),
            vector_output=str(self.final.vector_output),
            raster_output=(
                str(self.final.raster_output) if self.final.raster_output else None
            ),
            raster_status=raster_error.status if raster_error is not None else None,
            layers=[layer.label for layer in self.plan],
            steps=[step.to_dict() for step in self.steps],
            warnings=list(self.config.warnings),
            error=raster_error.user_message if raster_error is not None else None,
        )

    def write_manifest(self, path: Path) -> Path:
        write_json_atomic(path, self.manifest().to_dict())
        return path


def render_figure(
    config: RunConfiguration,
    *,
    renderer: Renderer,
    rasterizer: Optional[Rasterizer] = None,
    logger: Optional[logging.Logger] = None,
) -> RenderResult:
    logger = logger or logging.getLogger("gpsvelstr.run")
    plan = build_layer_plan(config)
    status = renderer.configure(session_defaults(config))
    if not status.ok:
        raise DrawCallFailed(
            f"gmtset failed with status {status.returncode}: {status.stderr.strip()}",
            status=status.returncode,
            user_message=f"Command failed (gmtset, status {status.returncode}); returning...",
        )

    logger.info("Starting plotting....")
    logger.info('Output directed to "%s".', config.vector_output)
    scratch = ScratchFiles(config.scratch_dir, logger=logger)
    pipeline = LayerPipeline(config, renderer, scratch=scratch, logger=logger)
    try:
        steps = pipeline.run(plan)
        final = finalize(pipeline.artifact, config, rasterizer, scratch, logger=logger)
    except GpsvelstrError:
        if pipeline.artifact.path.exists() and not pipeline.artifact.usable:
            logger.error(
                "Output %s is incomplete and must not be used.", pipeline.artifact.path
            )
        raise
    finally:
        scratch.purge()
    return RenderResult(config=config, plan=plan, steps=tuple(steps), final=final)


__all__ = ["RenderResult", "session_defaults", "render_figure"]
