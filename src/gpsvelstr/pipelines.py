"""Sequential layer pipeline: draws a LayerPlan into one page, failing fast."""

from __future__ import annotations

from enum import Enum
import logging
from typing import Optional

from gpsvelstr.artifact import ArtifactState, OutputArtifact, ScratchFiles
from gpsvelstr.backends.base import Renderer
from gpsvelstr.core import LayerKind, LayerPlan, LayerSpec, RunConfiguration, StepRecord
from gpsvelstr.errors import GpsvelstrError, PlanError
from gpsvelstr.layers import LayerStep, legend_descriptor, steps_for


class PipelineState(str, Enum):
    NOT_STARTED = "not-started"
    BASEMAP_DRAWN = "basemap-drawn"
    FAULTS_DRAWN = "faults-drawn"
    HORIZONTAL_DRAWN = "horizontal-drawn"
    VERTICAL_DRAWN = "vertical-drawn"
    STRAIN_DRAWN = "strain-drawn"
    LEGEND_DRAWN = "legend-drawn"
    LOGO_DRAWN = "logo-drawn"
    CLOSED = "closed"
    ABORTED = "aborted"


_STATE_AFTER = {
    LayerKind.BASEMAP: PipelineState.BASEMAP_DRAWN,
    LayerKind.TOPOGRAPHY: PipelineState.BASEMAP_DRAWN,
    LayerKind.FAULTS: PipelineState.FAULTS_DRAWN,
    LayerKind.HORIZONTAL_VELOCITY: PipelineState.HORIZONTAL_DRAWN,
    LayerKind.HORIZONTAL_SCALE: PipelineState.HORIZONTAL_DRAWN,
    LayerKind.VERTICAL_VELOCITY: PipelineState.VERTICAL_DRAWN,
    LayerKind.VERTICAL_SCALE: PipelineState.VERTICAL_DRAWN,
    LayerKind.STRAIN: PipelineState.STRAIN_DRAWN,
    LayerKind.LEGEND: PipelineState.LEGEND_DRAWN,
    LayerKind.LOGO: PipelineState.LOGO_DRAWN,
    LayerKind.CLOSE: PipelineState.CLOSED,
}


class LayerPipeline:
    """Draw layers in plan order into a single page.

    The first page write creates the page, the closing layer closes it and
    everything in between appends. Any failing call aborts the run; no
    further call is issued.
    """

    def __init__(
        self,
        config: RunConfiguration,
        renderer: Renderer,
        *,
        artifact: Optional[OutputArtifact] = None,
        scratch: Optional[ScratchFiles] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config
        self.renderer = renderer
        self.logger = logger or logging.getLogger("gpsvelstr.pipeline")
        self.artifact = artifact or OutputArtifact(
            config.vector_output, renderer, logger=self.logger
        )
        self.scratch = scratch or ScratchFiles(config.scratch_dir, logger=self.logger)
        self.state = PipelineState.NOT_STARTED
        self.records: list[StepRecord] = []

    def _dispatch(self, layer: LayerSpec, step: LayerStep) -> StepRecord:
        label = layer.label
        if step.scratch is not None:
            return self.scratch.render(self.renderer, step.call, step.scratch, layer=label)
        if layer.kind is LayerKind.CLOSE:
            return self.artifact.close(step.call, layer=label)
        if self.artifact.state is ArtifactState.UNOPENED:
            return self.artifact.create(step.call, layer=label)
        return self.artifact.append(step.call, layer=label)

    def _draw(self, layer: LayerSpec) -> None:
        if layer.color is not None and layer.dataset is not None:
            self.logger.info(
                "Plotting %s file %s with color %s.",
                layer.kind.value,
                layer.dataset.path,
                layer.color,
            )
        else:
            self.logger.info("Drawing %s.", layer.label)
        if layer.kind is LayerKind.LEGEND:
            self.scratch.write_text(self.config.legend_file, legend_descriptor(self.config))
        for step in steps_for(self.config, layer):
            self.records.append(self._dispatch(layer, step))
        self.state = _STATE_AFTER[layer.kind]

    def run(self, plan: LayerPlan) -> list[StepRecord]:
        if self.state is not PipelineState.NOT_STARTED:
            raise PlanError(f"Pipeline already ran (state: {self.state.value}).")
        plan.validate()
        for layer in plan:
            try:
                self._draw(layer)
            except GpsvelstrError:
                self.state = PipelineState.ABORTED
                self.artifact.abort()
                raise
            except Exception as exc:
                self.state = PipelineState.ABORTED
                self.artifact.abort()
                raise GpsvelstrError(
                    f"Layer {layer.label!r} failed: {exc}",
                    context={"layer": layer.label},
                ) from exc
        return list(self.records)


__all__ = ["PipelineState", "LayerPipeline"]
