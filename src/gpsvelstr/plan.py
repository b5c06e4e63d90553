"""Derive the ordered layer plan from a RunConfiguration."""

from __future__ import annotations

from gpsvelstr.core import LayerKind, LayerPlan, LayerSpec, RunConfiguration
from gpsvelstr.errors import PlanError


def build_layer_plan(config: RunConfiguration) -> LayerPlan:
    for label, datasets, colors in (
        ("horizontal", config.horizontal, config.horizontal_colors),
        ("vertical", config.vertical, config.vertical_colors),
    ):
        if len(datasets) != len(colors):
            raise PlanError(
                f"{len(datasets)} {label} velocity files but {len(colors)} colors assigned."
            )
    layers: list[LayerSpec] = [
        LayerSpec(LayerKind.TOPOGRAPHY if config.topography else LayerKind.BASEMAP)
    ]
    if config.faults:
        layers.append(LayerSpec(LayerKind.FAULTS))
    if config.horizontal:
        for dataset, color in zip(config.horizontal, config.horizontal_colors):
            layers.append(LayerSpec(LayerKind.HORIZONTAL_VELOCITY, dataset, color))
        layers.append(LayerSpec(LayerKind.HORIZONTAL_SCALE))
    if config.vertical:
        for dataset, color in zip(config.vertical, config.vertical_colors):
            layers.append(LayerSpec(LayerKind.VERTICAL_VELOCITY, dataset, color))
        layers.append(LayerSpec(LayerKind.VERTICAL_SCALE))
    if config.strain_enabled:
        layers.append(LayerSpec(LayerKind.STRAIN, config.strain))
    if config.legend:
        layers.append(LayerSpec(LayerKind.LEGEND))
    if config.logo:
        layers.append(LayerSpec(LayerKind.LOGO))
    layers.append(LayerSpec(LayerKind.CLOSE))
    return LayerPlan(tuple(layers)).validate()


__all__ = ["build_layer_plan"]
