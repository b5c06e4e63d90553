"""Positional colour assignment for per-dataset layers."""

from __future__ import annotations

from collections.abc import Sequence

from gpsvelstr.errors import PaletteExhausted

GMT_COLORS_URL = "https://docs.generic-mapping-tools.org/latest/gmtcolors.html"


def assign_colors(
    dataset_count: int,
    palette: Sequence[str],
    *,
    label: str = "velocity",
) -> tuple[str, ...]:
    """Give dataset ``i`` the colour ``palette[i]``.

    Raises ``PaletteExhausted`` when there are more datasets than colours;
    equal counts are fine.
    """
    if dataset_count < 0:
        raise ValueError(f"dataset_count must be >= 0, got {dataset_count}.")
    if dataset_count > len(palette):
        raise PaletteExhausted(
            f"Not enough colors in the palette to plot all {label} files "
            f"({dataset_count} files, {len(palette)} colors).",
            user_message=(
                f"Not enough colors in the palette to plot all {dataset_count} "
                f"{label} files; append more color names to 'palette' "
                f"(see {GMT_COLORS_URL})."
            ),
            context={"datasets": dataset_count, "palette": list(palette)},
        )
    return tuple(palette[index] for index in range(dataset_count))


__all__ = ["GMT_COLORS_URL", "assign_colors"]
