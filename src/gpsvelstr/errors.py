"""Error hierarchy for gpsvelstr."""

from __future__ import annotations

from typing import Any, Mapping, Optional


class GpsvelstrError(Exception):
    """Base exception for gpsvelstr failures."""

    exit_status = 1

    def __init__(
        self,
        message: str,
        *,
        user_message: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.user_message = message if user_message is None else user_message
        self.context = dict(context) if context else {}

    def log_message(self) -> str:
        if not self.context:
            return str(self)
        return f"{self}: {self.context}"


class ConfigError(GpsvelstrError):
    """Configuration loading or validation error."""


class BackendError(GpsvelstrError):
    """Backend registration or setup error."""


class ValidationError(GpsvelstrError):
    """Validation error for input data."""


class DatasetError(ValidationError, ConfigError):
    """A tabular input file failed validation."""

    kind = "invalid"


class MissingFile(DatasetError):
    """Input path is not a readable regular file."""

    kind = "missing-file"


class InconsistentFields(DatasetError):
    """Rows of an input file do not share one field count."""

    kind = "inconsistent-fields"


class WrongFieldCount(DatasetError):
    """Rows share one field count, but not the expected one."""

    kind = "wrong-field-count"


class NonNumericField(DatasetError):
    """A column drawn as a number holds something else."""

    kind = "non-numeric-field"


class PaletteExhausted(GpsvelstrError):
    """More datasets than colours available in the palette."""


class PlanError(GpsvelstrError):
    """Layer plan violates the stacking invariants."""


class ArtifactStateError(GpsvelstrError):
    """Write attempted in a state the page description does not allow."""


class RenderError(GpsvelstrError):
    """External command failure."""

    def __init__(
        self,
        message: str,
        *,
        status: int,
        user_message: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message, user_message=user_message, context=context)
        self.status = status


class DrawCallFailed(RenderError):
    """A renderer call returned a non-zero status."""


class RasterizationFailed(RenderError):
    """The rasterizer returned a non-zero status."""

    exit_status = 3


__all__ = [
    "GpsvelstrError",
    "ConfigError",
    "BackendError",
    "ValidationError",
    "DatasetError",
    "MissingFile",
    "InconsistentFields",
    "WrongFieldCount",
    "NonNumericField",
    "PaletteExhausted",
    "PlanError",
    "ArtifactStateError",
    "RenderError",
    "DrawCallFailed",
    "RasterizationFailed",
]
