"""Renderer and rasterizer interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from gpsvelstr.core import WriteMode


@dataclass(frozen=True)
class DrawCall:
    """One renderer invocation: module name, arguments and optional stdin."""

    module: str
    args: Tuple[str, ...] = ()
    stdin: Optional[str] = None
    label: str = ""

    def describe(self) -> str:
        return " ".join((self.module, *self.args))


@dataclass(frozen=True)
class CallStatus:
    returncode: int
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class Renderer(ABC):
    """Executes drawing modules, writing their output into a target file."""

    name: str

    def configure(self, defaults: Mapping[str, str]) -> CallStatus:
        """Apply session defaults before the first drawing call."""
        return CallStatus(0)

    @abstractmethod
    def execute(
        self,
        call: DrawCall,
        *,
        target: Path,
        mode: WriteMode,
        keep_open: Optional[bool] = None,
    ) -> CallStatus:
        """Run ``call`` and write its output to ``target``.

        ``keep_open`` is ``None`` for outputs that are not the page
        description (colour tables); otherwise it tells the renderer whether
        the page stays open for more content.
        """


class Rasterizer(ABC):
    """Converts a closed page description into a raster image."""

    name: str

    @abstractmethod
    def rasterize(
        self,
        source: Path,
        target: Path,
        *,
        quality: int,
        resolution: int,
    ) -> CallStatus:
        """Render ``source`` into ``target``."""


__all__ = ["DrawCall", "CallStatus", "Renderer", "Rasterizer"]
