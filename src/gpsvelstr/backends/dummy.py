"""Deterministic in-process backends for dry runs and tests."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from gpsvelstr.backends.base import CallStatus, DrawCall, Rasterizer, Renderer
from gpsvelstr.core import RunConfiguration, WriteMode
from gpsvelstr.registry import register

PAGE_HEADER = "%!PS-Adobe-3.0 EPSF-3.0\n"
PAGE_TRAILER = "%%EOF\n"


@dataclass(frozen=True)
class RecordedCall:
    module: str
    args: Tuple[str, ...]
    stdin: Optional[str]
    label: str
    target: Path
    mode: WriteMode
    keep_open: Optional[bool]


class DummyRenderer(Renderer):
    """Record every call and write a placeholder page without running GMT.

    ``fail_on`` (a module name) or ``fail_at`` (a zero-based call index)
    make the matching call report ``fail_status``.
    """

    name = "dummy"

    def __init__(
        self,
        *,
        fail_on: Optional[str] = None,
        fail_at: Optional[int] = None,
        fail_status: int = 1,
    ) -> None:
        self.fail_on = fail_on
        self.fail_at = fail_at
        self.fail_status = fail_status
        self.calls: list[RecordedCall] = []
        self.defaults: dict[str, str] = {}

    @classmethod
    def from_config(cls, config: RunConfiguration) -> "DummyRenderer":
        return cls()

    def configure(self, defaults: Mapping[str, str]) -> CallStatus:
        self.defaults.update({str(key): str(value) for key, value in defaults.items()})
        return CallStatus(0)

    def _should_fail(self, call: DrawCall) -> bool:
        if self.fail_on is not None and call.module == self.fail_on:
            return True
        return self.fail_at is not None and len(self.calls) - 1 == self.fail_at

    def execute(
        self,
        call: DrawCall,
        *,
        target: Path,
        mode: WriteMode,
        keep_open: Optional[bool] = None,
    ) -> CallStatus:
        self.calls.append(
            RecordedCall(
                module=call.module,
                args=tuple(call.args),
                stdin=call.stdin,
                label=call.label,
                target=Path(target),
                mode=mode,
                keep_open=keep_open,
            )
        )
        if self._should_fail(call):
            return CallStatus(self.fail_status, f"{call.module}: injected failure")
        lines = []
        if mode is WriteMode.CREATE and keep_open is not None:
            lines.append(PAGE_HEADER)
        lines.append(f"% {call.describe()}\n")
        if keep_open is False:
            lines.append(PAGE_TRAILER)
        file_mode = "w" if mode is WriteMode.CREATE else "a"
        with Path(target).open(file_mode, encoding="utf-8") as handle:
            handle.write("".join(lines))
        return CallStatus(0)

    def page_calls(self) -> list[RecordedCall]:
        return [call for call in self.calls if call.keep_open is not None]

    def modules(self) -> list[str]:
        return [call.module for call in self.calls]


class DummyRasterizer(Rasterizer):
    name = "dummy"

    def __init__(self, *, status: int = 0) -> None:
        self.status = status
        self.requests: list[tuple[Path, Path, int, int]] = []

    @classmethod
    def from_config(cls, config: RunConfiguration) -> "DummyRasterizer":
        return cls()

    def rasterize(
        self,
        source: Path,
        target: Path,
        *,
        quality: int,
        resolution: int,
    ) -> CallStatus:
        self.requests.append((Path(source), Path(target), quality, resolution))
        if self.status != 0:
            return CallStatus(self.status, "injected rasterizer failure")
        Path(target).write_bytes(b"\xff\xd8\xff\xd9")
        return CallStatus(0)


register("renderer", DummyRenderer.name, DummyRenderer)
register("rasterizer", DummyRasterizer.name, DummyRasterizer)

__all__ = ["PAGE_HEADER", "PAGE_TRAILER", "RecordedCall", "DummyRenderer", "DummyRasterizer"]
