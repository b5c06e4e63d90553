"""The output page and the scratch files written while drawing it."""

from __future__ import annotations

from enum import Enum
import logging
from pathlib import Path
import time
from typing import Optional, Union

from gpsvelstr.backends.base import DrawCall, Renderer
from gpsvelstr.core import StepRecord, WriteMode
from gpsvelstr.errors import ArtifactStateError, DrawCallFailed


class ArtifactState(str, Enum):
    UNOPENED = "unopened"
    OPEN = "open"
    CLOSED = "closed"
    ABORTED = "aborted"


def _failure(call: DrawCall, layer: str, target: Path, status: int, stderr: str) -> DrawCallFailed:
    detail = stderr.strip().splitlines()[-1] if stderr.strip() else ""
    message = f"{call.module} failed with status {status} while drawing {layer}"
    return DrawCallFailed(
        f"{message}: {detail}" if detail else message,
        status=status,
        user_message=f"Command failed ({call.module}, status {status}); returning...",
        context={"layer": layer, "module": call.module, "target": str(target)},
    )


def _run(
    renderer: Renderer,
    call: DrawCall,
    *,
    layer: str,
    target: Path,
    mode: WriteMode,
    keep_open: Optional[bool],
    logger: logging.Logger,
) -> StepRecord:
    logger.debug("%s: %s", layer, call.describe())
    start_clock = time.perf_counter()
    status = renderer.execute(call, target=target, mode=mode, keep_open=keep_open)
    record = StepRecord(
        layer=layer,
        module=call.module,
        target=str(target),
        mode=mode.value,
        keep_open=keep_open,
        status=status.returncode,
        elapsed_seconds=time.perf_counter() - start_clock,
    )
    if not status.ok:
        raise _failure(call, layer, target, status.returncode, status.stderr)
    return record


class OutputArtifact:
    """Page description with an explicit unopened/open/closed protocol.

    ``create`` is the only write allowed before the page is open; ``append``
    and ``close`` are allowed only while it is open. A failed write leaves
    the artifact ``ABORTED`` and its content unusable.
    """

    def __init__(
        self,
        path: Union[str, Path],
        renderer: Renderer,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.path = Path(path)
        self.renderer = renderer
        self.logger = logger or logging.getLogger("gpsvelstr.artifact")
        self.state = ArtifactState.UNOPENED
        self.records: list[StepRecord] = []

    @property
    def usable(self) -> bool:
        return self.state is ArtifactState.CLOSED

    def _require(self, expected: ArtifactState, action: str) -> None:
        if self.state is not expected:
            raise ArtifactStateError(
                f"Cannot {action} {self.path}: page is {self.state.value}, "
                f"expected {expected.value}.",
                context={"path": str(self.path), "state": self.state.value},
            )

    def _write(
        self,
        call: DrawCall,
        *,
        layer: str,
        mode: WriteMode,
        keep_open: bool,
    ) -> StepRecord:
        try:
            record = _run(
                self.renderer,
                call,
                layer=layer,
                target=self.path,
                mode=mode,
                keep_open=keep_open,
                logger=self.logger,
            )
        except DrawCallFailed:
            self.state = ArtifactState.ABORTED
            raise
        self.records.append(record)
        return record

    def create(self, call: DrawCall, *, layer: str = "") -> StepRecord:
        self._require(ArtifactState.UNOPENED, "create")
        record = self._write(call, layer=layer, mode=WriteMode.CREATE, keep_open=True)
        self.state = ArtifactState.OPEN
        return record

    def append(self, call: DrawCall, *, layer: str = "") -> StepRecord:
        self._require(ArtifactState.OPEN, "append to")
        return self._write(call, layer=layer, mode=WriteMode.APPEND, keep_open=True)

    def close(self, call: DrawCall, *, layer: str = "") -> StepRecord:
        self._require(ArtifactState.OPEN, "close")
        record = self._write(call, layer=layer, mode=WriteMode.APPEND, keep_open=False)
        self.state = ArtifactState.CLOSED
        return record

    def abort(self) -> None:
        """Mark an open page unusable after a failure outside the renderer."""
        if self.state is ArtifactState.OPEN:
            self.state = ArtifactState.ABORTED


class ScratchFiles:
    """Transient files (colour tables, legend descriptor) removed after a run."""

    def __init__(
        self,
        directory: Union[str, Path] = ".",
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.directory = Path(directory)
        self.logger = logger or logging.getLogger("gpsvelstr.artifact")
        self.paths: list[Path] = []

    def path(self, name: str) -> Path:
        path = self.directory / name
        if path not in self.paths:
            self.paths.append(path)
        return path

    def write_text(self, name: str, content: str) -> Path:
        path = self.path(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def render(
        self,
        renderer: Renderer,
        call: DrawCall,
        name: str,
        *,
        layer: str = "",
    ) -> StepRecord:
        target = self.path(name)
        target.parent.mkdir(parents=True, exist_ok=True)
        return _run(
            renderer,
            call,
            layer=layer,
            target=target,
            mode=WriteMode.CREATE,
            keep_open=None,
            logger=self.logger,
        )

    def purge(self) -> list[Path]:
        """Best-effort removal; returns the files actually removed."""
        removed: list[Path] = []
        for path in self.paths:
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                self.logger.debug("Could not remove scratch file %s: %s", path, exc)
                continue
            removed.append(path)
        self.paths = []
        return removed


__all__ = ["ArtifactState", "OutputArtifact", "ScratchFiles"]
