"""GMT (classic mode) renderer driven through ``subprocess``."""

from __future__ import annotations

from collections.abc import Mapping
import logging
from pathlib import Path
import subprocess
from typing import Optional

from gpsvelstr.backends.base import CallStatus, DrawCall, Renderer
from gpsvelstr.core import RunConfiguration, WriteMode
from gpsvelstr.registry import register

COMMAND_NOT_FOUND = 127


def page_flags(mode: WriteMode, keep_open: Optional[bool]) -> list[str]:
    """PostScript overlay (-O) and continue (-K) flags for a page write."""
    if keep_open is None:
        return []
    flags = ["-O"] if mode is WriteMode.APPEND else []
    if keep_open:
        flags.append("-K")
    return flags


class GmtRenderer(Renderer):
    """Run ``gmt <module>`` and redirect PostScript output into the target."""

    name = "gmt"

    def __init__(
        self,
        executable: str = "gmt",
        *,
        cwd: Optional[Path] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.executable = executable
        self.cwd = cwd
        self.logger = logger or logging.getLogger("gpsvelstr.backends.gmt")

    @classmethod
    def from_config(cls, config: RunConfiguration) -> "GmtRenderer":
        return cls(config.gmt_executable)

    def _run(self, argv: list[str], *, stdin: Optional[str], stdout) -> CallStatus:
        self.logger.debug("Executing: %s", " ".join(argv))
        try:
            completed = subprocess.run(
                argv,
                input=stdin.encode("utf-8") if stdin is not None else None,
                stdout=stdout,
                stderr=subprocess.PIPE,
                cwd=self.cwd,
                check=False,
            )
        except OSError as exc:
            self.logger.debug("Failed to start %s: %s", argv[0], exc)
            return CallStatus(COMMAND_NOT_FOUND, str(exc))
        stderr = completed.stderr.decode("utf-8", errors="replace")
        if stderr.strip():
            self.logger.debug("%s stderr: %s", argv[1], stderr.strip())
        return CallStatus(completed.returncode, stderr)

    def configure(self, defaults: Mapping[str, str]) -> CallStatus:
        if not defaults:
            return CallStatus(0)
        argv = [self.executable, "gmtset"]
        for key, value in defaults.items():
            argv.extend([str(key), str(value)])
        return self._run(argv, stdin=None, stdout=subprocess.DEVNULL)

    def execute(
        self,
        call: DrawCall,
        *,
        target: Path,
        mode: WriteMode,
        keep_open: Optional[bool] = None,
    ) -> CallStatus:
        argv = [self.executable, call.module, *call.args, *page_flags(mode, keep_open)]
        file_mode = "wb" if mode is WriteMode.CREATE else "ab"
        with Path(target).open(file_mode) as handle:
            return self._run(argv, stdin=call.stdin, stdout=handle)


register("renderer", GmtRenderer.name, GmtRenderer)

__all__ = ["COMMAND_NOT_FOUND", "GmtRenderer", "page_flags"]
