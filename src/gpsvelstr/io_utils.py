"""Shared JSON/YAML and scratch-file I/O helpers."""

from __future__ import annotations

import json
import os
from pathlib import Path
import tempfile
from typing import Any, Mapping, Optional, Type

import yaml


def read_yaml_payload(
    path: Path,
    *,
    error_cls: Type[Exception] = ValueError,
) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        text = handle.read()
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise error_cls(f"Invalid YAML in {path}: {exc}") from exc


def format_yaml(payload: Mapping[str, Any], *, sort_keys: bool = False) -> str:
    return yaml.safe_dump(
        dict(payload),
        allow_unicode=False,
        default_flow_style=False,
        sort_keys=sort_keys,
    )


def write_json_atomic(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_handle: Optional[int] = None
    tmp_path: Optional[str] = None
    try:
        tmp_handle, tmp_path = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        with os.fdopen(tmp_handle, "w", encoding="utf-8") as handle:
            tmp_handle = None
            json.dump(payload, handle, indent=2, sort_keys=True, ensure_ascii=True)
            handle.write("\n")
        os.replace(tmp_path, path)
    finally:
        if tmp_handle is not None:
            try:
                os.close(tmp_handle)
            except OSError:
                pass
        if tmp_path is not None and os.path.exists(tmp_path):
            try:
                os.unlink(tmp_path)
            except OSError:
                pass


__all__ = [
    "format_yaml",
    "read_yaml_payload",
    "write_json_atomic",
]
