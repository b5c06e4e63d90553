"""Plugin registry for renderer and rasterizer backends."""

from __future__ import annotations

import builtins
from collections.abc import Iterable
from typing import Any

from gpsvelstr.errors import BackendError

DEFAULT_KINDS = ("renderer", "rasterizer")


def _validate_key(label: str, value: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise TypeError(f"{label} must be a non-empty string.")
    return value


def _format_options(options: Iterable[str]) -> str:
    values = builtins.list(options)
    if not values:
        return "<none>"
    return ", ".join(sorted(values))


class Registry:
    """Registry of backend factories organized by kind/name."""

    def __init__(self, kinds: Iterable[str] = DEFAULT_KINDS) -> None:
        self._entries: dict[str, dict[str, Any]] = {}
        for kind in kinds:
            self.add_kind(kind)

    def add_kind(self, kind: str, *, overwrite: bool = False) -> None:
        kind = _validate_key("kind", kind)
        if kind in self._entries and not overwrite:
            raise ValueError(f"Registry kind already exists: {kind!r}.")
        self._entries[kind] = {}

    def register(self, kind: str, name: str, obj: Any, *, overwrite: bool = False) -> None:
        kind = _validate_key("kind", kind)
        name = _validate_key("name", name)
        bucket = self._bucket(kind)
        if name in bucket and not overwrite:
            raise ValueError(
                f"{kind} {name!r} is already registered; use overwrite=True to replace."
            )
        bucket[name] = obj

    def get(self, kind: str, name: str) -> Any:
        name = _validate_key("name", name)
        bucket = self._bucket(_validate_key("kind", kind))
        if name not in bucket:
            available = _format_options(bucket.keys())
            raise KeyError(
                f"{kind} {name!r} is not registered. Available: {available}."
            )
        return bucket[name]

    def list(self, kind: str) -> list[str]:
        return builtins.list(self._bucket(_validate_key("kind", kind)).keys())

    def _bucket(self, kind: str) -> dict[str, Any]:
        bucket = self._entries.get(kind)
        if bucket is None:
            available = _format_options(self._entries.keys())
            raise KeyError(
                f"Unknown registry kind: {kind!r}. Available kinds: {available}."
            )
        return bucket


_DEFAULT_REGISTRY = Registry()


def register(kind: str, name: str, obj: Any, *, overwrite: bool = False) -> None:
    _DEFAULT_REGISTRY.register(kind, name, obj, overwrite=overwrite)


def _load_builtin_backends() -> None:
    # Import for side effects: register built-in backends.
    import gpsvelstr.backends.dummy  # noqa: F401
    import gpsvelstr.backends.ghostscript  # noqa: F401
    import gpsvelstr.backends.gmt  # noqa: F401


def resolve_backend(
    kind: str,
    name: str,
    *,
    registry: Registry | None = None,
) -> Any:
    """Return the factory registered for ``kind``/``name``."""
    if registry is None:
        _load_builtin_backends()
        registry = _DEFAULT_REGISTRY
    try:
        return registry.get(kind, name)
    except KeyError as exc:
        try:
            available = _format_options(registry.list(kind))
        except KeyError:
            available = "<none>"
        raise BackendError(
            f"{kind.capitalize()} backend {name!r} is not registered. "
            f"Available: {available}.",
            context={"kind": kind, "name": name},
        ) from exc


__all__ = [
    "DEFAULT_KINDS",
    "Registry",
    "register",
    "resolve_backend",
]
