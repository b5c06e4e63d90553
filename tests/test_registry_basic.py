import pytest

from gpsvelstr.backends.dummy import DummyRenderer
from gpsvelstr.backends.ghostscript import GhostscriptRasterizer
from gpsvelstr.backends.gmt import GmtRenderer
from gpsvelstr.errors import BackendError
from gpsvelstr.registry import Registry, resolve_backend


def test_register_get_list_roundtrip() -> None:
    registry = Registry()
    sentinel = object()

    registry.register("renderer", "null", sentinel)

    assert registry.get("renderer", "null") is sentinel
    assert registry.list("renderer") == ["null"]


def test_unknown_kind_error_is_clear() -> None:
    registry = Registry()

    with pytest.raises(KeyError) as exc:
        registry.get("unknown", "dummy")

    message = str(exc.value)
    assert "Unknown registry kind" in message
    assert "unknown" in message


def test_duplicate_registration_requires_overwrite() -> None:
    registry = Registry()
    registry.register("rasterizer", "r1", 1)

    with pytest.raises(ValueError) as exc:
        registry.register("rasterizer", "r1", 2)

    assert "already registered" in str(exc.value)

    registry.register("rasterizer", "r1", 2, overwrite=True)
    assert registry.get("rasterizer", "r1") == 2


def test_builtin_backends_are_registered() -> None:
    assert resolve_backend("renderer", "gmt") is GmtRenderer
    assert resolve_backend("renderer", "dummy") is DummyRenderer
    assert resolve_backend("rasterizer", "ghostscript") is GhostscriptRasterizer


def test_missing_backend_raises_backend_error() -> None:
    with pytest.raises(BackendError) as exc:
        resolve_backend("renderer", "postscript-by-hand", registry=Registry())

    message = str(exc.value)
    assert "postscript-by-hand" in message
    assert "<none>" in message
