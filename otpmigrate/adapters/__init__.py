"""
Adapter registry for account imports.

Deutsch:
    Adapter-Registry für den Import von Konten.
"""

from __future__ import annotations

from importlib import import_module
from pathlib import PurePath
from typing import Dict, List, Optional

from ..errors import UnsupportedInput
from ..models import RawOtpRecord


class BaseAdapter:
    """
    Base class for all input adapters.

    ``adapt`` returns ``None`` when the input carries nothing the adapter
    recognises, and an empty list for a valid but empty input.

    Deutsch:
        Basisklasse für alle Eingabe-Adapter.
    """

    name = "base"
    suffixes: tuple = ()

    def adapt(self, text: str) -> Optional[List[RawOtpRecord]]:  # pragma: no cover - abstract
        raise NotImplementedError


_REGISTRY: Dict[str, BaseAdapter] = {}
_BOOTSTRAPPED = False


def register(adapter: BaseAdapter) -> None:
    _REGISTRY[adapter.name] = adapter


def get_adapter(name: str) -> BaseAdapter:
    _ensure_bootstrapped()
    adapter = _REGISTRY.get(name)
    if not adapter:
        raise KeyError(f"adapter {name} not registered")
    return adapter


def list_adapters() -> List[str]:
    _ensure_bootstrapped()
    return sorted(_REGISTRY.keys())


def adapter_for_filename(filename: str) -> BaseAdapter:
    """Pick the adapter handling a file, by suffix."""

    _ensure_bootstrapped()
    suffix = PurePath(filename).suffix.lower()
    for adapter in _REGISTRY.values():
        if suffix in adapter.suffixes:
            return adapter
    raise UnsupportedInput(f"unsupported file type: {filename}")


def _ensure_bootstrapped() -> None:
    global _BOOTSTRAPPED
    if not _BOOTSTRAPPED:
        _bootstrap()
        _BOOTSTRAPPED = True


def _bootstrap() -> None:
    # Import modules to trigger registration side effects.
    package = __name__
    for module in ("qr", "jsonbackup", "csvbackup"):
        import_module(f"{package}.{module}")
