from __future__ import annotations

from typing import Any, Dict

from config.settings import Settings


_REGISTRY: Dict[str, Any] = {}


def register(name: str, factory) -> None:
    _REGISTRY[name] = factory


def get_source(name: str):
    if name not in _REGISTRY:
        raise KeyError(f"Unknown source: {name}")
    return _REGISTRY[name]()


def available_sources() -> Dict[str, Any]:
    return dict(_REGISTRY)


def default_source_name(settings: Settings) -> str:
    """Resolve PEOPLE_SOURCE=auto to apollo when a key is configured, else mock."""
    name = (settings.source_name or "auto").lower()
    if name == "auto":
        return "apollo" if settings.apollo_api_key else "mock"
    return name
