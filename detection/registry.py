"""Capability backend registry.

The pipeline consumes two external capabilities: a *vision* backend that
extracts candidate regions from a frame and an *ocr* backend that reads text
from a crop. Concrete implementations register themselves here under
``task/name`` so that the configuration can pick one by name without the
pipeline importing specific classes.
"""

from __future__ import annotations

import importlib
from collections import defaultdict
from typing import Any, Callable, Dict, Iterable

BackendFactory = Callable[..., Any]

_REGISTRY: Dict[str, Dict[str, BackendFactory]] = defaultdict(dict)

# modules whose import registers the built-in backends for a task
_BUILTIN_MODULES: Dict[str, str] = {
    "vision": "detection.contour_vision",
    "ocr": "recognition.anpr",
}


def register_backend(task: str, name: str) -> Callable[[BackendFactory], BackendFactory]:
    """Decorator to register a backend factory under ``task/name``.

    Parameters
    ----------
    task:
        Capability the backend provides, ``"vision"`` or ``"ocr"``.
    name:
        Backend identifier selected via configuration.
    """

    def decorator(factory: BackendFactory) -> BackendFactory:
        key = name.lower()
        if key in _REGISTRY[task]:
            raise ValueError(f"Backend already registered for task '{task}' with name '{name}'")
        _REGISTRY[task][key] = factory
        return factory

    return decorator


def _load_builtins(task: str) -> None:
    module = _BUILTIN_MODULES.get(task)
    if module is not None:
        importlib.import_module(module)


def build_backend(task: str, name: str, **kwargs: Any) -> Any:
    """Instantiate the backend registered for ``task`` under ``name``.

    Raises
    ------
    KeyError
        If no backend is registered under the given task/name.
    """
    _load_builtins(task)
    backends = _REGISTRY.get(task)
    if not backends:
        raise KeyError(f"No backends registered for task '{task}'")
    backend = backends.get(name.lower())
    if backend is None:
        available = ", ".join(sorted(backends))
        raise KeyError(f"Backend '{name}' not registered for task '{task}'. Available: {available}")
    return backend(**kwargs)


def available_backends(task: str) -> Iterable[str]:
    """Return registered backend names for a task."""
    _load_builtins(task)
    return sorted(_REGISTRY.get(task, {}))
