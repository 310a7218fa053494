"""
incrementer.cli — console entrypoints.

`ENTRYPOINTS` maps a short name to "module:function"; `resolve_entrypoint`
imports the module only when asked for it.
"""

from __future__ import annotations

from importlib import import_module
from typing import Callable, Dict

ENTRYPOINTS: Dict[str, str] = {
    "run": "incrementer.cli.run:main",
}


def resolve_entrypoint(name: str) -> Callable[..., int]:
    """Return the `main` callable for `name`; unknown names raise KeyError."""
    module_path, _, attr = ENTRYPOINTS[name].partition(":")
    return getattr(import_module(module_path), attr)


__all__ = ["ENTRYPOINTS", "resolve_entrypoint"]
