"""
Incrementer — counter contract core with a mirrored optional value,
per-caller balances and IncResult events.

This module exposes a tiny, stable façade:

- __version__: package version (installed metadata, else BASE_VERSION+dev)
- Incrementer: the contract class (constructors `new`, `default`)
- run_call(call, args=None, *, init=0, caller=None, config=None) -> dict
    Deploy a fresh instance, execute a single call, return the result envelope.

The host is imported lazily so that importing the package stays cheap and
free of import cycles.
"""

from __future__ import annotations

import importlib
from typing import Any, Dict, Optional, Sequence, Union

from .contract import Incrementer
from .version import __version__


def version() -> str:
    """Return the incrementer semantic version string."""
    return __version__


def run_call(
    call: str,
    args: Optional[Sequence[Any]] = None,
    *,
    init: int = 0,
    caller: Optional[Union[bytes, str]] = None,
    config: Any = None,
) -> Dict[str, Any]:
    """
    Execute one message against a freshly deployed contract.

    Returns
    -------
    dict
        Result envelope, e.g. {"message": "get", "status": "OK", "return": 0,
        "error": None, "events": [...], "committed": False, "logsRoot": "0x.."}
    """
    host_mod = importlib.import_module(".runtime.host", __name__)
    host = host_mod.Host(config)
    host.deploy("new", init)
    kwargs = {"caller": caller} if caller is not None else {}
    return host.call(call, *(args or ()), **kwargs).to_dict()


__all__ = ["__version__", "version", "Incrementer", "run_call"]
