from __future__ import annotations

from importlib import metadata as importlib_metadata

import incrementer
from incrementer.runtime.context import DEFAULT_CALLER, CallContext
from incrementer.version import BASE_VERSION, compute_version


def test_run_call_envelope() -> None:
    out = incrementer.run_call("inc_and_return_value", [5], init=42)
    assert out["status"] == "OK"
    assert out["return"] == 47
    assert out["committed"] is True


def test_run_call_with_caller() -> None:
    out = incrementer.run_call("inc_and_emit_event", [1], caller="0x" + "01" * 32)
    assert out["status"] == "OK"
    assert len(out["events"]) == 1


def test_version_strings() -> None:
    assert isinstance(incrementer.version(), str) and incrementer.version()
    assert incrementer.__version__ == incrementer.version()
    assert BASE_VERSION == "0.1.0"


def test_version_falls_back_without_metadata(monkeypatch) -> None:
    def _missing(name):
        raise importlib_metadata.PackageNotFoundError(name)

    monkeypatch.setattr(importlib_metadata, "version", _missing)
    assert compute_version() == "0.1.0+dev"


def test_default_caller_is_one_in_32_bytes() -> None:
    assert DEFAULT_CALLER == bytes(31) + b"\x01"
    assert len(DEFAULT_CALLER) == 32
    assert CallContext().caller == DEFAULT_CALLER
