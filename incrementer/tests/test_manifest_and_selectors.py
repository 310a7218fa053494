from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any, Dict

from incrementer.abi import (build_manifest, collect_messages, constructors, messages,
                             selector)
from incrementer.contract import Incrementer

MANIFEST_PATH = Path(__file__).resolve().parents[1] / "manifest.json"

READ_ONLY = {"get", "get_optional", "get_my_value_or_zero"}
MUTATING = {
    "inc",
    "inc_and_return_value",
    "inc_and_emit_event",
    "inc_and_emit_event_and_fail",
    "divided_by_zero_and_fail",
    "incr_my_value",
}
USES_CALLER = {"get_my_value_or_zero", "inc_and_emit_event", "inc_and_emit_event_and_fail", "incr_my_value"}


def _load_manifest() -> Dict[str, Any]:
    assert MANIFEST_PATH.is_file(), f"missing manifest at {MANIFEST_PATH}"
    with MANIFEST_PATH.open("r", encoding="utf-8") as f:
        return json.load(f)


def test_packaged_manifest_matches_contract() -> None:
    assert _load_manifest() == build_manifest(Incrementer)


def test_eleven_entrypoints() -> None:
    assert list(constructors(Incrementer)) == ["new", "default"]
    assert set(messages(Incrementer)) == READ_ONLY | MUTATING
    assert len(collect_messages(Incrementer)) == 11


def test_mutability_and_caller_flags() -> None:
    for name, spec in messages(Incrementer).items():
        assert spec.mutates is (name in MUTATING), name
        assert spec.uses_env is (name in USES_CALLER), name


def test_inputs_and_outputs_from_annotations() -> None:
    specs = collect_messages(Incrementer)
    assert [p.to_dict() for p in specs["new"].inputs] == [{"name": "init_value", "type": "int"}]
    assert specs["default"].inputs == ()
    assert specs["get_optional"].outputs == ("optional<int>",)
    assert specs["inc"].outputs == ()
    assert specs["divided_by_zero_and_fail"].signature == "divided_by_zero_and_fail(int)"
    # the call context is not an ABI input
    assert specs["incr_my_value"].arity == 1


def test_selector_definition_and_uniqueness() -> None:
    expected = hashlib.sha3_256(b"incrementer:abi:v1|inc(int)").digest()[:4]
    assert selector("inc", ["int"]) == expected
    assert collect_messages(Incrementer)["inc"].selector == "0x" + expected.hex()

    sels = [s.selector for s in collect_messages(Incrementer).values()]
    assert len(set(sels)) == len(sels)


def test_registry_is_cached_per_class() -> None:
    assert collect_messages(Incrementer) is collect_messages(Incrementer)
