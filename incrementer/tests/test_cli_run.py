from __future__ import annotations

import json

import pytest

from incrementer.cli import ENTRYPOINTS, resolve_entrypoint
from incrementer.cli.run import main, parse_call


def _run(capsys, *argv: str):
    code = main(["--quiet", *argv])
    out = capsys.readouterr().out
    return code, json.loads(out)


def test_parse_call() -> None:
    assert parse_call("get") == ("get", [])
    assert parse_call("inc:[5]") == ("inc", [5])
    assert parse_call("inc:") == ("inc", [])
    with pytest.raises(ValueError):
        parse_call("inc:5")
    with pytest.raises(ValueError):
        parse_call("inc:[5")
    with pytest.raises(ValueError):
        parse_call(":[1]")


def test_run_sequence_json(capsys) -> None:
    code, out = _run(capsys, "--init", "42", "--call", "inc:[5]", "--call", "get")
    assert code == 0
    assert out["ok"] is True
    assert [r["status"] for r in out["results"]] == ["OK", "OK"]
    assert out["results"][1]["return"] == 47
    assert out["state"]["counter"] == 47
    assert out["state"]["mirror"] == 47


def test_default_constructor_when_no_init(capsys) -> None:
    code, out = _run(capsys, "--call", "get_optional")
    assert code == 0
    assert out["results"][0]["return"] == 0


def test_revert_exit_code_and_policy(capsys) -> None:
    code, out = _run(
        capsys, "--policy", "rollback", "--call", "inc_and_emit_event_and_fail:[3]", "--call", "get"
    )
    assert code == 1
    assert out["ok"] is False
    assert out["results"][0]["status"] == "REVERT"
    assert out["results"][0]["error"]["message"] == "Handmade error"
    assert out["results"][1]["return"] == 0
    assert out["config"]["error_policy"] == "rollback"


def test_trap_exit_code(capsys) -> None:
    code, out = _run(capsys, "--call", "divided_by_zero_and_fail:[0]")
    assert code == 1
    assert out["results"][0]["status"] == "TRAP"


def test_caller_ledger(capsys) -> None:
    caller = "0x" + "cd" * 32
    code, out = _run(
        capsys,
        "--caller",
        caller,
        "--call",
        "incr_my_value:[2]",
        "--call",
        "incr_my_value:[3]",
        "--call",
        "get_my_value_or_zero",
    )
    assert code == 0
    assert out["results"][2]["return"] == 5
    assert out["state"]["ledger"] == {caller: 5}


def test_unknown_message_is_usage_error(capsys) -> None:
    code, out = _run(capsys, "--call", "explode")
    assert code == 2
    assert out["ok"] is False
    assert out["error"]["code"] == "UNKNOWN_MESSAGE"


def test_bad_caller_is_usage_error(capsys) -> None:
    assert main(["--quiet", "--caller", "0xabc", "--call", "get"]) == 2
    assert "error:" in capsys.readouterr().err


def test_text_format(capsys) -> None:
    code = main(["--quiet", "--format", "text", "--init", "1", "--call", "inc_and_emit_event:[1]"])
    out = capsys.readouterr().out
    assert code == 0
    assert "inc_and_emit_event: OK" in out
    assert "event IncResult" in out
    assert "counter=2 mirror=2" in out


def test_entrypoint_registry() -> None:
    assert ENTRYPOINTS == {"run": "incrementer.cli.run:main"}
    assert resolve_entrypoint("run") is main
    with pytest.raises(KeyError):
        resolve_entrypoint("compile")
