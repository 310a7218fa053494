#!/usr/bin/env python3
"""
incrementer-run

Deploy an Incrementer in memory and run a sequence of message calls against it.

Examples:
  python -m incrementer.cli.run --init 42 --call inc:[5] --call get
  python -m incrementer.cli.run --call incr_my_value:[2] --call get_my_value_or_zero
  python -m incrementer.cli.run --policy rollback --call inc_and_emit_event_and_fail:[1] --call get

Notes:
- Each --call is NAME or NAME:JSON_ARRAY; calls run in order on one instance.
- Nothing is persisted; the process exit discards the state.

Exit codes:
  0 when every call returned OK, 1 when any call reverted or trapped,
  2 on usage errors (unknown message, bad arguments).
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional, Tuple

from ..config import ERROR_POLICIES, load_config
from ..errors import DispatchError
from ..runtime.context import DEFAULT_CALLER, ContextError, to_bytes, to_hex
from ..runtime.host import Host

log = logging.getLogger("incrementer.cli.run")


def parse_call(spec: str) -> Tuple[str, List[Any]]:
    """Split 'name' or 'name:[json, args]' into (name, args)."""
    name, sep, raw = spec.partition(":")
    name = name.strip()
    if not name:
        raise ValueError(f"empty message name in {spec!r}")
    if not sep or not raw.strip():
        return name, []
    try:
        val = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"bad JSON arguments for {name}: {e}") from e
    if not isinstance(val, list):
        raise ValueError(f"arguments for {name} must be a JSON array, e.g. {name}:[1]")
    return name, val


def parse_args(argv: List[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="incrementer-run", description="Run Incrementer contract calls in memory.")
    p.add_argument("--init", type=int, default=None, help="Deploy with new(INIT); default() when omitted")
    p.add_argument("--caller", default=to_hex(DEFAULT_CALLER), help="Caller identity as hex")
    p.add_argument(
        "--call",
        "-c",
        action="append",
        default=[],
        metavar="NAME[:JSON]",
        help="Message to call, e.g. inc:[5] (repeatable)",
    )
    p.add_argument("--policy", choices=ERROR_POLICIES, default=None, help="Error policy for reverted calls")
    p.add_argument("--int-bits", type=int, default=None, help="Signed integer width (8..256)")
    p.add_argument("--format", choices=("text", "json"), default="json", help="Output format")
    p.add_argument("--quiet", action="store_true", help="Only log errors on stderr")
    p.add_argument("--verbose", "-v", action="store_true", help="Debug logging on stderr")
    return p.parse_args(argv)


def _configure_logging(args: argparse.Namespace, default_level: int) -> None:
    level = logging.DEBUG if args.verbose else logging.ERROR if args.quiet else default_level
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _print_text(out: Dict[str, Any]) -> None:
    for res in out["results"]:
        line = f"{res['message']}: {res['status']}"
        if res["return"] is not None:
            line += f" -> {res['return']}"
        if res["error"]:
            line += f" ({res['error']['code']}: {res['error']['message']})"
        print(line)
        for ev in res["events"]:
            print(f"  event {ev['name']} data={ev['data']}")
    st = out["state"]
    print(f"counter={st['counter']} mirror={st['mirror']} ledger={st['ledger']}")


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)

    try:
        cfg = load_config().with_overrides(error_policy=args.policy, int_bits=args.int_bits)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    _configure_logging(args, cfg.log_level_no)

    try:
        caller = to_bytes(args.caller)
        calls = [parse_call(c) for c in args.call]
    except (ContextError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    host = Host(cfg)
    results: List[Dict[str, Any]] = []
    try:
        if args.init is None:
            host.deploy("default")
        else:
            host.deploy("new", args.init)
        for name, call_args in calls:
            results.append(host.call(name, *call_args, caller=caller).to_dict())
    except DispatchError as e:
        log.error("%s", e.message)
        print(json.dumps({"ok": False, "error": e.to_dict()}, indent=2))
        return 2

    all_ok = all(r["status"] == "OK" for r in results)
    out = {"ok": all_ok, "config": cfg.as_dict(), "results": results, "state": host.state_dict()}
    if args.format == "json":
        print(json.dumps(out, indent=2))
    else:
        _print_text(out)
    return 0 if all_ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
