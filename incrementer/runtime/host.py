"""
incrementer.runtime.host — in-process hosting environment for the contract.

The host owns one contract instance and its event sink, routes calls by
message name, supplies the caller identity, and decides what survives a call:

  status   writes & events of the call
  ------   ---------------------------------------------
  OK       kept
  REVERT   kept when error_policy == "commit", discarded when "rollback"
  TRAP     always discarded

Mutating calls are wrapped in a storage snapshot + event mark (a single-level
checkpoint). Read-only calls take no snapshot and never report `committed`.

Calls are serialized by construction: the host is not thread-safe and callers
must not share one instance across threads.

Typical usage:
    host = Host()
    host.deploy("new", 42)
    res = host.call("inc_and_return_value", 5, caller=b"\\x01" * 32)
    assert res.status == "OK" and res.return_value == 47
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple, Type, Union

from ..abi import KIND_CONSTRUCTOR, KIND_MESSAGE, MessageSpec, collect_messages
from ..config import POLICY_COMMIT, IncrementerConfig, load_config
from ..contract import Incrementer
from ..errors import (DispatchError, ExecError, InvalidArguments, Revert, Trap,
                      UnknownMessage, error_to_receipt_fields)
from .context import DEFAULT_CALLER, CallContext, to_bytes, to_hex
from .events_api import EventSink, IncResult, compute_logs_root, events_for_receipt
from .storage import IntDomain, StorageState

log = logging.getLogger(__name__)

STATUS_OK = "OK"
STATUS_REVERT = "REVERT"
STATUS_TRAP = "TRAP"


@dataclass
class CallResult:
    """Outcome of one message call as seen by the caller."""

    message: str
    status: str
    return_value: Any = None
    error: Optional[Dict[str, Any]] = None
    events: Tuple[IncResult, ...] = ()
    committed: bool = False
    logs_root: str = ""

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "status": self.status,
            "return": self.return_value,
            "error": self.error,
            "events": events_for_receipt(self.events),
            "committed": self.committed,
            "logsRoot": self.logs_root,
        }


class Host:
    """Single-instance hosting environment with a configurable error policy."""

    def __init__(
        self,
        config: Optional[IncrementerConfig] = None,
        *,
        contract_cls: Type[Incrementer] = Incrementer,
    ) -> None:
        self.config = config or load_config()
        self.domain = IntDomain(bits=self.config.int_bits, wrap=not self.config.strict_mode)
        self.sink = EventSink(max_events_per_call=self.config.max_events_per_call)
        self.contract_cls = contract_cls
        self.contract: Optional[Incrementer] = None
        self._specs: Dict[str, MessageSpec] = collect_messages(contract_cls)

    # ------------------------------ views --------------------------------- #

    @property
    def storage(self) -> StorageState:
        return self._require_contract().storage

    def get_events(self):
        return self.sink.get_events()

    def state_dict(self) -> Dict[str, Any]:
        return self.storage.to_dict()

    # ------------------------------ deploy -------------------------------- #

    def deploy(self, constructor: str = "new", *args: Any) -> Incrementer:
        spec = self._specs.get(constructor)
        if spec is None or spec.kind != KIND_CONSTRUCTOR:
            raise UnknownMessage(constructor)
        self._check_args(spec, args)
        fn = getattr(self.contract_cls, constructor)
        self.contract = fn(*args, domain=self.domain)
        self.sink.clear_events()
        log.debug("deployed %s via %s%r", self.contract_cls.__name__, constructor, args)
        return self.contract

    # ------------------------------- call --------------------------------- #

    def call(
        self,
        message: str,
        *args: Any,
        caller: Union[bytes, str] = DEFAULT_CALLER,
    ) -> CallResult:
        """
        Execute one message. Revert and Trap become CallResult statuses;
        DispatchError (unknown message, bad arguments, not deployed) is raised.
        """
        spec = self._specs.get(message)
        if spec is None or spec.kind != KIND_MESSAGE:
            raise UnknownMessage(message)
        contract = self._require_contract()
        self._check_args(spec, args)

        ctx = CallContext(caller=to_bytes(caller), sink=self.sink)
        mark = self.sink.begin_call()
        snap = contract.storage.snapshot() if spec.mutates else None

        call_args: Sequence[Any] = ((ctx,) + tuple(args)) if spec.uses_env else tuple(args)
        handler = getattr(contract, message)
        log.debug("call %s%r caller=%s", message, tuple(args), to_hex(ctx.caller))

        try:
            ret = handler(*call_args)
        except Revert as err:
            keep = self.config.error_policy == POLICY_COMMIT
            if not keep:
                self._rollback(contract, snap, mark)
                log.info("%s reverted (%s); writes rolled back", message, err.reason)
            else:
                log.info("%s reverted (%s); writes committed", message, err.reason)
            return self._result(message, STATUS_REVERT, mark, error=err, committed=keep and spec.mutates)
        except Trap as err:
            self._rollback(contract, snap, mark)
            log.warning("%s trapped: %s", message, err.message)
            return self._result(message, STATUS_TRAP, mark, error=err, committed=False)

        return self._result(message, STATUS_OK, mark, return_value=ret, committed=spec.mutates)

    # ----------------------------- helpers -------------------------------- #

    def _require_contract(self) -> Incrementer:
        if self.contract is None:
            raise DispatchError(message="contract not deployed", code="NOT_DEPLOYED")
        return self.contract

    def _check_args(self, spec: MessageSpec, args: Sequence[Any]) -> None:
        if len(args) != spec.arity:
            raise InvalidArguments(
                f"{spec.name} expects {spec.arity} argument(s), got {len(args)}",
                name=spec.name,
            )
        for param, value in zip(spec.inputs, args):
            if param.type != "int":
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidArguments(
                    f"{spec.name}.{param.name} must be int, got {type(value).__name__}",
                    name=spec.name,
                )
            if not self.domain.contains(value):
                raise InvalidArguments(
                    f"{spec.name}.{param.name}={value} does not fit i{self.domain.bits}",
                    name=spec.name,
                )

    def _rollback(self, contract: Incrementer, snap, mark: int) -> None:
        if snap is not None:
            contract.storage.restore(snap)
        self.sink.truncate(mark)

    def _result(
        self,
        message: str,
        status: str,
        mark: int,
        *,
        return_value: Any = None,
        error: Optional[ExecError] = None,
        committed: bool,
    ) -> CallResult:
        events = self.sink.since(mark)
        return CallResult(
            message=message,
            status=status,
            return_value=return_value,
            error=(error_to_receipt_fields(error)["error"] if error is not None else None),
            events=events,
            committed=committed,
            logs_root=to_hex(compute_logs_root(events)),
        )


__all__ = ["Host", "CallResult", "STATUS_OK", "STATUS_REVERT", "STATUS_TRAP"]
