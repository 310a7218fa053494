"""
incrementer.errors — fault classes raised by the contract core and its host.

The contract communicates failures via *typed exceptions* that the host turns
into call results. There are two disjoint contract fault classes plus a small
family of host-side dispatch errors.

Hierarchy
---------
ExecError (base, serialization only)
 ├─ Revert                : recoverable application error, carries a reason
 ├─ Trap                  : fatal abort of the current call
 │   ├─ DivisionByZero
 │   ├─ MirrorUninitialized
 │   ├─ ArithmeticOverflow
 │   └─ EventLimitExceeded
 └─ DispatchError         : the call never reached a handler
     ├─ UnknownMessage
     └─ InvalidArguments

Notes
-----
* A `Revert` is raised *after* the handler finished its writes and events. What
  happens to them is the host's error policy (see incrementer.config).
* A `Trap` always discards the call's writes and events.
* `Revert` and `Trap` are siblings; catching one never catches the other.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class ExecError(Exception):
    """
    Base error.

    Attributes:
        message: Human-readable explanation.
        code:    Stable machine code string (e.g., 'REVERT', 'TRAP_DIV_ZERO').
        data:    Optional structured details (kept JSON-serializable).
    """
    message: str = "execution error"
    code: str = "EXEC_ERROR"
    data: Optional[Dict[str, Any]] = field(default=None)

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.data:
            return f"{self.code}: {self.message} ({self.data})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict for call results and CLI output."""
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out


class Revert(ExecError):
    """
    Contract-signalled recoverable error.

    Usage:
        raise Revert("Handmade error")
    """
    def __init__(self, reason: str = "reverted", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=reason, code="REVERT", data=data)

    @property
    def reason(self) -> str:
        return self.message


class Trap(ExecError):
    """Illegal operation; aborts the whole call."""
    def __init__(
        self,
        message: str = "trap",
        *,
        code: str = "TRAP",
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code=code, data=data)


class DivisionByZero(Trap):
    def __init__(self, dividend: int):
        super().__init__(
            "integer division by zero",
            code="TRAP_DIV_ZERO",
            data={"dividend": dividend},
        )


class MirrorUninitialized(Trap):
    """The optional mirror of the counter holds no value."""
    def __init__(self) -> None:
        super().__init__("mirrored counter is uninitialized", code="TRAP_MIRROR_UNINIT")


class ArithmeticOverflow(Trap):
    def __init__(self, op: str, result: int, bits: int):
        super().__init__(
            f"{op} overflows i{bits}",
            code="TRAP_OVERFLOW",
            data={"op": op, "result": str(result), "bits": bits},
        )


class EventLimitExceeded(Trap):
    def __init__(self, limit: int):
        super().__init__(
            f"more than {limit} events in a single call",
            code="TRAP_EVENT_LIMIT",
            data={"limit": limit},
        )


class DispatchError(ExecError):
    """Raised when a call cannot be routed to a handler."""


class UnknownMessage(DispatchError):
    def __init__(self, name: str):
        super().__init__(message=f"unknown message {name!r}", code="UNKNOWN_MESSAGE", data={"name": name})


class InvalidArguments(DispatchError):
    def __init__(self, message: str, *, name: Optional[str] = None):
        super().__init__(
            message=message,
            code="INVALID_ARGUMENTS",
            data=({"name": name} if name is not None else None),
        )


def error_to_receipt_fields(err: ExecError) -> Dict[str, Any]:
    """
    Map an ExecError to canonical result fields.

    Returns:
        {
          "status": "REVERT" | "TRAP" | "ERROR",
          "error":  {code, message, data?}
        }
    """
    if isinstance(err, Revert):
        status = "REVERT"
    elif isinstance(err, Trap):
        status = "TRAP"
    else:
        status = "ERROR"
    return {"status": status, "error": err.to_dict()}


__all__ = [
    "ExecError",
    "Revert",
    "Trap",
    "DivisionByZero",
    "MirrorUninitialized",
    "ArithmeticOverflow",
    "EventLimitExceeded",
    "DispatchError",
    "UnknownMessage",
    "InvalidArguments",
    "error_to_receipt_fields",
]
