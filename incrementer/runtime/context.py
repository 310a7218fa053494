"""
incrementer.runtime.context — per-call environment handed to messages.

The hosting environment supplies two things the contract cannot produce on its
own: the identity of the caller and a channel to publish events on. Both are
passed explicitly in a `CallContext` so the contract stays unit-testable
without a host.

Caller identities are opaque bytes. Hex strings (with or without "0x") are
accepted by helpers and normalized to bytes; no other validation is done.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

from .events_api import EventSink, IncResult


class ContextError(Exception):
    """Validation or coercion failure for CallContext."""


def _strip_0x(s: str) -> str:
    return s[2:] if s.startswith(("0x", "0X")) else s


def to_bytes(value: Union[bytes, bytearray, memoryview, str]) -> bytes:
    """
    Coerce `value` to bytes.
    - If str, interpret as hex (with or without '0x'); odd-length hex is rejected.
    - If a bytes-like object, copy to immutable bytes.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        h = _strip_0x(value.strip())
        if len(h) % 2 != 0:
            raise ContextError(f"hex string must have even length, got {len(h)}")
        try:
            return bytes.fromhex(h)
        except ValueError as e:
            raise ContextError(f"invalid hex string: {value!r}") from e
    raise ContextError(f"cannot convert type {type(value).__name__} to bytes")


def to_hex(b: Union[bytes, bytearray, memoryview]) -> str:
    """Encode bytes as 0x-prefixed lowercase hex."""
    return "0x" + bytes(b).hex()


# Caller used by the CLI and tests when none is given (31 zero bytes + 0x01).
DEFAULT_CALLER: bytes = b"\x00" * 31 + b"\x01"


@dataclass
class CallContext:
    """
    Environment of a single message call.

    Fields
    ------
    caller: identity of the invoking account (bytes).
    sink:   event channel; a private EventSink is created when omitted.
    """
    caller: bytes = DEFAULT_CALLER
    sink: EventSink = field(default_factory=EventSink)

    def __post_init__(self) -> None:
        self.caller = to_bytes(self.caller)

    @classmethod
    def for_caller(cls, caller: Union[bytes, str], sink: Optional[EventSink] = None) -> "CallContext":
        return cls(caller=to_bytes(caller), sink=sink if sink is not None else EventSink())

    def emit(self, event: IncResult) -> None:
        self.sink.emit(event)


__all__ = [
    "ContextError",
    "to_bytes",
    "to_hex",
    "DEFAULT_CALLER",
    "CallContext",
]
