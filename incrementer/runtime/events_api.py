"""
incrementer.runtime.events_api — IncResult events, the ordered sink, receipts.

Event model
-----------
The contract has one event type, `IncResult`, with two indexed fields:

    caller:        bytes                 (opaque caller identity)
    current_value: Ok(int) | Err(str)    (tagged result)

Encoding (documented for cross-impl parity)
-------------------------------------------
• Field values are encoded with canonical CBOR (`cbor2`, canonical=True). The
  tagged result is the single-key map {"Ok": int} or {"Err": str}.

• Topics: topic[0] = H("incrementer:event:topic" || 0x00 || "IncResult"),
  then one topic per indexed field,
  H("incrementer:event:topic" || 0x00 || "IncResult.<field>" || 0x00 || cbor(value)).

• Event data: canonical CBOR of {"caller": bytes, "current_value": {...}}.

• Logs root: binary Merkle tree over H("incrementer:logs:leaf" || data);
  an odd level duplicates its last node; the empty root is
  H("incrementer:logs:empty"). H is SHA3-256.

Sink
----
`EventSink` keeps events in emission order. `mark()` returns the current
length and `truncate(mark)` drops everything after it, which is how the host
discards the events of a call it does not commit.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

try:
    import cbor2  # type: ignore
except Exception as e:  # pragma: no cover
    raise ImportError(
        "incrementer.runtime.events_api requires 'cbor2'. Install with: pip install cbor2"
    ) from e

from ..errors import EventLimitExceeded


# ------------------------------ outcomes --------------------------------- #


@dataclass(frozen=True)
class Ok:
    value: int


@dataclass(frozen=True)
class Err:
    message: str


Outcome = Union[Ok, Err]


def outcome_to_wire(outcome: Outcome) -> Dict[str, Any]:
    if isinstance(outcome, Ok):
        return {"Ok": int(outcome.value)}
    if isinstance(outcome, Err):
        return {"Err": str(outcome.message)}
    raise TypeError(f"expected Ok or Err, got {type(outcome).__name__}")


def outcome_from_wire(obj: Any) -> Outcome:
    if isinstance(obj, dict) and len(obj) == 1:
        if "Ok" in obj:
            return Ok(int(obj["Ok"]))
        if "Err" in obj:
            return Err(str(obj["Err"]))
    raise ValueError(f"not a tagged result: {obj!r}")


# ------------------------------ event ------------------------------------ #

EVENT_NAME = "IncResult"
INDEXED_FIELDS: Tuple[str, ...] = ("caller", "current_value")

_D_TOPIC = b"incrementer:event:topic"
_D_LEAF = b"incrementer:logs:leaf"
_D_NODE = b"incrementer:logs:node"
_D_EMPTY = b"incrementer:logs:empty"


def _h(domain: bytes, *parts: bytes) -> bytes:
    """Domain-separated hash: H(domain || 0x00 || part0 || part1 || ...)."""
    return hashlib.sha3_256(domain + b"\x00" + b"".join(parts)).digest()


def _cbor(obj: Any) -> bytes:
    return cbor2.dumps(obj, canonical=True)


@dataclass(frozen=True)
class IncResult:
    """Result of an increment, reported to the hosting environment."""

    caller: bytes
    current_value: Outcome

    def __post_init__(self) -> None:
        if not isinstance(self.caller, (bytes, bytearray, memoryview)):
            raise TypeError(f"caller must be bytes, got {type(self.caller).__name__}")
        object.__setattr__(self, "caller", bytes(self.caller))
        if not isinstance(self.current_value, (Ok, Err)):
            raise TypeError("current_value must be Ok or Err")

    @property
    def name(self) -> str:
        return EVENT_NAME

    def fields(self) -> Dict[str, Any]:
        return {"caller": self.caller, "current_value": outcome_to_wire(self.current_value)}

    def topics(self) -> List[bytes]:
        fields = self.fields()
        out = [_h(_D_TOPIC, EVENT_NAME.encode("ascii"))]
        for fname in INDEXED_FIELDS:
            label = f"{EVENT_NAME}.{fname}".encode("ascii")
            out.append(_h(_D_TOPIC, label, b"\x00", _cbor(fields[fname])))
        return out

    def encode(self) -> bytes:
        return _cbor(self.fields())

    @classmethod
    def decode(cls, data: bytes) -> "IncResult":
        obj = cbor2.loads(data)
        return cls(caller=obj["caller"], current_value=outcome_from_wire(obj["current_value"]))


# ------------------------------ sink ------------------------------------- #


class EventSink:
    """Ordered in-memory event sink for one contract instance."""

    def __init__(self, *, max_events_per_call: Optional[int] = None) -> None:
        self._events: List[IncResult] = []
        self._max_per_call = max_events_per_call
        self._call_mark = 0

    def begin_call(self) -> int:
        """Start counting events for a new call; returns the rollback mark."""
        self._call_mark = len(self._events)
        return self._call_mark

    def emit(self, event: IncResult) -> None:
        if not isinstance(event, IncResult):
            raise TypeError(f"unsupported event type {type(event).__name__}")
        if self._max_per_call is not None and len(self._events) - self._call_mark >= self._max_per_call:
            raise EventLimitExceeded(self._max_per_call)
        self._events.append(event)

    def mark(self) -> int:
        return len(self._events)

    def truncate(self, mark: int) -> List[IncResult]:
        """Drop events after `mark`; returns the dropped events."""
        if mark < 0 or mark > len(self._events):
            raise ValueError(f"invalid mark {mark} (have {len(self._events)} events)")
        dropped = self._events[mark:]
        del self._events[mark:]
        return dropped

    def since(self, mark: int) -> Tuple[IncResult, ...]:
        return tuple(self._events[mark:])

    def get_events(self) -> List[IncResult]:
        return list(self._events)

    def clear_events(self) -> None:
        self._events.clear()
        self._call_mark = 0

    def __len__(self) -> int:
        return len(self._events)


# ------------------------------ receipts --------------------------------- #


def events_for_receipt(events: Iterable[IncResult]) -> List[Dict[str, Any]]:
    """Canonical, JSON-safe view: {"name", "topics": [0x..], "data": 0x..}."""
    out: List[Dict[str, Any]] = []
    for ev in events:
        out.append(
            {
                "name": ev.name,
                "topics": ["0x" + t.hex() for t in ev.topics()],
                "data": "0x" + ev.encode().hex(),
            }
        )
    return out


def _merkle_root(leaves: Sequence[bytes]) -> bytes:
    if not leaves:
        return _h(_D_EMPTY)
    level = list(leaves)
    while len(level) > 1:
        nxt: List[bytes] = []
        it = iter(level)
        for left in it:
            right = next(it, left)  # duplicate last
            nxt.append(_h(_D_NODE, left, right))
        level = nxt
    return level[0]


def compute_logs_root(events: Iterable[IncResult]) -> bytes:
    """32-byte SHA3-256 Merkle root over the events, order-sensitive."""
    return _merkle_root([_h(_D_LEAF, ev.encode()) for ev in events])


__all__ = [
    "Ok",
    "Err",
    "Outcome",
    "outcome_to_wire",
    "outcome_from_wire",
    "EVENT_NAME",
    "INDEXED_FIELDS",
    "IncResult",
    "EventSink",
    "events_for_receipt",
    "compute_logs_root",
]
