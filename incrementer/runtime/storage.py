"""
incrementer.runtime.storage — contract storage: counter, mirror and ledger.

The storage holds three things:

- a scalar signed counter (the source of truth),
- a mirrored optional counter, modelled as a tagged variant
  (`Uninitialized` or `Value(n)`) instead of a second nullable field,
- an AccountLedger mapping caller identities (bytes) to signed balances.

All arithmetic goes through `IntDomain`, which fixes the signed width and
decides whether an out-of-range result wraps (the default) or traps.

Snapshots
---------
`StorageState.snapshot()` returns an immutable copy of every field;
`restore()` puts it back. The host uses the pair to discard the writes of a
call it does not commit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional, Tuple, Union

from ..errors import ArithmeticOverflow, MirrorUninitialized


# ------------------------------ integers --------------------------------- #


@dataclass(frozen=True)
class IntDomain:
    """Signed fixed-width integer arithmetic (two's complement, wraps unless told to trap)."""

    bits: int = 32
    wrap: bool = True

    @property
    def min(self) -> int:
        return -(1 << (self.bits - 1))

    @property
    def max(self) -> int:
        return (1 << (self.bits - 1)) - 1

    def contains(self, value: int) -> bool:
        return self.min <= value <= self.max

    def normalize(self, value: int, *, op: str) -> int:
        if self.contains(value):
            return value
        if not self.wrap:
            raise ArithmeticOverflow(op, value, self.bits)
        span = 1 << self.bits
        return ((value - self.min) % span) + self.min

    def add(self, a: int, b: int) -> int:
        return self.normalize(a + b, op="add")

    def div(self, a: int, b: int) -> int:
        """Division truncating toward zero; caller checks b != 0."""
        q = abs(a) // abs(b)
        if (a < 0) != (b < 0):
            q = -q
        return self.normalize(q, op="div")


# ------------------------------ mirror ----------------------------------- #


class Uninitialized:
    """Mirror state with no value. Use the UNINITIALIZED singleton."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "Uninitialized"


UNINITIALIZED = Uninitialized()


@dataclass(frozen=True)
class Value:
    value: int


Mirror = Union[Uninitialized, Value]


def mirror_to_optional(m: Mirror) -> Optional[int]:
    return m.value if isinstance(m, Value) else None


# ------------------------------ ledger ----------------------------------- #


class AccountLedger:
    """
    Default-to-zero map from caller identity to balance.

    Entries appear on first write and are never removed; there is
    intentionally no delete method.
    """

    __slots__ = ("_balances", "_domain")

    def __init__(self, domain: Optional[IntDomain] = None) -> None:
        self._balances: Dict[bytes, int] = {}
        self._domain = domain or IntDomain()

    @classmethod
    def _from_items(
        cls, items: Iterable[Tuple[bytes, int]], domain: Optional[IntDomain] = None
    ) -> "AccountLedger":
        ledger = cls(domain)
        ledger._balances.update((bytes(k), v) for k, v in items)
        return ledger

    def get_or_zero(self, account: bytes) -> int:
        return self._balances.get(bytes(account), 0)

    def increment(self, account: bytes, by: int) -> None:
        key = bytes(account)
        if key in self._balances:
            self._balances[key] = self._domain.add(self._balances[key], by)
        else:
            self._balances[key] = self._domain.normalize(by, op="add")

    def items(self) -> Iterator[Tuple[bytes, int]]:
        """Entries sorted by identity."""
        return iter(sorted(self._balances.items()))

    def __contains__(self, account: object) -> bool:
        if not isinstance(account, (bytes, bytearray, memoryview)):
            return False
        return bytes(account) in self._balances

    def __len__(self) -> int:
        return len(self._balances)

    def __repr__(self) -> str:  # pragma: no cover
        return f"AccountLedger(entries={len(self._balances)})"


# ------------------------------ state ------------------------------------ #


@dataclass(frozen=True)
class StorageSnapshot:
    counter: int
    mirror: Mirror
    balances: Tuple[Tuple[bytes, int], ...]


class StorageState:
    """
    Counter + mirrored optional counter + account ledger.

    Typical usage:
        st = StorageState(42)
        st.inc(5)
        assert st.get() == 47 and st.get_optional() == 47
    """

    __slots__ = ("_counter", "_mirror", "ledger", "domain")

    def __init__(self, init_value: int = 0, *, domain: Optional[IntDomain] = None) -> None:
        self.domain = domain or IntDomain()
        value = self.domain.normalize(init_value, op="init")
        self._counter = value
        self._mirror: Mirror = Value(value)
        self.ledger = AccountLedger(self.domain)

    # ---------------------------- reads ---------------------------------- #

    def get(self) -> int:
        return self._counter

    def get_optional(self) -> Optional[int]:
        return mirror_to_optional(self._mirror)

    @property
    def mirror(self) -> Mirror:
        return self._mirror

    # ---------------------------- writes --------------------------------- #

    def inc(self, by: int) -> None:
        """
        Add `by` to the counter and to the mirror.

        Both new values are computed before either field is assigned, so a trap
        (uninitialized mirror or overflow) leaves the state untouched.
        """
        if not isinstance(self._mirror, Value):
            raise MirrorUninitialized()
        new_counter = self.domain.add(self._counter, by)
        new_mirror = self.domain.add(self._mirror.value, by)
        self._counter = new_counter
        self._mirror = Value(new_mirror)

    def _clear_mirror(self) -> None:
        # Test hook; constructors always initialise the mirror.
        self._mirror = UNINITIALIZED

    # --------------------------- checkpoints ------------------------------ #

    def snapshot(self) -> StorageSnapshot:
        return StorageSnapshot(
            counter=self._counter,
            mirror=self._mirror,
            balances=tuple(self.ledger.items()),
        )

    def restore(self, snap: StorageSnapshot) -> None:
        self._counter = snap.counter
        self._mirror = snap.mirror
        self.ledger = AccountLedger._from_items(snap.balances, self.domain)

    def to_dict(self) -> Dict[str, object]:
        return {
            "counter": self._counter,
            "mirror": self.get_optional(),
            "ledger": {"0x" + k.hex(): v for k, v in self.ledger.items()},
        }

    def __repr__(self) -> str:  # pragma: no cover
        return f"StorageState(counter={self._counter}, mirror={self._mirror!r}, ledger={self.ledger!r})"


__all__ = [
    "IntDomain",
    "Uninitialized",
    "UNINITIALIZED",
    "Value",
    "Mirror",
    "mirror_to_optional",
    "AccountLedger",
    "StorageSnapshot",
    "StorageState",
]
