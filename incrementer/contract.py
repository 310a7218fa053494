"""
Incrementer contract.

Storage: a signed counter, its mirrored optional copy and a per-caller ledger
(see incrementer.runtime.storage).

Constructors:

    new(init_value: int)          counter = mirror = init_value, empty ledger
    default()                     new(0)

Messages (read-only):

    get() -> int
    get_optional() -> Optional[int]
    get_my_value_or_zero(ctx) -> int

Messages (mutating):

    inc(by)
    inc_and_return_value(by) -> int
    inc_and_emit_event(ctx, by)              emits IncResult(caller, Ok(counter))
    inc_and_emit_event_and_fail(ctx, by)     emits IncResult(caller, Err(...)), raises Revert
    divided_by_zero_and_fail(manual_zero)    3 / manual_zero, traps on zero
    incr_my_value(ctx, by)

Messages that need the caller or the event channel take a CallContext first.
"""

from __future__ import annotations

import logging
from typing import Optional

from .abi import constructor, message
from .config import load_config
from .errors import DivisionByZero, Revert
from .runtime.context import CallContext
from .runtime.events_api import Err, IncResult, Ok
from .runtime.storage import IntDomain, StorageState

log = logging.getLogger(__name__)

HANDMADE_ERROR = "Handmade error"


class Incrementer:
    """Counter contract with a mirrored optional value and per-caller balances."""

    def __init__(self, storage: StorageState) -> None:
        self.storage = storage

    # ---------------------------- constructors ---------------------------- #

    @constructor
    @classmethod
    def new(cls, init_value: int, *, domain: Optional[IntDomain] = None) -> "Incrementer":
        if domain is None:
            cfg = load_config()
            domain = IntDomain(bits=cfg.int_bits, wrap=not cfg.strict_mode)
        return cls(StorageState(init_value, domain=domain))

    @constructor
    @classmethod
    def default(cls, *, domain: Optional[IntDomain] = None) -> "Incrementer":
        return cls.new(0, domain=domain)

    # ------------------------------ reads -------------------------------- #

    @message(mutates=False)
    def get(self) -> int:
        return self.storage.get()

    @message(mutates=False)
    def get_optional(self) -> Optional[int]:
        return self.storage.get_optional()

    @message(mutates=False)
    def get_my_value_or_zero(self, ctx: CallContext) -> int:
        return self.storage.ledger.get_or_zero(ctx.caller)

    # ------------------------------ writes ------------------------------- #

    @message(mutates=True)
    def inc(self, by: int) -> None:
        self.storage.inc(by)

    @message(mutates=True)
    def inc_and_return_value(self, by: int) -> int:
        self.inc(by)
        return self.get()

    @message(mutates=True)
    def inc_and_emit_event(self, ctx: CallContext, by: int) -> None:
        self.inc(by)
        ctx.emit(IncResult(caller=ctx.caller, current_value=Ok(self.get())))

    @message(mutates=True)
    def inc_and_emit_event_and_fail(self, ctx: CallContext, by: int) -> int:
        """
        Increment, report an error event, then fail with a recoverable error.

        The increment and the event are already applied when Revert is raised;
        the host's error policy decides whether they are kept.
        """
        self.inc(by)
        ctx.emit(IncResult(caller=ctx.caller, current_value=Err(HANDMADE_ERROR)))
        raise Revert(HANDMADE_ERROR)

    @message(mutates=True)
    def divided_by_zero_and_fail(self, manual_zero: int) -> int:
        if manual_zero == 0:
            log.debug("division by zero requested")
            raise DivisionByZero(3)
        return self.storage.domain.div(3, manual_zero)

    @message(mutates=True)
    def incr_my_value(self, ctx: CallContext, by: int) -> None:
        self.storage.ledger.increment(ctx.caller, by)


__all__ = ["Incrementer", "HANDMADE_ERROR"]
