"""
Incrementer runtime package.

Host-facing building blocks for the contract: storage (counter, mirror,
ledger), the per-call context, the event sink with its canonical encoding, and
the in-process host that applies the commit/rollback policy.

Convenience re-exports live here so callers can do:

    from incrementer.runtime import StorageState, EventSink, CallContext

The host is not re-exported (it imports the contract, which imports this
package); use `from incrementer.runtime.host import Host`.
"""

from __future__ import annotations

from . import events_api as events
from . import storage as storage
from .context import DEFAULT_CALLER, CallContext
from .events_api import Err, EventSink, IncResult, Ok
from .storage import AccountLedger, IntDomain, StorageState

__all__ = [
    "events",
    "storage",
    "CallContext",
    "DEFAULT_CALLER",
    "EventSink",
    "IncResult",
    "Ok",
    "Err",
    "AccountLedger",
    "IntDomain",
    "StorageState",
]
