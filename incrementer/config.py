"""
incrementer.config — host policy, integer width and event caps.

This module centralizes configuration for the contract core and its in-process
host. It has NO third-party deps and is safe to import very early.

Configuration precedence:
  1) Environment variables (INCREMENTER_* / legacy INCR_*)
  2) Hardcoded safe defaults below

Key env vars (case-insensitive where boolean):
  - INCREMENTER_ERROR_POLICY         (str)    default: commit   (commit|rollback)
  - INCREMENTER_INT_BITS             (int)    default: 32
  - INCREMENTER_MAX_EVENTS_PER_CALL  (int)    default: 1024
  - INCREMENTER_STRICT               (bool)   default: false
  - INCREMENTER_LOG_LEVEL            (str)    default: WARNING

`error_policy` decides what the host does with the writes and events of a call
that ends in a recoverable Revert. Traps are always discarded regardless.

Usage:
    from incrementer.config import load_config
    CFG = load_config()
    if CFG.error_policy == POLICY_ROLLBACK: ...
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Any, Dict, Optional

POLICY_COMMIT = "commit"
POLICY_ROLLBACK = "rollback"
ERROR_POLICIES = (POLICY_COMMIT, POLICY_ROLLBACK)

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


# ----------------------------- helpers ---------------------------------------


def _env_raw(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None:
        # Secondary prefix (legacy)
        raw = os.getenv(name.replace("INCREMENTER_", "INCR_", 1))
    return raw


def _env_bool(name: str, default: bool) -> bool:
    raw = _env_raw(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "t", "yes", "y", "on")


def _env_int(name: str, default: int, *, min_v: int, max_v: int) -> int:
    raw = _env_raw(name)
    if raw is None:
        return default
    try:
        v = int(raw, 0)
    except ValueError:
        return default
    if v < min_v:
        return min_v
    if v > max_v:
        return max_v
    return v


def _env_choice(name: str, default: str, choices: tuple) -> str:
    raw = _env_raw(name)
    if raw is None:
        return default
    val = raw.strip()
    for choice in choices:
        if val.lower() == choice.lower():
            return choice
    return default


# ------------------------------- config --------------------------------------


@dataclass(frozen=True)
class IncrementerConfig:
    # Host policy for calls ending in Revert
    error_policy: str

    # Signed integer width of the counter and ledger balances
    int_bits: int
    # When True, overflow traps instead of wrapping
    strict_mode: bool

    max_events_per_call: int
    log_level: str

    def __post_init__(self) -> None:
        if self.error_policy not in ERROR_POLICIES:
            raise ValueError(
                f"error_policy must be one of {ERROR_POLICIES}, got {self.error_policy!r}"
            )
        if not 8 <= self.int_bits <= 256:
            raise ValueError(f"int_bits must be within [8, 256], got {self.int_bits}")
        if self.max_events_per_call < 1:
            raise ValueError("max_events_per_call must be >= 1")

    @property
    def int_min(self) -> int:
        return -(1 << (self.int_bits - 1))

    @property
    def int_max(self) -> int:
        return (1 << (self.int_bits - 1)) - 1

    @property
    def log_level_no(self) -> int:
        return getattr(logging, self.log_level, logging.WARNING)

    def with_overrides(self, **changes: Any) -> "IncrementerConfig":
        """Return a copy with the given fields replaced (None values are ignored)."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def as_dict(self) -> Dict[str, Any]:
        return {
            "error_policy": self.error_policy,
            "int_bits": self.int_bits,
            "strict_mode": self.strict_mode,
            "max_events_per_call": self.max_events_per_call,
            "log_level": self.log_level,
        }


@lru_cache(maxsize=1)
def load_config() -> IncrementerConfig:
    """
    Build and cache an IncrementerConfig from environment + safe defaults.
    """
    return IncrementerConfig(
        error_policy=_env_choice("INCREMENTER_ERROR_POLICY", POLICY_COMMIT, ERROR_POLICIES),
        int_bits=_env_int("INCREMENTER_INT_BITS", 32, min_v=8, max_v=256),
        strict_mode=_env_bool("INCREMENTER_STRICT", False),
        max_events_per_call=_env_int("INCREMENTER_MAX_EVENTS_PER_CALL", 1024, min_v=1, max_v=10_000),
        log_level=_env_choice("INCREMENTER_LOG_LEVEL", "WARNING", _LOG_LEVELS).upper(),
    )


__all__ = [
    "IncrementerConfig",
    "load_config",
    "POLICY_COMMIT",
    "POLICY_ROLLBACK",
    "ERROR_POLICIES",
]
