"""
Shared pytest fixtures for the incrementer tests:
- Clean INCREMENTER_* environment and a fresh config cache per test
- Host factory with explicit config overrides
- A couple of distinct caller identities
"""
from __future__ import annotations

import os
from typing import Callable

import pytest

from incrementer.config import IncrementerConfig, load_config
from incrementer.runtime.host import Host

ALICE = b"\xa1" * 32
BOB = b"\xb0" * 32


@pytest.fixture(autouse=True)
def _clean_config(monkeypatch: pytest.MonkeyPatch):
    for key in list(os.environ):
        if key.startswith(("INCREMENTER_", "INCR_")):
            monkeypatch.delenv(key, raising=False)
    load_config.cache_clear()
    yield
    load_config.cache_clear()


@pytest.fixture
def make_config() -> Callable[..., IncrementerConfig]:
    def _make(**overrides) -> IncrementerConfig:
        return load_config().with_overrides(**overrides)

    return _make


@pytest.fixture
def make_host(make_config) -> Callable[..., Host]:
    def _make(init: int = 0, **overrides) -> Host:
        host = Host(make_config(**overrides))
        host.deploy("new", init)
        return host

    return _make


@pytest.fixture
def alice() -> bytes:
    return ALICE


@pytest.fixture
def bob() -> bytes:
    return BOB
