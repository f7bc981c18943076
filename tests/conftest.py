from __future__ import annotations

import os

import pytest


@pytest.fixture(autouse=True)
def isolate_symbiosis_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("SYMBIOSIS_"):
            monkeypatch.delenv(name, raising=False)
