from __future__ import annotations

import os

import pytest


@pytest.fixture(autouse=True)
def isolate_mnemo_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("MNEMO_") or name == "OPENAI_API_KEY":
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("MNEMO_LOG_TO_FILE", "off")
