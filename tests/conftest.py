"""Shared fixtures for the rereadme test suite.

Nothing here touches the network or spawns real subprocesses: the
completion service is replaced by ``StubClient`` and the subprocess
wrappers are injected or patched per test.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

# Keep litellm's import offline: its remote model-cost-map fetch retries in a
# background thread that can deadlock against the main-thread import.
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

from rereadme.completion import CompletionResult
from rereadme.config import Settings

_ENV_VARS = (
    "OPENAI_API_KEY",
    "DEBUG_MODE",
    "REREADME_MODEL",
    "REREADME_TIMEOUT",
    "REREADME_PROMPTS_DIR",
    "REREADME_TEMPLATE",
    "GITINGEST_SIZE_LIMIT",
    "LOG_LEVEL",
    "LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep the developer's shell environment out of the tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class StubClient:
    """Deterministic stand-in for CompletionClient.

    Each queued item is either a CompletionResult to return or an
    exception to raise. Every call is recorded.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: list[dict] = []

    def exchange(self, system_instruction: str, user_payload: str,
                 continuation_token: Optional[str] = None) -> CompletionResult:
        self.calls.append({
            "system_instruction": system_instruction,
            "user_payload": user_payload,
            "continuation_token": continuation_token,
        })
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class FakeClock:
    """Advances one second per call so backup names never collide."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2025, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now += timedelta(seconds=1)
        return current


@pytest.fixture
def settings():
    return Settings(openai_api_key="sk-test-key", debug_mode=False)


@pytest.fixture
def fake_clock():
    return FakeClock()
