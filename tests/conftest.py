# tests/conftest.py
# ============================================================
# Shared pytest fixtures for all tests under tests/:
#   - stub_client: records every completion call, replies from a script
#   - make_context: StageContext wired to the stub (settings overridable)
#   - api: FastAPI TestClient whose requests run against the stub
#   - clean_env: strips Storyloom / vendor variables from the environment
# ============================================================

from __future__ import annotations

import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Sequence

import pytest


# ---------- Ensure project root is importable ----------
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storyloom.llm_interaction.adapter import LLMAdapter, SamplingParams  # noqa: E402
from storyloom.pipeline import StageContext  # noqa: E402
from storyloom.settings import StoryloomSettings  # noqa: E402


ENV_KEYS = (
    "OPENAI_API_KEY",
    "OLLAMA_API_KEY",
    "OLLAMA_HOST",
    "STORYLOOM_PROVIDER",
    "STORYLOOM_MODEL",
    "STORYLOOM_QUESTION_TEMPERATURE",
    "STORYLOOM_FOLLOWUP_TEMPERATURE",
    "STORYLOOM_ESSAY_TEMPERATURE",
    "STORYLOOM_TIMEOUT",
    "STORYLOOM_EMPTY_POLICY",
    "STORYLOOM_OPENING_SOURCE",
    "STORYLOOM_POOL_FALLBACK",
    "STORYLOOM_BANNED_PHRASES",
    "STORYLOOM_LOG_LEVEL",
)


class StubCompletionClient:
    """
    Stands in for a vendor client.
    replies: each call pops the next entry; an Exception entry is raised.
    The last entry repeats once the script runs out.
    """

    def __init__(self, replies: Sequence[Any] = ("",)) -> None:
        self.replies: List[Any] = list(replies) or [""]
        self.calls: List[Dict[str, Any]] = []

    def complete(self, messages, params: SamplingParams) -> str:
        self.calls.append({"messages": [dict(m) for m in messages], "params": params})
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, BaseException):
            raise reply
        return reply

    def script(self, *replies: Any) -> None:
        self.replies = list(replies) or [""]


@pytest.fixture
def stub_client() -> StubCompletionClient:
    return StubCompletionClient()


@pytest.fixture
def base_settings() -> StoryloomSettings:
    return StoryloomSettings(api_key="test-key")


@pytest.fixture
def make_context(stub_client: StubCompletionClient, base_settings: StoryloomSettings):
    """Build a StageContext around the stub; keyword args override settings fields."""

    def _make(choose_index=None, **overrides) -> StageContext:
        settings = replace(base_settings, **overrides)
        adapter = LLMAdapter(
            lambda: stub_client,
            model=settings.model,
            default_options={"temperature": 0.7},
            stage_options=settings.stage_options(),
        )
        return StageContext.from_settings(settings, adapter=adapter, choose_index=choose_index)

    return _make


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


@pytest.fixture
def api(make_context):
    from fastapi.testclient import TestClient
    from storyloom.server import create_app

    return TestClient(create_app(context_factory=make_context))
