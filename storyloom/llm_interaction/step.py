from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from ..errors import EmptyResultError
from ..settings import EmptyPolicy
from .adapter import LLMAdapter, Message
from .prompt_builders import PromptState

logger = logging.getLogger(__name__)

MAX_QUESTIONS = 3


# =========================
# Core Step Object
# =========================

@dataclass
class LLMStep:
    """
    Defines a single LLM operation: build messages, call, shape the text.

    ``fallback`` is what a lenient policy returns for empty output.
    ``always_soft`` steps degrade to the fallback under every policy.
    """
    name: str
    builder: Callable[[PromptState], List[Message]]
    parser: Callable[[str], Any]
    fallback: Any = None
    always_soft: bool = False

    def messages(self, state: PromptState) -> List[Message]:
        return self.builder(state)

    def run(
        self,
        adapter: LLMAdapter,
        state: PromptState,
        *,
        policy: EmptyPolicy = EmptyPolicy.LENIENT,
    ) -> Any:
        raw = adapter.request_text(self.name, self.messages(state))
        parsed = self.parser(raw)
        if parsed:
            return parsed

        if policy is EmptyPolicy.STRICT and not self.always_soft:
            logger.error("[%s] empty result under strict policy", self.name.upper())
            raise EmptyResultError(self.name)

        logger.warning("[%s] empty result, using fallback", self.name.upper())
        return _copy(self.fallback)


def _copy(value: Any) -> Any:
    return list(value) if isinstance(value, list) else value


# =========================
# Step-Specific Parsers
# =========================

def parse_questions(text: Optional[str], limit: int = MAX_QUESTIONS) -> List[str]:
    """One question per non-blank line, trimmed, at most ``limit``."""
    lines = [line.strip() for line in (text or "").splitlines()]
    return [line for line in lines if line][:limit]


def parse_followup(text: Optional[str]) -> str:
    questions = parse_questions(text, limit=1)
    return questions[0] if questions else ""


def parse_essay(text: Optional[str]) -> str:
    return (text or "").strip()


__all__ = [
    "LLMStep",
    "MAX_QUESTIONS",
    "parse_questions",
    "parse_followup",
    "parse_essay",
]
