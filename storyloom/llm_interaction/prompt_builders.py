from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

from ..answers import Answer
from .adapter import Message
from .prompt_texts import DEFAULT_STYLE, QUESTIONS_PROMPT, StyleGuide


# -------------------------
# Shared Prompt State
# -------------------------

@dataclass(frozen=True)
class PromptState:
    """Everything a stage needs to build its messages, already normalized.
    answers holds only usable (non-blank) entries, max_words is clamped."""
    answers: Sequence[Answer] = ()
    tone: str = ""
    max_words: int = 650
    style: StyleGuide = field(default=DEFAULT_STYLE)


# -------------------------
# Helpers
# -------------------------

def _format_numbered_answers(answers: Sequence[Answer]) -> str:
    return "\n".join(f"{i}. {a.answer}" for i, a in enumerate(answers, start=1))


def _format_transcript(answers: Sequence[Answer]) -> str:
    lines: List[str] = []
    for i, item in enumerate(answers, start=1):
        if item.question:
            lines.append(f"Q{i}: {item.question.strip()}")
        lines.append(f"A{i}: {item.answer.strip()}")
    return "\n".join(lines)


# -------------------------
# Prompt Builders
# -------------------------

def build_questions_messages(state: PromptState) -> List[Message]:
    return [{"role": "user", "content": QUESTIONS_PROMPT}]


def build_followup_messages(state: PromptState) -> List[Message]:
    user = "\n".join(
        [
            "Conversation so far:",
            _format_transcript(state.answers) or "No answers yet.",
            "",
            "Task:",
            "Ask the single next question that would pull out one more concrete detail.",
            f"Do not use these phrases: {state.style.banned_text()}.",
            "Return only the question on one line.",
        ]
    )
    return [
        {"role": "system", "content": state.style.followup_system()},
        {"role": "user", "content": user},
    ]


def build_essay_messages(state: PromptState) -> List[Message]:
    user = "\n".join(
        [
            "Answers:",
            _format_numbered_answers(state.answers),
            "",
            "Task:",
            "1) Extract 10 to 20 specific facts in your head (places, people, actions, sounds, textures, small numbers).",
            f"2) Write a {state.max_words}-word max essay that weaves those facts into a single scene or arc.",
            f"3) Tone: {state.tone}.",
            f"4) Do not use these phrases: {state.style.banned_text()}.",
            "5) Use first person, natural rhythm, short and medium sentences.",
            "6) No list format, no headings, no bullets.",
            "7) Return only the essay text.",
        ]
    ).strip()
    return [
        {"role": "system", "content": state.style.coach_system()},
        {"role": "user", "content": user},
    ]


__all__ = [
    "PromptState",
    "build_questions_messages",
    "build_followup_messages",
    "build_essay_messages",
]
