"""
Product-voice text used by the essay stages.

Builders in prompt_builders.py interpolate these; nothing here is logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple


BANNED_PHRASES: Tuple[str, ...] = (
    "tapestry",
    "looking back",
    "taught me",
    "in the end",
    "ever since",
    "I learned that",
)

COACH_RULES: Tuple[str, ...] = (
    "You are a college essay coach.",
    "Write one cohesive essay only.",
    "Use concrete details directly from the student's answers.",
    "Avoid clichés, stock morals, and template phrasing.",
    "No em dashes. First person. Mix short and medium sentences.",
    "End with a quiet, earned beat. No slogans.",
)

QUESTIONS_PROMPT = (
    "Ask three warm, specific follow-up questions that help personalize a college essay. "
    "No em dashes. No multi-part questions. Put each question on its own line. "
    "Aim at concrete detail like place, time, tiny actions, people, sounds, or objects."
)

FOLLOWUP_RULES: Tuple[str, ...] = (
    "You are a college essay coach interviewing a student.",
    "Ask exactly one follow-up question.",
    "One part only. One line only. No em dashes.",
    "Reach for a concrete or sensory detail the answers have not covered yet:"
    " a place, a time, a small action, a person, a sound, an object.",
    "Return only the question.",
)

DEFAULT_FOLLOWUP_QUESTION = "What is one small moment from that day you can still see clearly?"

OPENING_POOL: Tuple[str, ...] = (
    "Where were you the last time you lost track of time, and what were your hands doing?",
    "Who is someone outside your family whose voice you could pick out of a crowd, and why?",
    "What is an object in your room that would make no sense to a stranger?",
)


@dataclass(frozen=True)
class StyleGuide:
    """Denylist and rule lines shared by every generation."""
    banned_phrases: Tuple[str, ...] = BANNED_PHRASES
    coach_rules: Tuple[str, ...] = COACH_RULES
    followup_rules: Tuple[str, ...] = FOLLOWUP_RULES

    @classmethod
    def with_banned(cls, phrases: Optional[Sequence[str]]) -> "StyleGuide":
        if not phrases:
            return cls()
        return cls(banned_phrases=tuple(phrases))

    def banned_text(self) -> str:
        return ", ".join(self.banned_phrases)

    def coach_system(self) -> str:
        return " ".join(self.coach_rules)

    def followup_system(self) -> str:
        return " ".join(self.followup_rules)


DEFAULT_STYLE = StyleGuide()


__all__ = [
    "BANNED_PHRASES",
    "COACH_RULES",
    "QUESTIONS_PROMPT",
    "FOLLOWUP_RULES",
    "DEFAULT_FOLLOWUP_QUESTION",
    "OPENING_POOL",
    "StyleGuide",
    "DEFAULT_STYLE",
]
