from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Union

from .settings import DEFAULT_MAX_WORDS, DEFAULT_TONE, MAX_WORDS, MIN_WORDS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Answer:
    """One question/answer pair as the rest of the pipeline sees it."""
    answer: str
    question: Optional[str] = None

    @property
    def is_blank(self) -> bool:
        return not self.answer.strip()


RawAnswer = Union[str, Mapping[str, Any], Answer]


# -------------------------
# Answers
# -------------------------

def _pick(entry: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in entry and entry[key] is not None:
            return entry[key]
    return None


def normalize_answer(entry: Optional[RawAnswer]) -> Answer:
    if isinstance(entry, Answer):
        return entry
    if entry is None:
        return Answer(answer="")
    if isinstance(entry, str):
        return Answer(answer=entry)
    if isinstance(entry, Mapping):
        answer = _pick(entry, "a", "answer")
        question = _pick(entry, "q", "question")
        return Answer(
            answer="" if answer is None else str(answer),
            question=None if question is None else str(question),
        )
    # numbers and other scalars sent by loose clients
    return Answer(answer=str(entry))


def normalize_answers(entries: Optional[Iterable[RawAnswer]]) -> List[Answer]:
    """Coerce bare strings and q/a objects into ``Answer`` records, order kept."""
    return [normalize_answer(entry) for entry in (entries or [])]


def usable_answers(answers: Iterable[Answer]) -> List[Answer]:
    """Drop empty and whitespace-only answers."""
    return [a for a in answers if not a.is_blank]


# -------------------------
# Essay knobs
# -------------------------

def clamp_max_words(value: Any) -> int:
    """
    Resolve the requested word ceiling into [MIN_WORDS, MAX_WORDS].
    Missing, zero, or unreadable values fall back to DEFAULT_MAX_WORDS.
    """
    if isinstance(value, bool):
        value = None
    try:
        number = float(value) if value not in (None, "") else 0.0
    except OverflowError:
        number = math.inf if value > 0 else -math.inf
    except (TypeError, ValueError):
        logger.debug("Unreadable maxWords %r, using default", value)
        number = 0.0
    if math.isnan(number) or number == 0:
        number = DEFAULT_MAX_WORDS
    if math.isinf(number):
        number = MAX_WORDS if number > 0 else MIN_WORDS
    return min(max(int(number), MIN_WORDS), MAX_WORDS)


def resolve_tone(tone: Optional[str]) -> str:
    cleaned = (tone or "").strip()
    return cleaned or DEFAULT_TONE


__all__ = [
    "Answer",
    "RawAnswer",
    "normalize_answer",
    "normalize_answers",
    "usable_answers",
    "clamp_max_words",
    "resolve_tone",
]
