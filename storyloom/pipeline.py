"""
Stage resolution for the essay workflow.

The caller holds the session (stage + answers) and replays it on every
call; ``run_stage`` is a stateless transition function:

    start     -> 1-3 opening questions
    followup  -> exactly one more question
    draft     -> the essay (``essay`` is accepted as an alias)
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

from .answers import RawAnswer, clamp_max_words, normalize_answers, resolve_tone, usable_answers
from .errors import ConfigurationError, UpstreamError, ValidationError
from .llm_interaction.adapter import LLMAdapter
from .llm_interaction.prompt_builders import PromptState
from .llm_interaction.prompt_texts import OPENING_POOL, StyleGuide
from .llm_interaction.registry import build_steps
from .llm_interaction.step import LLMStep
from .schemas import DraftResult, FollowupResult, QuestionsResult
from .settings import OpeningSource, StoryloomSettings

logger = logging.getLogger(__name__)

INVALID_STAGE_MESSAGE = "Missing or invalid 'stage'."

StageResult = Union[QuestionsResult, FollowupResult, DraftResult]


class Stage(str, Enum):
    START = "start"
    FOLLOWUP = "followup"
    DRAFT = "draft"


STAGE_NAMES: Dict[str, Stage] = {
    "start": Stage.START,
    "followup": Stage.FOLLOWUP,
    "draft": Stage.DRAFT,
    "essay": Stage.DRAFT,
}


def resolve_stage(value: Any) -> Stage:
    if not isinstance(value, str) or value not in STAGE_NAMES:
        raise ValidationError(INVALID_STAGE_MESSAGE)
    return STAGE_NAMES[value]


# -------------------------
# Inputs
# -------------------------

@dataclass(frozen=True)
class StageRequest:
    """One self-describing call. Nothing survives between requests."""
    stage: Any = None
    answers: Sequence[RawAnswer] = ()
    tone: Optional[str] = None
    max_words: Any = None


@dataclass(frozen=True)
class StageContext:
    """Collaborators for ``run_stage``; configuration only, no session data."""
    adapter: LLMAdapter
    settings: StoryloomSettings = field(default_factory=StoryloomSettings)
    steps: Mapping[str, LLMStep] = field(default_factory=build_steps)
    style: StyleGuide = field(default_factory=StyleGuide)
    choose_index: Callable[[int], int] = random.randrange

    @classmethod
    def from_settings(
        cls,
        settings: StoryloomSettings,
        *,
        adapter: Optional[LLMAdapter] = None,
        choose_index: Optional[Callable[[int], int]] = None,
        verbose: bool = False,
    ) -> "StageContext":
        return cls(
            adapter=adapter or LLMAdapter.from_settings(settings, verbose=verbose),
            settings=settings,
            style=StyleGuide.with_banned(settings.banned_phrases),
            choose_index=choose_index or random.randrange,
        )


# -------------------------
# Stage handlers
# -------------------------

def _pool_question(context: StageContext) -> QuestionsResult:
    index = context.choose_index(len(OPENING_POOL))
    question = OPENING_POOL[index]
    return QuestionsResult(questions=[question], question=question)


def _start(request: StageRequest, context: StageContext) -> QuestionsResult:
    if context.settings.opening_source is OpeningSource.POOL:
        return _pool_question(context)

    state = PromptState(style=context.style)
    try:
        questions = context.steps["questions"].run(
            context.adapter, state, policy=context.settings.empty_policy
        )
    except (ConfigurationError, UpstreamError) as exc:
        if not context.settings.pool_fallback:
            raise
        logger.warning("Opening questions unavailable (%s); serving pool question", exc.kind)
        return _pool_question(context)
    return QuestionsResult(questions=questions)


def _followup(request: StageRequest, context: StageContext) -> FollowupResult:
    state = PromptState(
        answers=usable_answers(normalize_answers(request.answers)),
        style=context.style,
    )
    question = context.steps["followup"].run(
        context.adapter, state, policy=context.settings.empty_policy
    )
    return FollowupResult(question=question)


def _draft(request: StageRequest, context: StageContext) -> DraftResult:
    state = PromptState(
        answers=usable_answers(normalize_answers(request.answers)),
        tone=resolve_tone(request.tone),
        max_words=clamp_max_words(request.max_words),
        style=context.style,
    )
    essay = context.steps["essay"].run(
        context.adapter, state, policy=context.settings.empty_policy
    )
    return DraftResult(essay=essay)


HANDLERS: Dict[Stage, Callable[[StageRequest, StageContext], StageResult]] = {
    Stage.START: _start,
    Stage.FOLLOWUP: _followup,
    Stage.DRAFT: _draft,
}


def validate_request(request: StageRequest) -> Stage:
    """Reject a malformed request before any collaborator is built."""
    stage = resolve_stage(request.stage)
    if stage is Stage.DRAFT and not usable_answers(normalize_answers(request.answers)):
        raise ValidationError(f"Provide answers for stage '{request.stage}'.")
    return stage


def run_stage(request: StageRequest, context: StageContext) -> StageResult:
    stage = validate_request(request)
    logger.debug("Running stage %s with %d answer(s)", stage.value, len(request.answers))
    return HANDLERS[stage](request, context)


__all__ = [
    "Stage",
    "StageRequest",
    "StageContext",
    "StageResult",
    "resolve_stage",
    "validate_request",
    "run_stage",
    "INVALID_STAGE_MESSAGE",
]
