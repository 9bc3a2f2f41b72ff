from .step import (
    LLMStep,
    parse_questions,
    parse_followup,
    parse_essay,
)

from .prompt_builders import (
    build_questions_messages,
    build_followup_messages,
    build_essay_messages,
)

from .prompt_texts import DEFAULT_FOLLOWUP_QUESTION


def build_steps():

    return {
        "questions": LLMStep(
            name="questions",
            builder=build_questions_messages,
            parser=parse_questions,
            fallback=[],
        ),

        "followup": LLMStep(
            name="followup",
            builder=build_followup_messages,
            parser=parse_followup,
            fallback=DEFAULT_FOLLOWUP_QUESTION,
            always_soft=True,
        ),

        "essay": LLMStep(
            name="essay",
            builder=build_essay_messages,
            parser=parse_essay,
            fallback="",
        ),
    }
