from __future__ import annotations

import argparse
import logging
from typing import Callable, List, Optional

from .errors import StoryloomError
from .pipeline import StageContext, StageRequest, run_stage
from .settings import DEFAULT_MAX_WORDS, DEFAULT_TONE, StoryloomSettings


def _ask(prompt: str, read: Callable[[str], str]) -> Optional[str]:
    try:
        return read(prompt).strip()
    except (EOFError, KeyboardInterrupt):
        return None


def run_session(
    context: StageContext,
    *,
    tone: str = DEFAULT_TONE,
    max_words: int = DEFAULT_MAX_WORDS,
    followups: int = 0,
    read: Callable[[str], str] = input,
    write: Callable[[str], None] = print,
) -> Optional[str]:
    """
    Terminal walk-through: start -> answer -> optional follow-ups -> draft.
    Session state lives here, in the caller, and is replayed on every stage.
    Returns the essay, or None if the user quit.
    """
    opening = run_stage(StageRequest(stage="start"), context)
    questions: List[str] = list(opening.questions)
    if not questions:
        write("No questions came back. Try again.")
        return None

    answers: List[dict] = []

    def collect(question: str) -> bool:
        write(f"\n{question}")
        reply = _ask("> ", read)
        if reply is None:
            return False
        answers.append({"q": question, "a": reply})
        return True

    for question in questions:
        if not collect(question):
            write("\nExiting.")
            return None

    for _ in range(max(0, followups)):
        followup = run_stage(StageRequest(stage="followup", answers=tuple(answers)), context)
        if not collect(followup.question):
            write("\nExiting.")
            return None

    write("\nDrafting...")
    draft = run_stage(
        StageRequest(stage="draft", answers=tuple(answers), tone=tone, max_words=max_words),
        context,
    )
    write(f"\n{draft.essay}\n")
    return draft.essay


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="storyloom", description="Essay drafting assistant.")
    parser.add_argument("--verbose", action="store_true", help="Enable adapter debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    session = sub.add_parser("session", help="Answer questions in the terminal and get a draft")
    session.add_argument("--tone", default=DEFAULT_TONE)
    session.add_argument("--max-words", type=int, default=DEFAULT_MAX_WORDS)
    session.add_argument("--followups", type=int, default=0, help="Extra follow-up rounds before drafting")

    args = parser.parse_args(argv)

    try:
        settings = StoryloomSettings.from_env()
    except StoryloomError as exc:
        parser.error(exc.message)

    logging.basicConfig(level=logging.DEBUG if args.verbose else settings.log_level)

    if args.command == "serve":
        import uvicorn

        uvicorn.run("storyloom.server:app", host=args.host, port=args.port, log_level=settings.log_level.lower())
        return 0

    context = StageContext.from_settings(settings, verbose=args.verbose)
    try:
        run_session(context, tone=args.tone, max_words=args.max_words, followups=args.followups)
    except StoryloomError as exc:
        logging.error("%s: %s", exc.kind, exc.message)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
