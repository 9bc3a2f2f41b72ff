from __future__ import annotations

from typing import List

import streamlit as st

from storyloom.errors import StoryloomError
from storyloom.pipeline import StageContext, StageRequest, run_stage
from storyloom.settings import DEFAULT_MAX_WORDS, DEFAULT_TONE, MAX_WORDS, MIN_WORDS, StoryloomSettings


ANSWER_PLACEHOLDER = "Type your answer here. Be concrete. Add small details like sounds, colors, names."


def _reset() -> None:
    st.session_state.phase = "idle"
    st.session_state.questions = []
    st.session_state.answers = ["", "", ""]
    st.session_state.draft = ""
    st.session_state.error = ""


def _context() -> StageContext:
    # rebuilt per run so environment changes are picked up
    return StageContext.from_settings(StoryloomSettings.from_env())


def _get_questions() -> None:
    st.session_state.error = ""
    st.session_state.draft = ""
    try:
        result = run_stage(StageRequest(stage="start"), _context())
    except StoryloomError as exc:
        st.session_state.error = exc.message
        st.session_state.phase = "error"
        return
    if not result.questions:
        st.session_state.error = "No questions came back. Try again."
        st.session_state.phase = "error"
        return
    st.session_state.questions = list(result.questions)
    st.session_state.answers = ["" for _ in result.questions]
    st.session_state.phase = "answering"


def _get_essay(tone: str, max_words: int) -> None:
    st.session_state.error = ""
    questions: List[str] = st.session_state.questions
    answers = [
        {"q": questions[i] if i < len(questions) else f"Q{i + 1}", "a": a}
        for i, a in enumerate(st.session_state.answers)
    ]
    try:
        result = run_stage(
            StageRequest(stage="draft", answers=tuple(answers), tone=tone, max_words=max_words),
            _context(),
        )
    except StoryloomError as exc:
        st.session_state.error = exc.message
        st.session_state.phase = "error"
        return
    st.session_state.draft = result.essay
    st.session_state.phase = "done"


def main() -> None:
    st.set_page_config(page_title="Storyloom", layout="centered")
    st.title("Storyloom")
    st.caption("Answer a few focused questions. Get a human sounding Common App style draft.")

    if "phase" not in st.session_state:
        _reset()

    with st.sidebar:
        st.header("Draft")
        tone = st.text_input("Tone", value=DEFAULT_TONE)
        max_words = st.slider("Max words", min_value=MIN_WORDS, max_value=MAX_WORDS, value=DEFAULT_MAX_WORDS)

    if st.session_state.error:
        st.error(f"Error: {st.session_state.error}")

    phase = st.session_state.phase

    if phase in ("idle", "error"):
        if st.button("Start"):
            with st.spinner("Getting questions..."):
                _get_questions()
            st.rerun()

    if phase == "answering":
        st.subheader("Your questions")
        for i, question in enumerate(st.session_state.questions):
            st.session_state.answers[i] = st.text_area(
                question,
                value=st.session_state.answers[i],
                placeholder=ANSWER_PLACEHOLDER,
                key=f"answer_{i}",
            )
        filled = any(a.strip() for a in st.session_state.answers)
        col_generate, col_reset = st.columns(2)
        if col_generate.button("Generate essay", disabled=not filled):
            with st.spinner("Drafting..."):
                _get_essay(tone, max_words)
            st.rerun()
        if col_reset.button("Reset"):
            _reset()
            st.rerun()

    if phase == "done":
        st.subheader("Your draft")
        # st.code carries a copy-to-clipboard button
        st.code(st.session_state.draft, language=None, wrap_lines=True)
        st.download_button("Download .txt", st.session_state.draft, file_name="essay.txt")
        if st.button("Start over"):
            _reset()
            st.rerun()


if __name__ == "__main__":
    main()
