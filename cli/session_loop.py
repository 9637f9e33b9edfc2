"""
Interactive assessment loop for the SRI assessment CLI.

Walks the flow step by step. Every committed change is persisted by the
platform services, so quitting at any prompt leaves resumable progress.
"""

import time
from typing import Callable, Optional

from assessment_platform.models import AssessmentState, Response
from assessment_platform.services import (
    COMMITTED,
    DATA_CHANGE_GATE,
    RESUME_GATE,
    complete_questionnaire,
    confirm_data_change,
    continue_progress,
    current_questions,
    discard_progress,
    gate_prompt,
    give_consent,
    go_back,
    request_gate_close,
    restart_after_data_change,
    submit_demographics,
    update_responses,
)
from assessment_platform.session_state_machine import (
    COMPLETED,
    CONSENT,
    DEMOGRAPHICS,
    HOME,
    QUESTIONNAIRE,
)

from .interface import (
    CONSENT_TEXT,
    ask_demographics,
    print_gate,
    print_header,
    print_question,
    print_results,
)

QUESTIONS_PER_PAGE = 5


class _Paused(Exception):
    """The user left the loop; progress stays on the device."""


def _read(prompt: str = "\n> ") -> str:
    try:
        return input(prompt).strip()
    except (EOFError, KeyboardInterrupt):
        raise _Paused() from None


def _resolve_gate(state: AssessmentState) -> None:
    prompt = gate_prompt(state)
    print_gate(prompt)
    while state.active_gate is not None:
        choice = _read().lower()
        if state.active_gate == RESUME_GATE:
            if choice in ("c", "continue"):
                outcome = continue_progress(state)
                if outcome == COMMITTED:
                    print(f"  ✓ Restored {state.response_count} answer(s)")
                elif state.active_gate == DATA_CHANGE_GATE:
                    print_gate(gate_prompt(state))
                continue
            if choice in ("d", "discard"):
                discard_progress(state)
                print("  ✓ Saved progress discarded")
                continue
        elif state.active_gate == DATA_CHANGE_GATE:
            if choice in ("c", "confirm"):
                confirm_data_change(state)
                print(f"  ✓ Kept {state.response_count} answer(s)")
                continue
            if choice in ("r", "restart"):
                restart_after_data_change(state)
                print("  ✓ Starting over")
                continue
        if choice in ("q", "quit", "close") and request_gate_close(state):
            continue
        print("  Please choose one of the options above.")


def _run_consent(state: AssessmentState) -> bool:
    print_header("CONSENT", state.step)
    print(CONSENT_TEXT)
    while True:
        choice = _read("\nDo you agree to take part? (y/n): ").lower()
        if choice in ("y", "yes"):
            give_consent(state, True)
            return True
        if choice in ("n", "no"):
            give_consent(state, False)
            return False
        print("  Please answer y or n.")


def _run_demographics(state: AssessmentState) -> bool:
    print_header("ABOUT YOU", state.step)
    print("  Press Enter to keep a current answer, or type 'b' to go back.")
    if _read("\nContinue? (Enter / b): ").lower() in ("b", "back"):
        return go_back(state) != HOME
    try:
        demographics = ask_demographics(state.demographics)
    except (EOFError, KeyboardInterrupt):
        raise _Paused() from None
    submit_demographics(state, demographics)
    return True


def _ask_page(questions: list, start: int, answers: dict[str, Response]) -> bool:
    """Ask one page of questions. Returns False when the user went back."""
    total = len(questions)
    for offset, question in enumerate(questions[start:start + QUESTIONS_PER_PAGE]):
        current = answers.get(question.id)
        print_question(question, start + offset + 1, total, current.value if current else None)
        while True:
            raw = _read("    > ").lower()
            if raw in ("b", "back"):
                return False
            if not raw and current is not None:
                break
            if raw.isdigit() and 1 <= int(raw) <= 7:
                answers[question.id] = Response(question_id=question.id, value=int(raw))
                break
            print("    Please enter a number from 1 to 7.")
    return True


def _run_questionnaire(state: AssessmentState) -> None:
    questions = current_questions(state)
    if not questions:
        print("\n  No questions apply to this profile.")
        go_back(state)
        return

    pages = -(-len(questions) // QUESTIONS_PER_PAGE)
    answers = {r.question_id: r for r in state.responses}
    page = min(state.resume_page, pages - 1)

    print_header("QUESTIONNAIRE", state.step)
    print("  Answer 1-7. Enter keeps the current answer, 'b' goes back.")
    while page < pages:
        if not _ask_page(questions, page * QUESTIONS_PER_PAGE, answers):
            if page == 0:
                go_back(state)
                return
            page -= 1
            continue
        ordered = [answers[q.id] for q in questions if q.id in answers]
        update_responses(state, ordered, current_page=page + 1)
        page += 1

    complete_questionnaire(state)


def run_interactive_assessment(
    state: AssessmentState,
    redirect_delay: float = 0.0,
    sleep: Callable[[float], None] = time.sleep,
) -> Optional[dict]:
    """Run the flow until results are shown or the user leaves.

    Returns the results dict, or None when paused or declined.
    """
    try:
        while True:
            if state.active_gate is not None:
                _resolve_gate(state)
                continue
            if state.step == CONSENT:
                if not _run_consent(state):
                    print("\nNo problem. Nothing was recorded.")
                    return None
            elif state.step == DEMOGRAPHICS:
                if not _run_demographics(state):
                    return None
            elif state.step == QUESTIONNAIRE:
                if state.last_error:
                    print(f"\n  ✗ {state.last_error}")
                    state.last_error = None
                _run_questionnaire(state)
            elif state.step == COMPLETED:
                print_header("PROCESSING", state.step)
                print("  Calculating your results...")
                if redirect_delay > 0:
                    sleep(redirect_delay)
                results = state.session.results or {}
                print_results(results)
                return results
            else:
                return None
    except _Paused:
        print("\n\nAssessment paused (progress saved on this device).")
        return None
