"""Platform-owned assessment flow service.

Drives one flow through consent, demographics, questionnaire, processing and
completed, committing every mutation to the session record and device store.
"""

import logging
import sqlite3
from dataclasses import replace
from typing import Callable, Optional

from assessment_platform.models import (
    AssessmentState,
    Demographics,
    GatePrompt,
    InvalidTransitionError,
    Response,
    utc_now,
)
from assessment_platform.question_sets import QuestionSetResolver, filter_responses
from assessment_platform.scales import Question
from assessment_platform.services.cleanup_service import cleanup_orphan_data
from assessment_platform.services.reconciliation_service import (
    check_saved_progress,
    gate_prompt,
    stage_demographics_change,
)
from assessment_platform.services.session_service import (
    clear_progress,
    create_assessment_state,
    persist_session,
    write_progress,
)
from assessment_platform.session_state_machine import (
    BACK,
    CONSENT,
    CONSENT_DECLINED,
    CONSENT_GIVEN,
    DEMOGRAPHICS,
    DEMOGRAPHICS_SUBMITTED,
    QUESTIONNAIRE,
    QUESTIONNAIRE_COMPLETED,
    SCORING_FAILED,
    SCORING_SUCCEEDED,
    apply_event,
    step_progress,
)

logger = logging.getLogger(__name__)

RESPONSES_UPDATED = "responses_updated"

SCORING_ERROR_MESSAGE = (
    "We could not calculate your results. Your answers are still saved; "
    "please try submitting again."
)


def start_assessment(
    assessment_type: Optional[str] = None,
    *,
    conn: Optional[sqlite3.Connection] = None,
    resolver: Optional[QuestionSetResolver] = None,
    scoring_fn: Optional[Callable[[list[Response], str], dict]] = None,
    session_id: Optional[str] = None,
) -> AssessmentState:
    """Create a flow and run the one-time saved-progress check."""
    state = create_assessment_state(
        assessment_type,
        conn=conn,
        resolver=resolver,
        scoring_fn=scoring_fn,
        session_id=session_id,
    )
    logger.info("Started %s assessment %s", state.assessment_type, state.session_id)
    check_saved_progress(state)
    return state


def add_step_listener(state: AssessmentState, listener: Callable[[str, str], None]) -> None:
    """Register ``listener(old_step, new_step)`` for step changes."""
    state.step_listeners.append(listener)


def _require_no_gate(state: AssessmentState, event: str) -> None:
    if state.active_gate is not None:
        raise InvalidTransitionError(
            f"Cannot apply '{event}' while the {state.active_gate} prompt is open",
            step=state.step,
            event=event,
        )


def give_consent(state: AssessmentState, consented: bool = True) -> str:
    """Accept or decline consent. Declining leaves for the home view."""
    _require_no_gate(state, CONSENT_GIVEN if consented else CONSENT_DECLINED)
    return apply_event(state, CONSENT_GIVEN if consented else CONSENT_DECLINED)


def submit_demographics(state: AssessmentState,
                        demographics: Demographics) -> Optional[GatePrompt]:
    """Commit demographics, or open the data-change gate if answers would drop.

    Returns the gate prompt when confirmation is needed, else None.
    """
    _require_no_gate(state, DEMOGRAPHICS_SUBMITTED)
    if state.step != DEMOGRAPHICS:
        raise InvalidTransitionError(
            f"Cannot submit demographics while in step '{state.step}'",
            step=state.step,
            event=DEMOGRAPHICS_SUBMITTED,
        )

    if stage_demographics_change(state, demographics) is not None:
        return gate_prompt(state)

    state.demographics = demographics
    state.session = replace(state.session, demographics=demographics)
    persist_session(state)
    cleanup_orphan_data(state, state.responses, demographics)
    apply_event(state, DEMOGRAPHICS_SUBMITTED)
    return None


def update_responses(state: AssessmentState, responses: list[Response],
                     current_page: int = 0) -> list[Response]:
    """Commit the questionnaire's full response list.

    Answers outside the current question set are dropped. Returns what was
    committed.
    """
    _require_no_gate(state, RESPONSES_UPDATED)
    if state.step != QUESTIONNAIRE:
        raise InvalidTransitionError(
            f"Cannot update responses while in step '{state.step}'",
            step=state.step,
            event=RESPONSES_UPDATED,
        )
    valid_ids = state.resolver.valid_question_ids(state.demographics, state.assessment_type)
    kept = filter_responses(responses, valid_ids)
    if len(kept) != len(responses):
        dropped = [r.question_id for r in responses if r.question_id not in valid_ids]
        logger.warning(
            "Dropped %d response(s) outside the current question set: %s",
            len(dropped), ", ".join(dropped),
        )

    state.responses = kept
    state.session = replace(state.session, responses=list(kept))
    persist_session(state)
    if kept:
        write_progress(state, state.demographics, kept, current_page)
    else:
        clear_progress(state)
    return kept


def complete_questionnaire(state: AssessmentState) -> Optional[dict]:
    """Score the committed answers.

    On success the session is completed and the progress record erased. On
    failure ``state.last_error`` is set and the flow returns to the
    questionnaire with every answer kept.
    """
    if state.demographics is None:
        raise InvalidTransitionError(
            "Cannot complete the questionnaire before demographics are committed",
            step=state.step,
            event=QUESTIONNAIRE_COMPLETED,
        )
    _require_no_gate(state, QUESTIONNAIRE_COMPLETED)
    apply_event(state, QUESTIONNAIRE_COMPLETED)

    valid_ids = state.resolver.valid_question_ids(state.demographics, state.assessment_type)
    responses = filter_responses(state.responses, valid_ids)
    if len(responses) != len(state.responses):
        logger.warning(
            "Excluding %d stale response(s) from scoring",
            len(state.responses) - len(responses),
        )

    try:
        results = state.scoring_fn(list(responses), state.session_id)
    except Exception as e:
        logger.error("Scoring failed for session %s: %s", state.session_id, e)
        state.last_error = SCORING_ERROR_MESSAGE
        apply_event(state, SCORING_FAILED)
        return None

    state.last_error = None
    state.session = replace(
        state.session,
        responses=list(responses),
        results=results,
        end_time=utc_now(),
        completed=True,
    )
    persist_session(state)
    clear_progress(state)
    apply_event(state, SCORING_SUCCEEDED)
    logger.info("Completed assessment %s", state.session_id)
    return results


def go_back(state: AssessmentState) -> str:
    """Step back one step; from consent or completed this leaves for home."""
    _require_no_gate(state, BACK)
    return apply_event(state, BACK)


def current_questions(state: AssessmentState) -> list[Question]:
    """Questions for the committed demographics, in presentation order."""
    return state.resolver.ordered_questions(state.demographics, state.assessment_type)


def describe_state(state: AssessmentState) -> dict:
    """Plain-dict snapshot of the flow for presentation layers."""
    prompt = gate_prompt(state)
    return {
        "session_id": state.session_id,
        "assessment_type": state.assessment_type,
        "step": state.step,
        "progress": step_progress(state.step),
        "demographics": state.demographics.to_dict() if state.demographics else None,
        "response_count": state.response_count,
        "responses": [r.to_dict() for r in state.responses],
        "is_minor": state.is_minor,
        "gate": prompt.to_dict() if prompt else None,
        "resume_token": state.resume_token,
        "resume_page": state.resume_page,
        "last_error": state.last_error,
        "completed": state.session.completed,
        "results": state.session.results,
        "is_first_step": state.step == CONSENT,
    }
