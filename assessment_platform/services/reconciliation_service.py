"""Reconcile saved or staged progress against the question set.

Owns the two confirmation gates:

* ``resume``: a progress record was found on the device. The user continues
  or discards it.
* ``data_change``: committing a candidate would drop answers that are no
  longer part of the question set. The user confirms the loss or restarts.

A gate only closes through one of those explicit answers while something is
pending. Implicit dismissals (escape, clicking outside) are refused.
"""

import logging
import sqlite3
import time
from dataclasses import replace
from typing import Optional

from assessment_platform.models import (
    AssessmentState,
    DataChangeInfo,
    Demographics,
    GatePrompt,
    InvalidTransitionError,
    PendingProgress,
    Response,
    utc_now,
)
from assessment_platform.question_sets import filter_responses
from assessment_platform.services.cleanup_service import cleanup_orphan_data
from assessment_platform.services.session_service import clear_progress, persist_session
from assessment_platform.session_state_machine import (
    CONSENT,
    DEMOGRAPHICS,
    QUESTIONNAIRE,
    set_step,
)

logger = logging.getLogger(__name__)

RESUME_GATE = "resume"
DATA_CHANGE_GATE = "data_change"

# Outcomes of continue_progress
COMMITTED = "committed"
DATA_CHANGE_REQUIRED = "data_change_required"
NOTHING_PENDING = "nothing_pending"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _open_gate(state: AssessmentState, kind: str) -> None:
    state.active_gate = kind
    state.confirmation.arm()


def _close_gates(state: AssessmentState) -> None:
    state.pending = None
    state.active_gate = None
    state.data_change_info = None
    state.question_cache = None
    state.confirmation.consume()


def _valid_ids(state: AssessmentState,
              demographics: Optional[Demographics]) -> frozenset[str]:
    # one memo spans a reconciliation pass, from opening a gate to closing it
    if state.question_cache is None:
        state.question_cache = state.resolver.cache(state.assessment_type)
    return state.question_cache.valid_question_ids(demographics)


def _require_gate(state: AssessmentState, kind: str, event: str) -> None:
    if state.active_gate != kind:
        raise InvalidTransitionError(
            f"Cannot apply '{event}': the {kind.replace('_', '-')} prompt is not open",
            step=state.step,
            event=event,
        )


def gate_prompt(state: AssessmentState) -> Optional[GatePrompt]:
    """Describe the open gate for an external dialog, or None."""
    if state.active_gate == RESUME_GATE:
        count = len(state.pending.responses) if state.pending else 0
        return GatePrompt(
            kind=RESUME_GATE,
            title="Continue where you left off?",
            message=(
                f"You have an unfinished assessment with {count} "
                f"answer{'s' if count != 1 else ''} saved on this device."
            ),
            response_count=count,
        )
    if state.active_gate == DATA_CHANGE_GATE:
        info = state.data_change_info or DataChangeInfo(0, 0)
        return GatePrompt(
            kind=DATA_CHANGE_GATE,
            title="Some answers no longer apply",
            message=(
                f"{info.discarded_count} of {info.total_count} saved answers belong to "
                "questions that are not part of your assessment any more and will be removed."
            ),
            discarded_count=info.discarded_count,
            total_count=info.total_count,
        )
    return None


def check_saved_progress(state: AssessmentState) -> Optional[GatePrompt]:
    """Look for saved progress once per flow and open the resume gate if found.

    Missing, malformed, empty, or other-type records are ignored without
    telling the user.
    """
    if state.has_checked_progress:
        return None
    state.has_checked_progress = True
    if state.progress_store is None:
        return None

    try:
        candidate = state.progress_store.load(state.assessment_type)
    except sqlite3.Error as e:
        logger.error("Failed to read saved progress: %s", e)
        return None
    if candidate is None:
        return None

    logger.info(
        "Found saved progress with %d response(s) for session %s",
        len(candidate.responses), state.session_id,
    )
    state.pending = candidate
    _open_gate(state, RESUME_GATE)
    return gate_prompt(state)


def _commit_candidate(state: AssessmentState, candidate: PendingProgress,
                      responses: list[Response], *, run_cleanup: bool) -> str:
    if candidate.demographics is not None:
        state.demographics = candidate.demographics
    state.responses = list(responses)
    state.session = replace(
        state.session,
        demographics=candidate.demographics or state.session.demographics,
        responses=list(responses),
        completed=False,
        end_time=None,
    )
    persist_session(state)
    if run_cleanup:
        cleanup_orphan_data(state, responses, candidate.demographics)
        state.resume_page = 0
    else:
        state.resume_page = candidate.current_page

    _close_gates(state)
    state.has_checked_progress = True
    state.resume_token = _now_ms()
    target = QUESTIONNAIRE if state.demographics is not None else DEMOGRAPHICS
    set_step(state, target)
    return target


def continue_progress(state: AssessmentState) -> str:
    """Resume the saved candidate.

    Commits it as-is when every answer is still valid. Otherwise swaps the
    resume gate for the data-change gate and commits nothing.
    """
    _require_gate(state, RESUME_GATE, "continue")
    candidate = state.pending
    if candidate is None:
        _close_gates(state)
        return NOTHING_PENDING

    valid_ids = _valid_ids(state, candidate.demographics)
    kept = filter_responses(candidate.responses, valid_ids)
    discarded = len(candidate.responses) - len(kept)
    if discarded > 0:
        logger.warning(
            "Saved progress has %d of %d response(s) outside the current question set",
            discarded, len(candidate.responses),
        )
        state.data_change_info = DataChangeInfo(
            discarded_count=discarded, total_count=len(candidate.responses)
        )
        _open_gate(state, DATA_CHANGE_GATE)
        return DATA_CHANGE_REQUIRED

    _commit_candidate(state, candidate, kept, run_cleanup=False)
    logger.info("Resumed %d response(s) at page %d", len(kept), state.resume_page)
    return COMMITTED


def confirm_data_change(state: AssessmentState) -> str:
    """Accept the loss: commit only the still-valid answers and clean up."""
    _require_gate(state, DATA_CHANGE_GATE, "confirm")
    candidate = state.pending
    if candidate is None:
        _close_gates(state)
        return state.step

    valid_ids = _valid_ids(state, candidate.demographics)
    kept = filter_responses(candidate.responses, valid_ids)
    logger.info(
        "Data change confirmed; keeping %d of %d response(s)",
        len(kept), len(candidate.responses),
    )
    return _commit_candidate(state, candidate, kept, run_cleanup=True)


def _discard(state: AssessmentState) -> None:
    clear_progress(state)
    _close_gates(state)
    state.has_checked_progress = True
    state.demographics = None
    state.responses = []
    state.resume_token = None
    state.resume_page = 0
    state.last_error = None
    state.session = replace(
        state.session,
        demographics=Demographics(),
        responses=[],
        start_time=utc_now(),
        completed=False,
        end_time=None,
    )
    persist_session(state)
    set_step(state, CONSENT)
    logger.info("Discarded saved progress for session %s", state.session_id)


def discard_progress(state: AssessmentState) -> None:
    """Throw the saved candidate away and start over at consent."""
    _require_gate(state, RESUME_GATE, "discard")
    _discard(state)


def restart_after_data_change(state: AssessmentState) -> None:
    """Refuse the loss; goes through the same path as discarding."""
    _require_gate(state, DATA_CHANGE_GATE, "restart")
    _discard(state)


def request_gate_close(state: AssessmentState) -> bool:
    """Handle an implicit dismissal of the open gate.

    Returns True when the gate is closed afterwards. Refused while a
    candidate is pending and no explicit answer has been given.
    """
    if state.active_gate is None:
        return True
    if state.confirmation.is_armed and state.pending is not None:
        logger.debug("Ignoring implicit close of the %s prompt", state.active_gate)
        return False
    state.active_gate = None
    state.data_change_info = None
    return True


def stage_demographics_change(state: AssessmentState,
                              demographics: Demographics) -> Optional[DataChangeInfo]:
    """Stage a demographics edit that would drop answers.

    Returns the loss counts when the data-change gate was opened, or None
    when the edit can be committed straight away.
    """
    if not state.responses:
        return None
    resolver = state.resolver
    if (state.demographics is not None
            and not resolver.scales_changed(state.demographics, demographics,
                                            state.assessment_type)):
        return None

    state.question_cache = None
    valid_ids = _valid_ids(state, demographics)
    kept = filter_responses(state.responses, valid_ids)
    discarded = len(state.responses) - len(kept)
    if discarded == 0:
        state.question_cache = None
        return None

    logger.info(
        "Demographics change would drop %d of %d response(s); asking for confirmation",
        discarded, len(state.responses),
    )
    state.pending = PendingProgress(
        responses=list(state.responses),
        demographics=demographics,
        origin="demographics_edit",
    )
    state.data_change_info = DataChangeInfo(
        discarded_count=discarded, total_count=len(state.responses)
    )
    _open_gate(state, DATA_CHANGE_GATE)
    return state.data_change_info
