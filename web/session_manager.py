"""
Server-side assessment manager for the web API.

Bridges the web layer to the platform services. All mutations are
auto-saved to SQLite; there is no explicit save step.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Callable, Optional

from assessment_platform.config import get_redirect_delay
from assessment_platform.models import AssessmentState, Demographics, Response
from assessment_platform.question_sets import QuestionSetResolver
from assessment_platform.services import (
    complete_questionnaire,
    confirm_data_change,
    continue_progress,
    current_questions,
    delete_session_by_id,
    describe_state,
    discard_progress,
    get_session_detail,
    give_consent,
    go_back,
    list_sessions,
    open_device_store,
    request_gate_close,
    restart_after_data_change,
    start_assessment,
    submit_demographics,
    update_responses,
)

logger = logging.getLogger(__name__)


class NoActiveAssessment(Exception):
    """Raised when a flow operation is requested before ``start``."""


class WebAssessmentManager:
    """Manages the single assessment flow of this device for the web API."""

    def __init__(self, db_path: Optional[Path | str] = None,
                 resolver: Optional[QuestionSetResolver] = None,
                 scoring_fn: Optional[Callable[[list[Response], str], dict]] = None):
        self.db_path = db_path
        self.resolver = resolver
        self.scoring_fn = scoring_fn
        self.conn: Optional[sqlite3.Connection] = None
        self.state: Optional[AssessmentState] = None

    @property
    def is_active(self) -> bool:
        return self.state is not None

    def connection(self) -> sqlite3.Connection:
        """Open the device store on first use."""
        if self.conn is None:
            # Routes are async and share the event-loop thread, but TestClient runs
            # each request on its own portal thread and close() runs on the caller's.
            self.conn = open_device_store(self.db_path, check_same_thread=False)
        return self.conn

    def close(self) -> None:
        if self.conn is not None:
            self.conn.close()
        self.conn = None
        self.state = None

    def _require_state(self) -> AssessmentState:
        if self.state is None:
            raise NoActiveAssessment("No active assessment. Start one first.")
        return self.state

    def snapshot(self) -> dict:
        """Current flow state for the client."""
        if self.state is None:
            return {"active": False}
        return {
            "active": True,
            "redirect_delay_seconds": get_redirect_delay(),
            **describe_state(self.state),
        }

    # --- Flow ---

    def start(self, assessment_type: Optional[str] = None) -> dict:
        """Start a new flow; offers saved progress through the resume gate."""
        if self.state is not None:
            logger.info("Replacing active assessment %s", self.state.session_id)
        self.state = start_assessment(
            assessment_type,
            conn=self.connection(),
            resolver=self.resolver,
            scoring_fn=self.scoring_fn,
        )
        return self.snapshot()

    def consent(self, consented: bool) -> dict:
        target = give_consent(self._require_state(), consented)
        return {"navigated": target, **self.snapshot()}

    def demographics(self, demographics: Demographics) -> dict:
        submit_demographics(self._require_state(), demographics)
        return self.snapshot()

    def responses(self, responses: list[Response], current_page: int = 0) -> dict:
        kept = update_responses(self._require_state(), responses, current_page)
        return {"accepted": len(kept), "dropped": len(responses) - len(kept), **self.snapshot()}

    def complete(self) -> dict:
        complete_questionnaire(self._require_state())
        return self.snapshot()

    def back(self) -> dict:
        target = go_back(self._require_state())
        return {"navigated": target, **self.snapshot()}

    def questions(self) -> dict:
        state = self._require_state()
        return {
            "scales": state.resolver.scale_ids(state.demographics, state.assessment_type),
            "questions": [
                {"id": q.id, "text": q.text} for q in current_questions(state)
            ],
        }

    # --- Gates ---

    def resume_continue(self) -> dict:
        outcome = continue_progress(self._require_state())
        return {"outcome": outcome, **self.snapshot()}

    def resume_discard(self) -> dict:
        discard_progress(self._require_state())
        return self.snapshot()

    def data_change_confirm(self) -> dict:
        confirm_data_change(self._require_state())
        return self.snapshot()

    def data_change_restart(self) -> dict:
        restart_after_data_change(self._require_state())
        return self.snapshot()

    def dismiss_gate(self) -> dict:
        closed = request_gate_close(self._require_state())
        return {"closed": closed, **self.snapshot()}

    # --- Stored sessions ---

    def list_sessions(self) -> list[dict]:
        return list_sessions(self.connection())

    def session_detail(self, session_id: str) -> Optional[dict]:
        return get_session_detail(self.connection(), session_id)

    def delete_session(self, session_id: str) -> bool:
        return delete_session_by_id(self.connection(), session_id)
