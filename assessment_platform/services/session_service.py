"""Platform-owned session record service.

Creates assessment flows and persists their session and progress records.
Store writes are best effort: a failed write is logged and the in-memory
transition that triggered it still goes ahead.
"""

import logging
import random
import sqlite3
import string
import time
from pathlib import Path
from typing import Callable, Optional

from assessment_platform.config import SESSION_ID_PREFIX, resolve_assessment_type
from assessment_platform.models import (
    AssessmentSession,
    AssessmentState,
    Demographics,
    Response,
)
from assessment_platform.persistence import ProgressStore, SessionStore, get_connection
from assessment_platform.question_sets import QuestionSetResolver
from assessment_platform.scoring import calculate_assessment_results

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_session_id(now_ms: Optional[int] = None) -> str:
    """Return an id of the form ``session_<epoch-ms>_<9 base-36 chars>``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{SESSION_ID_PREFIX}_{now_ms}_{suffix}"


def new_session(session_id: str, assessment_type: str) -> AssessmentSession:
    """Return a freshly initialised session record (not yet persisted)."""
    return AssessmentSession(id=session_id, type=assessment_type)


def create_assessment_state(
    assessment_type: Optional[str] = None,
    *,
    conn: Optional[sqlite3.Connection] = None,
    resolver: Optional[QuestionSetResolver] = None,
    scoring_fn: Optional[Callable[[list[Response], str], dict]] = None,
    session_id: Optional[str] = None,
) -> AssessmentState:
    """Build the in-memory state for one flow.

    Without *conn* the flow runs without persistence.
    """
    assessment_type = resolve_assessment_type(assessment_type)
    session = new_session(session_id or generate_session_id(), assessment_type)
    return AssessmentState(
        assessment_type=assessment_type,
        session=session,
        resolver=resolver or QuestionSetResolver(),
        scoring_fn=scoring_fn or calculate_assessment_results,
        db_conn=conn,
        progress_store=ProgressStore(conn) if conn is not None else None,
    )


def open_device_store(db_path: Optional[Path | str] = None, *,
                      check_same_thread: bool = True) -> sqlite3.Connection:
    """Open the device store (default location from config)."""
    return get_connection(db_path, check_same_thread=check_same_thread)


def persist_session(state: AssessmentState) -> bool:
    """Save the session record. Returns False when skipped or failed."""
    if not state.db_conn:
        return False
    try:
        SessionStore.save(state.db_conn, state.session)
    except sqlite3.Error as e:
        logger.error("Failed to save session %s: %s", state.session_id, e)
        return False
    return True


def write_progress(state: AssessmentState, demographics: Optional[Demographics],
                   responses: list[Response], current_page: int = 0) -> bool:
    """Replace the device progress record. Returns False when skipped or failed."""
    if state.progress_store is None:
        return False
    try:
        state.progress_store.write(state.assessment_type, demographics, responses, current_page)
    except sqlite3.Error as e:
        logger.error("Failed to save assessment progress: %s", e)
        return False
    return True


def clear_progress(state: AssessmentState) -> bool:
    """Erase the device progress record. Returns False when skipped or failed."""
    if state.progress_store is None:
        return False
    try:
        state.progress_store.clear()
    except sqlite3.Error as e:
        logger.error("Failed to clear assessment progress: %s", e)
        return False
    return True


def get_session_detail(conn: sqlite3.Connection, session_id: str) -> Optional[dict]:
    """Return a stored session as a plain dict, or None."""
    session = SessionStore.get(conn, session_id)
    if session is None:
        return None
    return session.to_dict()


def list_sessions(conn: sqlite3.Connection) -> list[dict]:
    return SessionStore.list_all(conn)


def delete_session_by_id(conn: sqlite3.Connection, session_id: str) -> bool:
    return SessionStore.delete(conn, session_id)
