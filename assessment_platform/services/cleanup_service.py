"""Rewrite stored progress and the session record to match the committed state."""

import logging
from dataclasses import replace
from typing import Optional

from assessment_platform.models import AssessmentState, Demographics, Response
from assessment_platform.services.session_service import (
    clear_progress,
    persist_session,
    write_progress,
)

logger = logging.getLogger(__name__)


def cleanup_orphan_data(state: AssessmentState, responses: list[Response],
                        demographics: Optional[Demographics] = None) -> None:
    """Bring the device store and session record in line with *responses*.

    Empty *responses* erase the progress record. Otherwise it is replaced
    with the given responses and a reset page cursor. Running it twice with
    the same inputs leaves the same stored record.
    """
    progress_demographics = demographics or state.demographics
    if not responses:
        clear_progress(state)
        logger.info("Removed progress record with no valid responses")
    else:
        write_progress(state, progress_demographics, responses, current_page=0)
        logger.info("Rewrote progress record with %d valid response(s)", len(responses))

    state.session = replace(
        state.session,
        demographics=demographics or state.session.demographics,
        responses=list(responses),
        completed=False,
        end_time=None,
    )
    persist_session(state)
