"""Platform-owned assessment services."""

from .assessment_service import (
    SCORING_ERROR_MESSAGE,
    add_step_listener,
    complete_questionnaire,
    current_questions,
    describe_state,
    give_consent,
    go_back,
    start_assessment,
    submit_demographics,
    update_responses,
)
from .cleanup_service import cleanup_orphan_data
from .reconciliation_service import (
    COMMITTED,
    DATA_CHANGE_GATE,
    DATA_CHANGE_REQUIRED,
    NOTHING_PENDING,
    RESUME_GATE,
    check_saved_progress,
    confirm_data_change,
    continue_progress,
    discard_progress,
    gate_prompt,
    request_gate_close,
    restart_after_data_change,
    stage_demographics_change,
)
from .session_service import (
    create_assessment_state,
    delete_session_by_id,
    generate_session_id,
    get_session_detail,
    list_sessions,
    open_device_store,
    persist_session,
)
