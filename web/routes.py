"""
REST API routes for the SRI assessment web service.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from assessment_platform import __version__
from assessment_platform.config import (
    ASSESSMENT_TYPES,
    get_default_assessment_type,
    get_redirect_delay,
)
from assessment_platform.models import (
    Demographics,
    InvalidTransitionError,
    Response,
    parse_timestamp,
    utc_now,
)
from .session_manager import NoActiveAssessment, WebAssessmentManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

# Single shared manager (one flow per device)
session_mgr = WebAssessmentManager()


# --- Request models ---

class StartRequest(BaseModel):
    type: Optional[str] = None


class ConsentRequest(BaseModel):
    consented: bool = True


class DemographicsRequest(BaseModel):
    age: str
    gender: str = ""
    relationship_status: str = ""
    extra: dict[str, Any] = Field(default_factory=dict)


class ResponseItem(BaseModel):
    question_id: str = Field(min_length=1)
    value: int | float
    timestamp: Optional[str] = None


class ResponsesRequest(BaseModel):
    responses: list[ResponseItem]
    current_page: int = Field(default=0, ge=0)


# --- Helpers ---

def _call(operation, *args):
    """Run a manager operation, mapping flow errors to HTTP errors."""
    try:
        return operation(*args)
    except NoActiveAssessment as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidTransitionError as e:
        raise HTTPException(
            status_code=409,
            detail={"code": "invalid_transition", "message": str(e),
                    "step": e.step, "event": e.event},
        )


def _to_response(item: ResponseItem) -> Response:
    try:
        timestamp = parse_timestamp(item.timestamp) if item.timestamp else utc_now()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return Response(question_id=item.question_id, value=item.value, timestamp=timestamp)


# --- Routes ---

@router.get("/config")
async def get_config():
    """Return non-secret configuration for the client."""
    return {
        "version": __version__,
        "assessment_types": list(ASSESSMENT_TYPES),
        "default_assessment_type": get_default_assessment_type(),
        "redirect_delay_seconds": get_redirect_delay(),
    }


@router.get("/assessment")
async def get_assessment():
    """Return the current flow state (``active: false`` when none)."""
    return session_mgr.snapshot()


@router.post("/assessment/start")
async def start(req: StartRequest):
    """Start a flow. An unknown type falls back to the default."""
    if req.type is not None and req.type.strip().lower() not in ASSESSMENT_TYPES:
        logger.info("Unknown assessment type %r; using default", req.type)
    return _call(session_mgr.start, req.type)


@router.post("/assessment/consent")
async def consent(req: ConsentRequest):
    return _call(session_mgr.consent, req.consented)


@router.post("/assessment/demographics")
async def demographics(req: DemographicsRequest):
    """Submit demographics; may open the data-change prompt instead of committing."""
    if not req.age.strip():
        raise HTTPException(status_code=400, detail="age is required")
    value = Demographics(
        age=req.age.strip(),
        gender=req.gender,
        relationship_status=req.relationship_status,
        extra=dict(req.extra),
    )
    return _call(session_mgr.demographics, value)


@router.post("/assessment/responses")
async def responses(req: ResponsesRequest):
    """Commit the full answer list; answers outside the question set are dropped."""
    items = [_to_response(item) for item in req.responses]
    return _call(session_mgr.responses, items, req.current_page)


@router.post("/assessment/complete")
async def complete():
    """Score the answers. On failure the step returns to the questionnaire
    and ``last_error`` carries a message for the user."""
    return _call(session_mgr.complete)


@router.post("/assessment/back")
async def back():
    return _call(session_mgr.back)


@router.get("/assessment/questions")
async def questions():
    """Questions for the committed demographics, in presentation order."""
    return _call(session_mgr.questions)


@router.post("/assessment/resume/continue")
async def resume_continue():
    return _call(session_mgr.resume_continue)


@router.post("/assessment/resume/discard")
async def resume_discard():
    return _call(session_mgr.resume_discard)


@router.post("/assessment/data-change/confirm")
async def data_change_confirm():
    return _call(session_mgr.data_change_confirm)


@router.post("/assessment/data-change/restart")
async def data_change_restart():
    return _call(session_mgr.data_change_restart)


@router.post("/assessment/gate/dismiss")
async def dismiss_gate():
    """Implicit close (escape / outside click). Refused while a choice is pending."""
    return _call(session_mgr.dismiss_gate)


@router.get("/sessions")
async def sessions_list():
    return {"sessions": session_mgr.list_sessions()}


@router.get("/sessions/{session_id}")
async def session_detail(session_id: str):
    detail = session_mgr.session_detail(session_id)
    if detail is None:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    return detail


@router.delete("/sessions/{session_id}")
async def session_delete(session_id: str):
    if not session_mgr.delete_session(session_id):
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    return {"deleted": True, "session_id": session_id}
