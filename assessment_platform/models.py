"""
Data structures and exceptions for the SRI assessment system.
"""

import json
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .persistence.progress_store import ProgressStore
    from .question_sets import QuestionSetCache, QuestionSetResolver

from .config import DEFAULT_ASSESSMENT_TYPE

# Age bracket code for respondents aged 14-17.
MINOR_AGE_BRACKET = "0"


class AssessmentFlowError(Exception):
    """Base class for misuse of the assessment flow."""


class InvalidTransitionError(AssessmentFlowError):
    """Raised when an event is not allowed from the current step or gate."""

    def __init__(self, message: str, step: str | None = None, event: str | None = None):
        super().__init__(message)
        self.step = step
        self.event = event


class ScoringError(Exception):
    """Raised by a scoring function that cannot produce results."""


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Serialise a timestamp to sortable ISO-8601 text."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def parse_timestamp(raw: Any) -> datetime:
    """Parse ISO-8601 text (accepting a trailing ``Z``). Raises ValueError."""
    if not isinstance(raw, str) or not raw.strip():
        raise ValueError(f"Invalid timestamp: {raw!r}")
    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _text(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass(frozen=True)
class Response:
    """A single committed answer. Never mutated in place."""
    question_id: str
    value: int | float
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return {
            "questionId": self.question_id,
            "value": self.value,
            "timestamp": format_timestamp(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Response":
        """Build a Response from its stored form.

        Raises ``ValueError``/``TypeError`` on malformed input so that callers
        reading persisted data can fail closed.
        """
        if not isinstance(data, dict):
            raise TypeError(f"Response must be an object, got {type(data).__name__}")
        question_id = data.get("questionId")
        if not isinstance(question_id, str) or not question_id:
            raise ValueError(f"Invalid questionId: {question_id!r}")
        value = data.get("value")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"Invalid value for {question_id}: {value!r}")
        return cls(
            question_id=question_id,
            value=value,
            timestamp=parse_timestamp(data.get("timestamp")),
        )


@dataclass
class Demographics:
    """Opaque attribute record consumed by the scale selector."""
    age: str = ""                  # age bracket code, "0" = 14-17
    gender: str = ""
    relationship_status: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (self.age or self.gender or self.relationship_status or self.extra)

    @property
    def is_minor(self) -> bool:
        return self.age == MINOR_AGE_BRACKET

    def to_dict(self) -> dict:
        result = dict(self.extra)
        result.update({
            "age": self.age,
            "gender": self.gender,
            "relationshipStatus": self.relationship_status,
        })
        return result

    def cache_key(self) -> str:
        """Stable text key identifying this demographics value."""
        return json.dumps(self.to_dict(), sort_keys=True, default=str)

    @classmethod
    def from_dict(cls, data: dict) -> "Demographics":
        if not isinstance(data, dict):
            raise TypeError(f"Demographics must be an object, got {type(data).__name__}")
        known = {"age", "gender", "relationshipStatus", "relationship_status"}
        relationship = data.get("relationshipStatus", data.get("relationship_status"))
        return cls(
            age=_text(data.get("age")),
            gender=_text(data.get("gender")),
            relationship_status=_text(relationship),
            extra={k: v for k, v in data.items() if k not in known},
        )


@dataclass
class AssessmentSession:
    """The session record persisted after every committed mutation."""
    id: str
    type: str = DEFAULT_ASSESSMENT_TYPE
    demographics: Demographics = field(default_factory=Demographics)
    responses: list[Response] = field(default_factory=list)
    start_time: datetime = field(default_factory=utc_now)
    end_time: Optional[datetime] = None
    completed: bool = False
    results: Optional[dict] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "demographics": self.demographics.to_dict(),
            "responses": [r.to_dict() for r in self.responses],
            "startTime": format_timestamp(self.start_time),
            "endTime": format_timestamp(self.end_time) if self.end_time else None,
            "completed": self.completed,
            "results": self.results,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AssessmentSession":
        end_time = data.get("endTime")
        return cls(
            id=str(data["id"]),
            type=data.get("type", DEFAULT_ASSESSMENT_TYPE),
            demographics=Demographics.from_dict(data.get("demographics") or {}),
            responses=[Response.from_dict(r) for r in data.get("responses") or []],
            start_time=parse_timestamp(data.get("startTime")),
            end_time=parse_timestamp(end_time) if end_time else None,
            completed=bool(data.get("completed", False)),
            results=data.get("results"),
        )


@dataclass
class PendingProgress:
    """Candidate progress awaiting user confirmation.

    ``origin`` is ``"resume"`` for a record loaded from the device store and
    ``"demographics_edit"`` for a staged demographics change.
    """
    responses: list[Response] = field(default_factory=list)
    demographics: Optional[Demographics] = None
    current_page: int = 0
    origin: str = "resume"

    @property
    def is_empty(self) -> bool:
        return not self.responses and (self.demographics is None or self.demographics.is_empty)


@dataclass
class DataChangeInfo:
    discarded_count: int
    total_count: int


@dataclass
class GatePrompt:
    """Text and counts for an external confirmation dialog."""
    kind: str  # resume, data_change
    title: str
    message: str
    response_count: int = 0
    discarded_count: int = 0
    total_count: int = 0

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "title": self.title,
            "message": self.message,
            "response_count": self.response_count,
            "discarded_count": self.discarded_count,
            "total_count": self.total_count,
        }


class PendingConfirmation:
    """Two-state guard for the confirmation gates.

    ``armed`` while a gate waits for an explicit answer, ``consumed`` once a
    button action resolved it. Implicit dismissals never change the state.
    """

    ARMED = "armed"
    CONSUMED = "consumed"

    def __init__(self):
        self.state = self.CONSUMED

    @property
    def is_armed(self) -> bool:
        return self.state == self.ARMED

    def arm(self) -> None:
        self.state = self.ARMED

    def consume(self) -> None:
        self.state = self.CONSUMED


@dataclass
class AssessmentState:
    """Full in-memory state of one assessment flow.

    ``db_conn`` and ``progress_store`` tie the flow to the device store so that
    every committed mutation is persisted. When they are ``None`` (e.g. in
    tests), persistence is silently skipped.
    """
    assessment_type: str
    session: AssessmentSession
    resolver: "QuestionSetResolver"
    scoring_fn: Callable[[list[Response], str], dict]
    db_conn: Optional[sqlite3.Connection] = field(default=None, repr=False)
    progress_store: Optional["ProgressStore"] = field(default=None, repr=False)
    step: str = "consent"
    demographics: Optional[Demographics] = None
    responses: list[Response] = field(default_factory=list)
    pending: Optional[PendingProgress] = None
    active_gate: Optional[str] = None
    data_change_info: Optional[DataChangeInfo] = None
    confirmation: PendingConfirmation = field(default_factory=PendingConfirmation)
    question_cache: Optional["QuestionSetCache"] = field(default=None, repr=False)
    has_checked_progress: bool = False
    resume_token: Optional[int] = None
    resume_page: int = 0
    last_error: Optional[str] = None
    step_listeners: list[Callable[[str, str], None]] = field(default_factory=list, repr=False)

    @property
    def session_id(self) -> str:
        return self.session.id

    @property
    def response_count(self) -> int:
        return len(self.responses)

    @property
    def is_minor(self) -> bool:
        return self.demographics is not None and self.demographics.is_minor
