"""Platform layer for the SRI assessment flow: models, scales, stores and services."""

__version__ = "1.0.0"

from .models import (
    AssessmentFlowError,
    AssessmentSession,
    AssessmentState,
    Demographics,
    InvalidTransitionError,
    Response,
    ScoringError,
)
from .question_sets import QuestionSetResolver, filter_responses
from .scoring import calculate_assessment_results
from .session_state_machine import (
    COMPLETED,
    CONSENT,
    DEMOGRAPHICS,
    PROCESSING,
    QUESTIONNAIRE,
    step_progress,
)

__all__ = [
    "__version__",
    "AssessmentFlowError",
    "AssessmentSession",
    "AssessmentState",
    "Demographics",
    "InvalidTransitionError",
    "Response",
    "ScoringError",
    "QuestionSetResolver",
    "filter_responses",
    "calculate_assessment_results",
    "CONSENT",
    "DEMOGRAPHICS",
    "QUESTIONNAIRE",
    "PROCESSING",
    "COMPLETED",
    "step_progress",
]
