"""Platform-owned assessment step state machine helpers."""

from __future__ import annotations

from assessment_platform.models import AssessmentState, InvalidTransitionError

CONSENT = "consent"
DEMOGRAPHICS = "demographics"
QUESTIONNAIRE = "questionnaire"
PROCESSING = "processing"
COMPLETED = "completed"

# External home view; leaving the machine, not a step of it.
HOME = "home"

STEPS = (CONSENT, DEMOGRAPHICS, QUESTIONNAIRE, PROCESSING, COMPLETED)
PROGRESS_STEPS = (CONSENT, DEMOGRAPHICS, QUESTIONNAIRE, PROCESSING)

CONSENT_GIVEN = "consent_given"
CONSENT_DECLINED = "consent_declined"
DEMOGRAPHICS_SUBMITTED = "demographics_submitted"
QUESTIONNAIRE_COMPLETED = "questionnaire_completed"
SCORING_SUCCEEDED = "scoring_succeeded"
SCORING_FAILED = "scoring_failed"
BACK = "back"

_TRANSITIONS = {
    (CONSENT, CONSENT_GIVEN): DEMOGRAPHICS,
    (CONSENT, CONSENT_DECLINED): HOME,
    (CONSENT, BACK): HOME,
    (DEMOGRAPHICS, DEMOGRAPHICS_SUBMITTED): QUESTIONNAIRE,
    (DEMOGRAPHICS, BACK): CONSENT,
    (QUESTIONNAIRE, QUESTIONNAIRE_COMPLETED): PROCESSING,
    (QUESTIONNAIRE, BACK): DEMOGRAPHICS,
    (PROCESSING, SCORING_SUCCEEDED): COMPLETED,
    (PROCESSING, SCORING_FAILED): QUESTIONNAIRE,
    (COMPLETED, BACK): HOME,
}


def is_step(value: str) -> bool:
    """Return True when *value* is a step of the machine."""
    return value in STEPS


def can_transition(step: str, event: str) -> bool:
    """Return True when *event* is allowed from *step*."""
    return (step, event) in _TRANSITIONS


def next_step(step: str, event: str) -> str:
    """Return the step reached by applying *event* to *step*.

    Raises ``InvalidTransitionError`` for events the step does not accept
    (e.g. ``back`` while processing).
    """
    try:
        return _TRANSITIONS[(step, event)]
    except KeyError:
        raise InvalidTransitionError(
            f"Cannot apply '{event}' while in step '{step}'",
            step=step,
            event=event,
        ) from None


def step_progress(step: str) -> float:
    """Overall progress percent shown above the current step."""
    if step == COMPLETED:
        return 100.0
    if step not in PROGRESS_STEPS:
        return 0.0
    return (PROGRESS_STEPS.index(step) + 1) / len(PROGRESS_STEPS) * 100


def set_step(state: AssessmentState, step: str) -> None:
    """Move *state* to *step* and notify step listeners.

    Leaving for ``home`` notifies listeners but keeps the last in-machine
    step. Listener failures propagate.
    """
    old = state.step
    if step != HOME and not is_step(step):
        raise InvalidTransitionError(f"Unknown step '{step}'", step=old)
    if step == old:
        return
    if step != HOME:
        state.step = step
    for listener in list(state.step_listeners):
        listener(old, step)


def apply_event(state: AssessmentState, event: str) -> str:
    """Apply *event* to the flow's current step and return the new step."""
    target = next_step(state.step, event)
    set_step(state, target)
    return target
