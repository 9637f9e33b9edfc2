"""
Default scoring function for the SRI assessment.

Scores each scale as the mean of its answered items (reverse-keyed items
flipped), normalised to 0-100, and reports the overall index as the mean of
the scale scores. Deterministic for identical responses.
"""

from typing import Mapping, Optional

from .models import Response, ScoringError
from .scales import ALL_SCALES, ScaleDefinition

LEVEL_THRESHOLDS = (
    (30.0, "low"),
    (60.0, "moderate"),
)
TOP_LEVEL = "high"


def _level(score: float) -> str:
    for upper, label in LEVEL_THRESHOLDS:
        if score < upper:
            return label
    return TOP_LEVEL


def calculate_assessment_results(
    responses: list[Response],
    session_id: str,
    scales: Optional[Mapping[str, ScaleDefinition]] = None,
) -> dict:
    """Compute results for *responses*. Raises ``ScoringError`` when it cannot."""
    scales = ALL_SCALES if scales is None else scales
    if not responses:
        raise ScoringError("No responses to score")

    question_index = {}
    for scale in scales.values():
        for question in scale.questions:
            question_index.setdefault(question.id, (scale, question))

    item_scores: dict[str, list[float]] = {}
    for response in responses:
        entry = question_index.get(response.question_id)
        if entry is None:
            continue
        scale, question = entry
        if not scale.min_value <= response.value <= scale.max_value:
            raise ScoringError(
                f"Value {response.value!r} for {response.question_id} is outside "
                f"{scale.min_value}-{scale.max_value}"
            )
        value = float(response.value)
        if question.reverse:
            value = scale.min_value + scale.max_value - value
        item_scores.setdefault(scale.id, []).append(value)

    if not item_scores:
        raise ScoringError("No responses belong to a known scale")

    scale_results = {}
    for scale_id, values in item_scores.items():
        scale = scales[scale_id]
        mean = sum(values) / len(values)
        normalised = (mean - scale.min_value) / (scale.max_value - scale.min_value) * 100
        scale_results[scale_id] = {
            "name": scale.name,
            "answered": len(values),
            "total": len(scale.questions),
            "mean": round(mean, 3),
            "score": round(normalised, 1),
            "level": _level(normalised),
        }

    overall = sum(r["score"] for r in scale_results.values()) / len(scale_results)
    return {
        "sessionId": session_id,
        "index": round(overall, 1),
        "level": _level(overall),
        "scales": scale_results,
        "answered": sum(r["answered"] for r in scale_results.values()),
    }
