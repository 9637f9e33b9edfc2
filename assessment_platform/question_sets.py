"""Valid-question-set resolution.

Derives which question ids are acceptable for a demographics value by
expanding every selected scale into its question list. Resolution is pure:
the same demographics and assessment type always yield the same set.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Mapping, Optional

from .models import Demographics, Response
from .scales import ALL_SCALES, Question, ScaleDefinition, select_scales

logger = logging.getLogger(__name__)

ScaleSelector = Callable[[Demographics, str], list[str]]


class QuestionSetResolver:
    """Resolve scale ids and valid question ids for an assessment type."""

    def __init__(
        self,
        scales: Optional[Mapping[str, ScaleDefinition]] = None,
        selector: Optional[ScaleSelector] = None,
    ):
        self.scales = ALL_SCALES if scales is None else scales
        self.selector = selector or select_scales

    def scale_ids(self, demographics: Optional[Demographics], assessment_type: str) -> list[str]:
        """Ordered scale ids for *demographics*; empty when none are committed."""
        if demographics is None:
            return []
        return list(self.selector(demographics, assessment_type))

    def ordered_questions(self, demographics: Optional[Demographics],
                          assessment_type: str) -> list[Question]:
        """Questions in presentation order, without duplicates."""
        seen: set[str] = set()
        ordered: list[Question] = []
        for scale_id in self.scale_ids(demographics, assessment_type):
            scale = self.scales.get(scale_id)
            if scale is None:
                logger.debug("Skipping unknown scale id %r", scale_id)
                continue
            for question in scale.questions:
                if question.id not in seen:
                    seen.add(question.id)
                    ordered.append(question)
        return ordered

    def valid_question_ids(self, demographics: Optional[Demographics],
                           assessment_type: str) -> frozenset[str]:
        """Union of question ids across every applicable scale."""
        return frozenset(q.id for q in self.ordered_questions(demographics, assessment_type))

    def scales_changed(self, old: Optional[Demographics], new: Optional[Demographics],
                       assessment_type: str) -> bool:
        """Compare scale selections as unordered sets."""
        return set(self.scale_ids(old, assessment_type)) != set(self.scale_ids(new, assessment_type))

    def cache(self, assessment_type: str) -> "QuestionSetCache":
        """Return a memo for one reconciliation pass."""
        return QuestionSetCache(self, assessment_type)


class QuestionSetCache:
    """Per-pass memo of valid question ids keyed by demographics value."""

    def __init__(self, resolver: QuestionSetResolver, assessment_type: str):
        self.resolver = resolver
        self.assessment_type = assessment_type
        self._memo: dict[Optional[str], frozenset[str]] = {}

    def valid_question_ids(self, demographics: Optional[Demographics]) -> frozenset[str]:
        key = demographics.cache_key() if demographics is not None else None
        if key not in self._memo:
            self._memo[key] = self.resolver.valid_question_ids(demographics, self.assessment_type)
        return self._memo[key]


def filter_responses(responses: Iterable[Response], valid_ids: frozenset[str]) -> list[Response]:
    """Keep responses whose question id is valid, preserving order."""
    return [r for r in responses if r.question_id in valid_ids]


def orphan_responses(responses: Iterable[Response], valid_ids: frozenset[str]) -> list[Response]:
    """Responses that would be dropped under *valid_ids*."""
    return [r for r in responses if r.question_id not in valid_ids]
