"""
Shared fixtures for SRI assessment tests.
"""

import sqlite3
from functools import partial

import pytest

from assessment_platform.models import Demographics, Response
from assessment_platform.persistence import ProgressStore, init_db
from assessment_platform.question_sets import QuestionSetResolver
from assessment_platform.scales import Question, ScaleDefinition
from assessment_platform.scoring import calculate_assessment_results
from assessment_platform.services import start_assessment


def _test_scale(scale_id: str, prefix: str, count: int) -> ScaleDefinition:
    return ScaleDefinition(
        id=scale_id,
        name=f"Scale {scale_id}",
        questions=tuple(
            Question(id=f"{prefix}_{n}", text=f"{scale_id} item {n}", reverse=(n == count))
            for n in range(1, count + 1)
        ),
    )


TEST_SCALES = {
    "A": _test_scale("A", "a", 5),
    "B": _test_scale("B", "b", 3),
    "C": _test_scale("C", "c", 3),
}


def _test_selector(demographics: Demographics, assessment_type: str) -> list[str]:
    """single -> A+B, married -> A+C, anything else -> A."""
    if demographics.relationship_status == "single":
        return ["A", "B"]
    if demographics.relationship_status == "married":
        return ["A", "C"]
    return ["A"]


def _make_responses(*question_ids: str, value: int = 4) -> list[Response]:
    return [Response(question_id=qid, value=value) for qid in question_ids]


@pytest.fixture
def db_conn():
    """Create an in-memory SQLite connection with the assessment schema."""
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    init_db(conn)
    yield conn
    conn.close()


@pytest.fixture
def progress_store(db_conn):
    return ProgressStore(db_conn)


@pytest.fixture
def test_scales():
    return TEST_SCALES


@pytest.fixture
def resolver():
    """Resolver over the small A/B/C catalogue."""
    return QuestionSetResolver(scales=TEST_SCALES, selector=_test_selector)


@pytest.fixture
def single():
    return Demographics(age="2", gender="female", relationship_status="single")


@pytest.fixture
def married():
    return Demographics(age="2", gender="female", relationship_status="married")


@pytest.fixture
def make_flow(db_conn, resolver):
    """Factory for flows over the test catalogue, backed by ``db_conn``."""
    def _make(assessment_type: str = "quick", conn=db_conn, scoring_fn=None):
        return start_assessment(
            assessment_type,
            conn=conn,
            resolver=resolver,
            scoring_fn=scoring_fn or partial(calculate_assessment_results, scales=TEST_SCALES),
        )
    return _make


@pytest.fixture
def answers():
    """``answers("a_1", "b_2", value=5)`` builds committed-style responses."""
    return _make_responses
