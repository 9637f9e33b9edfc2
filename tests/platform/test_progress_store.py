"""Tests for the device progress store."""

import json

from assessment_platform.config import PROGRESS_KEY
from assessment_platform.models import AssessmentSession, Demographics


def _put_raw(conn, value: str):
    conn.execute(
        "INSERT OR REPLACE INTO progress (key, value, updated_at) VALUES (?, ?, ?)",
        (PROGRESS_KEY, value, "2026-01-01T00:00:00"),
    )
    conn.commit()


class TestLoad:
    def test_absent_record(self, progress_store):
        assert progress_store.load("quick") is None
        assert progress_store.exists() is False

    def test_save_then_load_round_trip(self, progress_store, single, answers):
        responses = answers("a_1", "a_2", "b_1", value=6)
        session = AssessmentSession(id="s1", type="quick", demographics=single, responses=responses)
        progress_store.save(session, current_page=2)

        candidate = progress_store.load("quick")
        assert candidate is not None
        assert candidate.responses == responses
        assert candidate.demographics == single
        assert candidate.current_page == 2
        assert candidate.origin == "resume"

    def test_other_type_is_absent(self, progress_store, single, answers):
        progress_store.write("full", single, answers("a_1"), 0)
        assert progress_store.load("quick") is None
        # the record itself is left alone
        assert progress_store.exists() is True

    def test_malformed_json_is_absent(self, db_conn, progress_store):
        _put_raw(db_conn, "{not json")
        assert progress_store.load("quick") is None

    def test_malformed_response_entry_is_absent(self, db_conn, progress_store):
        _put_raw(db_conn, json.dumps({
            "type": "quick",
            "demographics": {"age": "1"},
            "responses": [{"questionId": "a_1", "value": "high", "timestamp": "2026-01-01T00:00:00Z"}],
            "currentPage": 0,
        }))
        assert progress_store.load("quick") is None

    def test_deeply_nested_record_is_absent(self, db_conn, progress_store):
        _put_raw(db_conn, "[" * 200000 + "]" * 200000)
        assert progress_store.load("quick") is None

    def test_undecodable_record_is_absent(self, db_conn, progress_store):
        db_conn.execute(
            "INSERT OR REPLACE INTO progress (key, value, updated_at) "
            "VALUES (?, CAST(x'fffe7b' AS TEXT), ?)",
            (PROGRESS_KEY, "2026-01-01T00:00:00"),
        )
        db_conn.commit()
        assert progress_store.load("quick") is None

    def test_non_object_record_is_absent(self, db_conn, progress_store):
        _put_raw(db_conn, "[1, 2, 3]")
        assert progress_store.load("quick") is None

    def test_empty_record_is_absent(self, db_conn, progress_store):
        _put_raw(db_conn, json.dumps({
            "type": "quick", "demographics": {}, "responses": [], "currentPage": 0,
        }))
        assert progress_store.load("quick") is None

    def test_bad_page_cursor_defaults_to_zero(self, db_conn, progress_store):
        _put_raw(db_conn, json.dumps({
            "type": "quick",
            "demographics": {"age": "1"},
            "responses": [],
            "currentPage": "three",
        }))
        candidate = progress_store.load("quick")
        assert candidate.current_page == 0
        assert candidate.demographics == Demographics(age="1")


class TestWrite:
    def test_record_shape(self, progress_store, single, answers):
        progress_store.write("quick", single, answers("a_1"), 1)
        record = json.loads(progress_store.read_raw())
        assert set(record) == {"type", "demographics", "responses", "currentPage", "timestamp"}
        assert record["responses"][0]["questionId"] == "a_1"
        assert record["demographics"]["relationshipStatus"] == "single"

    def test_identical_rewrite_keeps_record(self, progress_store, single, answers):
        responses = answers("a_1", "a_2")
        progress_store.write("quick", single, responses, 0)
        first = progress_store.read_raw()
        progress_store.write("quick", single, responses, 0)
        assert progress_store.read_raw() == first

    def test_clear(self, progress_store, single, answers):
        progress_store.write("quick", single, answers("a_1"), 0)
        assert progress_store.clear() is True
        assert progress_store.read_raw() is None
        assert progress_store.clear() is False
