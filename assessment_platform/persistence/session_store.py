"""Platform-owned assessment session store."""

import json
import logging
import sqlite3
from typing import Optional

from assessment_platform.models import AssessmentSession, format_timestamp, utc_now

logger = logging.getLogger(__name__)


class SessionStore:
    """CRUD operations for assessment session records."""

    @staticmethod
    def save(conn: sqlite3.Connection, session: AssessmentSession) -> None:
        """Insert or fully replace a session record."""
        data = session.to_dict()
        conn.execute(
            """INSERT OR REPLACE INTO assessment_session
               (id, type, demographics, responses, start_time, end_time,
                completed, results, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                data["id"],
                data["type"],
                json.dumps(data["demographics"]),
                json.dumps(data["responses"]),
                data["startTime"],
                data["endTime"],
                1 if data["completed"] else 0,
                json.dumps(data["results"]) if data["results"] is not None else None,
                format_timestamp(utc_now()),
            ),
        )
        conn.commit()

    @staticmethod
    def get(conn: sqlite3.Connection, session_id: str) -> Optional[AssessmentSession]:
        """Load a single session by id, or None if absent or unreadable."""
        row = conn.execute(
            "SELECT * FROM assessment_session WHERE id = ?", (session_id,)
        ).fetchone()
        if row is None:
            return None
        d = SessionStore._row_to_dict(row)
        try:
            return AssessmentSession.from_dict({
                "id": d["id"],
                "type": d["type"],
                "demographics": d["demographics"],
                "responses": d["responses"],
                "startTime": d["start_time"],
                "endTime": d["end_time"],
                "completed": d["completed"],
                "results": d["results"],
            })
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Session %s has an unreadable record: %s", session_id, e)
            return None

    @staticmethod
    def list_all(conn: sqlite3.Connection) -> list[dict]:
        """List session summaries, most recently updated first."""
        rows = conn.execute(
            "SELECT * FROM assessment_session ORDER BY updated_at DESC, id DESC"
        ).fetchall()
        summaries = []
        for row in rows:
            d = SessionStore._row_to_dict(row)
            summaries.append({
                "id": d["id"],
                "type": d["type"],
                "start_time": d["start_time"],
                "end_time": d["end_time"],
                "completed": d["completed"],
                "response_count": len(d["responses"]),
                "updated_at": d["updated_at"],
            })
        return summaries

    @staticmethod
    def delete(conn: sqlite3.Connection, session_id: str) -> bool:
        """Delete a session record. Returns True if a row was deleted."""
        cursor = conn.execute(
            "DELETE FROM assessment_session WHERE id = ?", (session_id,)
        )
        conn.commit()
        return cursor.rowcount > 0

    @staticmethod
    def _row_to_dict(row: sqlite3.Row) -> dict:
        """Convert a sqlite3.Row to a plain dict, deserialising JSON columns."""
        d = dict(row)
        for key, default in (("demographics", {}), ("responses", []), ("results", None)):
            if isinstance(d.get(key), str):
                try:
                    d[key] = json.loads(d[key])
                except (json.JSONDecodeError, TypeError):
                    d[key] = default
            elif d.get(key) is None:
                d[key] = default
        if "completed" in d:
            d["completed"] = bool(d["completed"])
        return d


__all__ = ["SessionStore"]
