"""
CLI subcommand implementations for the SRI assessment.

Subcommands::

    sri-assessment start [--type quick|full]
    sri-assessment progress show
    sri-assessment progress clear
    sri-assessment sessions list
    sri-assessment sessions view   ID
    sri-assessment sessions delete ID

Global options ``--db PATH`` (device store) and ``--verbose``.
"""

import argparse
import json
import sqlite3
import sys

from assessment_platform import __version__
from assessment_platform.config import (
    ASSESSMENT_TYPES,
    get_default_assessment_type,
    get_log_level,
    get_redirect_delay,
)
from assessment_platform.logging_setup import configure_logging
from assessment_platform.models import AssessmentFlowError
from assessment_platform.persistence import ProgressStore
from assessment_platform.services import (
    delete_session_by_id,
    get_session_detail,
    list_sessions,
    open_device_store,
    start_assessment,
)

from .interface import print_session_detail
from .session_loop import run_interactive_assessment


def _open_store(args) -> sqlite3.Connection:
    try:
        return open_device_store(args.db)
    except (sqlite3.Error, OSError) as e:
        print(f"Error: Cannot open the assessment store: {e}")
        sys.exit(1)


# ---------------------------------------------------------------------------
# Subcommand: start
# ---------------------------------------------------------------------------

def cmd_start(args):
    """Run an interactive assessment, resuming saved progress if offered."""
    conn = _open_store(args)
    try:
        state = start_assessment(args.type, conn=conn)
        print(f"\n  [Session {state.session_id}: {state.assessment_type} assessment, auto-saved]")
        run_interactive_assessment(state, redirect_delay=get_redirect_delay())
    except AssessmentFlowError as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        conn.close()


# ---------------------------------------------------------------------------
# Subcommand: progress
# ---------------------------------------------------------------------------

def cmd_progress(args):
    """Inspect or erase the progress record on this device."""
    conn = _open_store(args)
    try:
        store = ProgressStore(conn)
        if args.progress_action == 'show':
            raw = store.read_raw()
            if raw is None:
                print("No saved progress.")
                return
            try:
                record = json.loads(raw)
            except json.JSONDecodeError:
                print("Saved progress is unreadable and will be ignored.")
                return
            if not isinstance(record, dict):
                print("Saved progress is unreadable and will be ignored.")
                return
            demographics = record.get("demographics") or {}
            print("\nSaved progress")
            print(f"  Type:      {record.get('type', '?')}")
            print(f"  Saved:     {record.get('timestamp', '?')}")
            print(f"  Answers:   {len(record.get('responses') or [])}")
            print(f"  Page:      {record.get('currentPage', 0)}")
            if isinstance(demographics, dict) and any(demographics.values()):
                parts = [f"{k}={v}" for k, v in demographics.items() if v]
                print(f"  Profile:   {', '.join(parts)}")

        elif args.progress_action == 'clear':
            if store.clear():
                print("✓ Saved progress cleared.")
            else:
                print("No saved progress.")
    finally:
        conn.close()


# ---------------------------------------------------------------------------
# Subcommand: sessions
# ---------------------------------------------------------------------------

def cmd_sessions(args):
    """Manage stored session records."""
    conn = _open_store(args)
    try:
        action = args.sessions_action

        if action == 'list':
            sessions = list_sessions(conn)
            if not sessions:
                print("No sessions found.")
                return
            print(f"\n{'ID':<32}  {'Type':<5}  {'Status':<11}  {'Answers':>7}  {'Started'}")
            print("-" * 80)
            for s in sessions:
                status = "completed" if s.get("completed") else "in progress"
                started = (s.get("start_time") or "?")[:16]
                print(
                    f"{s['id']:<32}  {s.get('type', '?'):<5}  {status:<11}  "
                    f"{s.get('response_count', 0):>7}  {started}"
                )

        elif action == 'view':
            detail = get_session_detail(conn, args.id)
            if not detail:
                print(f"Session {args.id} not found.")
                sys.exit(1)
            print_session_detail(detail)

        elif action == 'delete':
            if delete_session_by_id(conn, args.id):
                print(f"Session {args.id} deleted.")
            else:
                print(f"Session {args.id} not found.")
    finally:
        conn.close()


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="sri-assessment",
        description="Adaptive sexuality and relationships self-assessment",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--db", help="Path to the assessment store (or set SRI_ASSESSMENT_DB_PATH)")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- start ---
    p_start = subparsers.add_parser("start", help="Start or resume an assessment")
    p_start.add_argument(
        "--type", choices=list(ASSESSMENT_TYPES), default=None,
        help=f"Assessment type (default: {get_default_assessment_type()})",
    )

    # --- progress ---
    p_progress = subparsers.add_parser("progress", help="Manage saved progress")
    sp_progress = p_progress.add_subparsers(dest="progress_action", required=True)
    sp_progress.add_parser("show", help="Show saved progress")
    sp_progress.add_parser("clear", help="Erase saved progress")

    # --- sessions ---
    p_sessions = subparsers.add_parser("sessions", help="Manage sessions")
    sp_sessions = p_sessions.add_subparsers(dest="sessions_action", required=True)

    sp_sessions.add_parser("list", help="List all sessions")

    sp_view = sp_sessions.add_parser("view", help="View session details")
    sp_view.add_argument("id", help="Session ID")

    sp_delete = sp_sessions.add_parser("delete", help="Delete a session")
    sp_delete.add_argument("id", help="Session ID")

    return parser


def main(argv=None):
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Interactive output stays clean unless asked otherwise.
    configure_logging("DEBUG" if args.verbose else get_log_level("WARNING"))

    if args.command == 'start':
        cmd_start(args)
    elif args.command == 'progress':
        cmd_progress(args)
    elif args.command == 'sessions':
        cmd_sessions(args)
