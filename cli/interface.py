"""
Terminal rendering and prompt helpers for the SRI assessment CLI.
"""

from typing import Optional

from assessment_platform.models import Demographics, GatePrompt
from assessment_platform.scales import Question
from assessment_platform.session_state_machine import step_progress

AGE_OPTIONS = [
    ("0", "14-17"),
    ("1", "18-24"),
    ("2", "25-34"),
    ("3", "35-49"),
    ("4", "50 or older"),
]

GENDER_OPTIONS = [
    ("female", "Female"),
    ("male", "Male"),
    ("non_binary", "Non-binary"),
    ("prefer_not_to_say", "Prefer not to say"),
]

RELATIONSHIP_OPTIONS = [
    ("single", "Single"),
    ("dating", "Dating"),
    ("cohabiting", "Living together"),
    ("married", "Married"),
    ("other", "Other"),
]

LIKERT_LABELS = {
    1: "Strongly disagree",
    4: "Neutral",
    7: "Strongly agree",
}

CONSENT_TEXT = """\
This assessment asks about your attitudes and experiences around sexuality
and relationships. Your answers are stored only on this device and are used
to calculate your results. You can stop at any time and continue later."""


def print_header(title: str, step: Optional[str] = None):
    print("\n" + "=" * 60)
    if step is not None:
        print(f"{title}  [{step_progress(step):.0f}%]")
    else:
        print(title)
    print("=" * 60)


def print_gate(prompt: GatePrompt):
    """Render a confirmation gate."""
    print("\n" + "-" * 60)
    print(prompt.title.upper())
    print("-" * 60)
    print(prompt.message)
    if prompt.kind == "resume":
        print("\n  [c] Continue where I left off")
        print("  [d] Discard and start over")
    else:
        print("\n  [c] Remove those answers and continue")
        print("  [r] Start over")


def print_question(question: Question, number: int, total: int, current: Optional[float] = None):
    print(f"\n  Q{number}/{total}: {question.text}")
    scale = "  ".join(
        f"{v}={LIKERT_LABELS[v]}" if v in LIKERT_LABELS else str(v) for v in range(1, 8)
    )
    print(f"    {scale}")
    if current is not None:
        print(f"    (current answer: {current:g})")


def print_results(results: dict):
    """Print the scored results."""
    print_header("YOUR RESULTS")
    print(f"  Overall index: {results.get('index', '?')} ({results.get('level', '?')})")
    print(f"  Answers scored: {results.get('answered', 0)}")
    scales = results.get("scales", {})
    if scales:
        print("\n  By scale:")
        for scale_id, detail in scales.items():
            print(
                f"    {scale_id:<6} {detail.get('name', ''):<40} "
                f"{detail.get('score', 0):>5}  {detail.get('level', '')}"
            )


def print_session_detail(detail: dict):
    """Pretty-print a stored session."""
    print(f"\nSession {detail['id']}")
    print(f"  Type:      {detail.get('type', '?')}")
    print(f"  Started:   {detail.get('startTime', '?')}")
    if detail.get("endTime"):
        print(f"  Finished:  {detail['endTime']}")
    print(f"  Completed: {'yes' if detail.get('completed') else 'no'}")
    demographics = detail.get("demographics") or {}
    if any(demographics.values()):
        parts = [f"{k}={v}" for k, v in demographics.items() if v]
        print(f"  Profile:   {', '.join(parts)}")
    print(f"  Answers:   {len(detail.get('responses') or [])}")
    if detail.get("results"):
        print_results(detail["results"])


def choose_option(label: str, options: list[tuple[str, str]], default: Optional[str] = None) -> str:
    """Ask for one of *options* by number. Raises EOFError/KeyboardInterrupt through."""
    print(f"\n  {label}:")
    for i, (code, text) in enumerate(options, 1):
        marker = " (current)" if code == default else ""
        print(f"    {i}. {text}{marker}")
    while True:
        raw = input("  > ").strip()
        if not raw and default is not None:
            return default
        if raw.isdigit() and 1 <= int(raw) <= len(options):
            return options[int(raw) - 1][0]
        print(f"  Please enter a number between 1 and {len(options)}.")


def ask_demographics(current: Optional[Demographics] = None) -> Demographics:
    """Collect demographics interactively, offering *current* as defaults."""
    age = choose_option("Age", AGE_OPTIONS, current.age if current else None)
    gender = choose_option("Gender", GENDER_OPTIONS, current.gender if current else None)
    relationship = choose_option(
        "Relationship status", RELATIONSHIP_OPTIONS,
        current.relationship_status if current else None,
    )
    return Demographics(age=age, gender=gender, relationship_status=relationship)
