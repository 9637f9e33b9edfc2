"""
Tests for cli.interface rendering and prompts.
"""

from unittest.mock import patch

from assessment_platform.models import Demographics, GatePrompt
from assessment_platform.scales import Question
from cli.interface import (
    AGE_OPTIONS,
    ask_demographics,
    choose_option,
    print_gate,
    print_question,
)


class TestChooseOption:
    def test_picks_by_number(self):
        with patch("builtins.input", return_value="2"):
            assert choose_option("Age", AGE_OPTIONS) == "1"

    def test_enter_keeps_default(self):
        with patch("builtins.input", return_value=""):
            assert choose_option("Age", AGE_OPTIONS, default="4") == "4"

    def test_reprompts_on_bad_input(self, capsys):
        with patch("builtins.input", side_effect=["9", "abc", "1"]):
            assert choose_option("Age", AGE_OPTIONS) == "0"
        assert capsys.readouterr().out.count("Please enter a number") == 2


def test_ask_demographics_offers_current_values():
    current = Demographics(age="0", gender="male", relationship_status="single")
    with patch("builtins.input", side_effect=["", "", "4"]):
        result = ask_demographics(current)
    assert result == Demographics(age="0", gender="male", relationship_status="married")
    assert result.is_minor


def test_print_gate_resume_options(capsys):
    print_gate(GatePrompt(kind="resume", title="Continue?", message="3 saved", response_count=3))
    out = capsys.readouterr().out
    assert "CONTINUE?" in out
    assert "[d] Discard" in out


def test_print_gate_data_change_options(capsys):
    print_gate(GatePrompt(kind="data_change", title="Changed", message="2 of 5"))
    out = capsys.readouterr().out
    assert "[r] Start over" in out


def test_print_question_shows_current_answer(capsys):
    print_question(Question(id="a_1", text="I am calm."), 1, 8, current=5)
    out = capsys.readouterr().out
    assert "Q1/8: I am calm." in out
    assert "current answer: 5" in out
