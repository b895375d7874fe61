"""Tests for the yes/no prompt state machine."""

from __future__ import annotations

import pytest

from nixup.exceptions import InputClosedError
from nixup.prompt import (
    REPROMPT_HINT,
    Prompter,
    PromptState,
    classify_answer,
    is_strict_yes,
)
from tests.conftest import log_text, scripted_input, terminal_text


class TestClassifyAnswer:

    @pytest.mark.parametrize("answer", ["y", "Y", "yes", "Yes", "yep", "  y  ", "y\n"])
    def test_affirmative(self, answer: str):
        assert classify_answer(answer) is PromptState.YES_BRANCH

    @pytest.mark.parametrize("answer", ["n", "N", "no", "No", "nope", " n"])
    def test_negative(self, answer: str):
        assert classify_answer(answer) is PromptState.NO_BRANCH

    @pytest.mark.parametrize("answer", ["", "   ", "maybe", "1", "ok", "?", "es"])
    def test_anything_else_reprompts(self, answer: str):
        assert classify_answer(answer) is PromptState.REPROMPT


class TestStrictYes:

    def test_exact_literal(self):
        assert is_strict_yes("YES")

    def test_surrounding_whitespace_ignored(self):
        assert is_strict_yes(" YES\n")

    @pytest.mark.parametrize("answer", ["y", "yes", "Yes", "YEs", "YES!", "n", ""])
    def test_everything_else_declines(self, answer: str):
        assert not is_strict_yes(answer)

    def test_custom_literal(self):
        assert is_strict_yes("DELETE", literal="DELETE")
        assert not is_strict_yes("YES", literal="DELETE")


class TestPrompterAsk:

    def test_yes(self, transcript):
        prompter = Prompter(transcript, scripted_input(["y"]))
        assert prompter.ask("Continue? (y/n)") is True

    def test_no(self, transcript):
        prompter = Prompter(transcript, scripted_input(["n"]))
        assert prompter.ask("Continue? (y/n)") is False

    def test_invalid_answers_reprompt_until_valid(self, transcript):
        answers = scripted_input(["", "maybe", "42", "y"])
        prompter = Prompter(transcript, answers)

        assert prompter.ask("Continue? (y/n)") is True
        assert answers.remaining == []

        output = terminal_text(transcript)
        assert output.count(REPROMPT_HINT) == 3
        assert output.count("Continue? (y/n)") == 4

    def test_stops_at_first_valid_answer(self, transcript):
        answers = scripted_input(["x", "n", "y"])
        prompter = Prompter(transcript, answers)

        assert prompter.ask("Continue? (y/n)") is False
        assert answers.remaining == ["y"]

    def test_long_run_of_invalid_answers(self, transcript):
        answers = scripted_input(["?"] * 50 + ["n"])
        prompter = Prompter(transcript, answers)

        assert prompter.ask("Continue? (y/n)") is False
        assert terminal_text(transcript).count(REPROMPT_HINT) == 50

    def test_hint_follows_invalid_answer(self, transcript):
        prompter = Prompter(transcript, scripted_input(["what", "y"]))
        prompter.ask("Q? (y/n)")

        lines = terminal_text(transcript).splitlines()
        assert lines == [
            "[PROMPT] Q? (y/n)",
            f"[INFO] {REPROMPT_HINT}",
            "[PROMPT] Q? (y/n)",
        ]

    def test_end_of_input_raises(self, transcript):
        prompter = Prompter(transcript, scripted_input(["huh"]))
        with pytest.raises(InputClosedError) as exc_info:
            prompter.ask("Continue? (y/n)")
        assert exc_info.value.question == "Continue? (y/n)"

    def test_answers_recorded_in_log_only(self, transcript):
        prompter = Prompter(transcript, scripted_input(["maybe", "y"]))
        prompter.ask("Continue? (y/n)")

        assert "> maybe" in log_text(transcript)
        assert "> y" in log_text(transcript)
        assert "> maybe" not in terminal_text(transcript)


class TestPrompterConfirmStrict:

    def test_yes_literal_confirms(self, transcript):
        prompter = Prompter(transcript, scripted_input(["YES"]))
        assert prompter.confirm_strict("Really? (YES/n)") is True

    @pytest.mark.parametrize("answer", ["y", "yes", "Yes", "n", "", "whatever"])
    def test_anything_else_declines_without_reprompt(self, transcript, answer: str):
        answers = scripted_input([answer, "YES"])
        prompter = Prompter(transcript, answers)

        assert prompter.confirm_strict("Really? (YES/n)") is False
        assert answers.remaining == ["YES"]
        assert REPROMPT_HINT not in terminal_text(transcript)

    def test_end_of_input_raises(self, transcript):
        prompter = Prompter(transcript, scripted_input([]))
        with pytest.raises(InputClosedError):
            prompter.confirm_strict("Really? (YES/n)")
