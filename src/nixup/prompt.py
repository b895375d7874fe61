"""Interactive yes/no prompts.

Each question is a short-lived state machine::

    AWAITING_INPUT --y*--> YES_BRANCH
                   --n*--> NO_BRANCH
                   --else--> REPROMPT --(hint)--> AWAITING_INPUT

There is no retry limit: the operator is asked again until a valid answer
arrives. Only the end of input breaks the loop (InputClosedError).
"""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING, Callable, Optional

from nixup.exceptions import InputClosedError

if TYPE_CHECKING:
    from nixup.transcript import Transcript

logger = logging.getLogger(__name__)

REPROMPT_HINT = "Please answer y or n."

InputFunc = Callable[[str], str]


class PromptState(str, enum.Enum):
    """States of a single yes/no question."""

    AWAITING_INPUT = "awaiting_input"
    YES_BRANCH = "yes_branch"
    NO_BRANCH = "no_branch"
    REPROMPT = "reprompt"


def classify_answer(answer: str) -> PromptState:
    """Map a raw answer to the state it transitions to.

    Affirmative answers start with ``y``/``Y``, negative ones with ``n``/``N``.
    Anything else (including an empty line) asks again.
    """
    first = answer.strip()[:1]
    if first in ("y", "Y"):
        return PromptState.YES_BRANCH
    if first in ("n", "N"):
        return PromptState.NO_BRANCH
    return PromptState.REPROMPT


def is_strict_yes(answer: str, literal: str = "YES") -> bool:
    """True only for the exact confirmation literal (case-sensitive)."""
    return answer.strip() == literal


class Prompter:
    """Asks questions through the transcript and reads answers from an input function.

    Args:
        transcript: Where questions, hints and answers are written.
        input_func: Reads one answer; called with an empty prompt string
            because the question is already printed by the transcript.
            Must raise EOFError when input is exhausted. Defaults to the
            transcript console's ``input``.
    """

    def __init__(
        self,
        transcript: Transcript,
        input_func: Optional[InputFunc] = None,
    ) -> None:
        self.transcript = transcript
        self._input = input_func or transcript.console.input

    def _read(self, question: str) -> str:
        try:
            answer = self._input("")
        except EOFError:
            raise InputClosedError(question) from None
        self.transcript.record(f"> {answer}")
        return answer

    def ask(self, question: str) -> bool:
        """Ask a y/n question until answered; return True for yes."""
        state = PromptState.AWAITING_INPUT
        while state is not PromptState.YES_BRANCH and state is not PromptState.NO_BRANCH:
            if state is PromptState.REPROMPT:
                self.transcript.log(REPROMPT_HINT)
            self.transcript.log_action(question)
            state = classify_answer(self._read(question))
            logger.debug("prompt %r -> %s", question, state.value)
        return state is PromptState.YES_BRANCH

    def confirm_strict(self, question: str, literal: str = "YES") -> bool:
        """Ask once; only the exact ``literal`` confirms, anything else declines."""
        self.transcript.log_action(question)
        confirmed = is_strict_yes(self._read(question), literal)
        logger.debug("strict prompt %r -> %s", question, confirmed)
        return confirmed
