from __future__ import annotations

import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

_YES = {"y", "yes"}
_NO = {"n", "no"}

YesNo = Callable[[str], bool]


def ask_yes_no(question: str, *, input_fn: Callable[[str], str] = input) -> bool:
    """Ask until the answer is y/yes/n/no (any case). EOF on stdin counts as no."""

    while True:
        try:
            answer = input_fn(f"{question} (yes/y or no/n): ")
        except EOFError:
            logger.warning("No answer available for %r, treating as no", question)
            return False
        answer = answer.strip().lower()
        if answer in _YES:
            return True
        if answer in _NO:
            return False
        logger.warning("Please answer yes (y/Y) or no (n/N)")


def fixed_answer(answer: bool) -> YesNo:
    """Non-interactive prompt that always returns answer (--yes / --no-optional)."""

    def _ask(question: str) -> bool:
        logger.info("%s -> %s (non-interactive)", question, "yes" if answer else "no")
        return answer

    return _ask


def make_prompt(*, assume: Optional[bool] = None, input_fn: Callable[[str], str] = input) -> YesNo:
    if assume is not None:
        return fixed_answer(assume)
    return lambda question: ask_yes_no(question, input_fn=input_fn)
