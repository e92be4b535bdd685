"""
Interactive prompts.

Each prompt is a small state machine: PROMPTING until an answer parses
(VALID) or the user aborts (ABORTED, Ctrl-C / EOF). Invalid answers
re-prompt; ``max_attempts=None`` keeps asking forever.
"""

from __future__ import annotations

import enum
import re
from typing import Callable, Optional

import typer

from orcajobs.errors import ConfirmationDeclined, UsageError

YES = {"y", "yes"}
NO = {"n", "no"}
HOURS_RE = re.compile(r"[0-9]+")


class PromptState(enum.Enum):
    PROMPTING = "prompting"
    VALID = "valid"
    ABORTED = "aborted"


def _ask(
    question: str,
    parse: Callable[[str], Optional[object]],
    *,
    retry_msg: str,
    max_attempts: Optional[int] = None,
):
    state = PromptState.PROMPTING
    attempts = 0
    value = None
    while state is PromptState.PROMPTING:
        try:
            raw = typer.prompt(question, default="", show_default=False)
        except typer.Abort:
            state = PromptState.ABORTED
            break
        value = parse(raw.strip())
        if value is not None:
            state = PromptState.VALID
            break
        attempts += 1
        if max_attempts is not None and attempts >= max_attempts:
            raise UsageError(f"No valid answer after {attempts} attempt(s)")
        typer.echo(retry_msg)

    if state is PromptState.ABORTED:
        raise ConfirmationDeclined("Aborted by user")
    return value


def _parse_yes_no(raw: str) -> Optional[bool]:
    answer = raw.lower()
    if answer in YES:
        return True
    if answer in NO:
        return False
    return None


def ask_yes_no(question: str, *, max_attempts: Optional[int] = None) -> bool:
    """Ask a y/n question; returns True for yes, False for no."""
    return _ask(
        f"{question} [y/n]",
        _parse_yes_no,
        retry_msg="Please answer y or n.",
        max_attempts=max_attempts,
    )


def ask_hours(question: str = "Wall time in hours", *, max_attempts: Optional[int] = None) -> str:
    """Ask for a non-negative whole number of hours, returned as the digit string."""
    return _ask(
        question,
        lambda raw: raw if HOURS_RE.fullmatch(raw) else None,
        retry_msg="Please enter a whole number of hours.",
        max_attempts=max_attempts,
    )
