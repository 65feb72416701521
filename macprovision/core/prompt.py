"""
Prompt — the one place the operator is asked anything.

Contract:
    confirm(question, default_answer) -> Answer
    ask(question) -> str

Blank input resolves to the default. ``y``/``yes``/``n``/``no`` are
accepted in any case. Anything else is asked again, at most
MAX_ATTEMPTS times, and then the default wins. ``ask`` returns the
trimmed line unvalidated.

An unreadable input stream (EOF, closed or broken stdin) raises
PromptError internally; it is resolved here to the default answer for
``confirm`` and to an empty string for ``ask``. It never escapes.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import click

from macprovision.core.errors import PromptError
from macprovision.core.models.step import Answer

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3

_YES = {"y", "yes"}
_NO = {"n", "no"}


class Prompt:
    """Line-based operator prompt.

    Args:
        input_stream: Where answers are read from. Defaults to the
            process stdin, looked up at call time.
        output_stream: Where questions are written. Defaults to stdout.
        color: Whether to style questions (red, as the installer always has).
    """

    def __init__(
        self,
        input_stream: TextIO | None = None,
        output_stream: TextIO | None = None,
        color: bool | None = None,
    ):
        self._input = input_stream
        self._output = output_stream
        self._color = color

    def confirm(self, question: str, default_answer: Answer = Answer.NO) -> Answer:
        """Ask a yes/no question; blank input means ``default_answer``."""
        hint = "[Y/n]" if default_answer is Answer.YES else "[y/N]"

        for _ in range(MAX_ATTEMPTS):
            self._write(question, hint)
            try:
                reply = self._read_line().lower()
            except PromptError as e:
                logger.debug("Prompt input unavailable (%s), using default %s", e, default_answer.value)
                self._newline()
                return default_answer

            if not reply:
                return default_answer
            if reply in _YES:
                return Answer.YES
            if reply in _NO:
                return Answer.NO
            click.echo("Please answer y or n.", file=self._output, color=self._color)

        logger.debug("No valid answer to %r, using default %s", question, default_answer.value)
        return default_answer

    def ask(self, question: str) -> str:
        """Ask for free text; returns the trimmed line."""
        self._write(question, "")
        try:
            return self._read_line()
        except PromptError as e:
            logger.debug("Prompt input unavailable (%s), returning empty answer", e)
            self._newline()
            return ""

    # ── I/O ─────────────────────────────────────────────────────

    def _write(self, question: str, hint: str) -> None:
        text = click.style(question, fg="red")
        if hint:
            text = f"{text} {hint}"
        click.echo(f"{text} ", nl=False, file=self._output, color=self._color)

    def _newline(self) -> None:
        click.echo("", file=self._output, color=self._color)

    def _read_line(self) -> str:
        stream = self._input or sys.stdin
        try:
            line = stream.readline()
        except (OSError, ValueError) as e:
            raise PromptError(f"cannot read input: {e}") from e
        if line == "":
            raise PromptError("end of input")
        return line.strip()
