"""Interactive prompts, rendered with click."""

from __future__ import annotations

import logging

import click

from openmrs_pr.orchestrator.errors import MissingValueError

logger = logging.getLogger(__name__)

DEFAULT_VALUE_TEMPLATE = "Please specify %s"


class ConsoleWizard:
    """Asks the user for missing values and confirmations on the terminal.

    In batch mode nothing is asked: yes/no questions answer yes, values with a
    default take it, and a missing required value raises MissingValueError.
    """

    def __init__(self, *, interactive: bool = True) -> None:
        self.interactive = interactive

    def prompt_for_value_if_missing(
        self, current: str | None, label: str, *, password: bool = False
    ) -> str:
        if current:
            return current
        if not self.interactive:
            raise MissingValueError(label)
        value: str = click.prompt(DEFAULT_VALUE_TEMPLATE % label, hide_input=password)
        return value

    def prompt_for_value_if_missing_with_default(
        self, template: str, current: str | None, label: str, default: str
    ) -> str:
        if current:
            return current
        if not self.interactive:
            return default
        value: str = click.prompt(template % label, default=default, show_default=False)
        return value

    def prompt_yes_no(self, question: str) -> bool:
        if not self.interactive:
            logger.info("Batch mode: answering yes", extra={"question": question})
            return True
        return click.confirm(question, default=True)

    def show_message(self, text: str) -> None:
        click.echo(text)
