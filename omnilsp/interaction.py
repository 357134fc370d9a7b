"""Ports through which provisioning talks to whoever is driving it.

The editor host supplies an implementation so that prompts and progress
messages show up in its own UI.
"""

import logging
from typing import List, Protocol

import click


class InteractionPort(Protocol):
    """Yes/no decisions and progress messages."""

    def confirm(self, prompt: str) -> bool:
        ...

    def notify(self, message: str) -> None:
        ...


class ConsoleInteraction:
    """Prompts on the terminal and echoes progress messages."""

    def __init__(self, assume_yes: bool = False):
        self.assume_yes = assume_yes

    def confirm(self, prompt: str) -> bool:
        if self.assume_yes:
            click.echo(f"{prompt} [auto-confirmed]")
            return True
        try:
            return click.confirm(prompt, default=True)
        except click.Abort:
            # EOF on stdin or Ctrl+C at the prompt
            click.echo()
            return False

    def notify(self, message: str) -> None:
        click.echo(message)


class LoggingInteraction:
    """Non-interactive port: answers every prompt with a fixed value and logs messages."""

    def __init__(self, answer: bool = True):
        self.answer = answer
        self.logger = logging.getLogger("omnilsp.interaction")
        self.messages: List[str] = []

    def confirm(self, prompt: str) -> bool:
        self.logger.info(f"{prompt} -> {'yes' if self.answer else 'no'}")
        return self.answer

    def notify(self, message: str) -> None:
        self.messages.append(message)
        self.logger.info(message)
