import click
import pytest

from omnilsp.interaction import ConsoleInteraction, LoggingInteraction


def test_console_confirm_uses_prompt(monkeypatch: pytest.MonkeyPatch) -> None:
    prompts = []
    monkeypatch.setattr(click, "confirm", lambda prompt, default: prompts.append(prompt) or False)

    assert not ConsoleInteraction().confirm("Install v1.1.0?")
    assert prompts == ["Install v1.1.0?"]


def test_console_confirm_treats_abort_as_no(monkeypatch: pytest.MonkeyPatch) -> None:
    def abort(prompt: str, default: bool) -> bool:
        raise click.Abort()

    monkeypatch.setattr(click, "confirm", abort)

    assert not ConsoleInteraction().confirm("Install v1.1.0?")


def test_console_assume_yes_skips_prompt(monkeypatch: pytest.MonkeyPatch) -> None:
    def fail(prompt: str, default: bool) -> bool:
        raise AssertionError("prompted")

    monkeypatch.setattr(click, "confirm", fail)

    assert ConsoleInteraction(assume_yes=True).confirm("Install v1.1.0?")


def test_logging_interaction_records_messages() -> None:
    interaction = LoggingInteraction(answer=False)
    interaction.notify("Downloading")

    assert not interaction.confirm("Install?")
    assert interaction.messages == ["Downloading"]
