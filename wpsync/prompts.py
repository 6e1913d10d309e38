"""Interactive confirmation gates."""

import click

PRODUCTION_PHRASE = "I WANT TO PUSH"


def confirm(message: str, expected: str = "y") -> bool:
    """Ask the operator to type an answer and compare it.

    Blocks until input arrives. The caller decides what a refusal means;
    this function never exits the process.

    Args:
        message: Prompt shown to the operator
        expected: Answer that counts as acceptance (case-insensitive)

    Returns:
        True if the typed answer matches ``expected``
    """
    answer = click.prompt(message, default="", show_default=False)
    return answer.strip().lower() == expected.lower()


def confirm_phrase(message: str, phrase: str = PRODUCTION_PHRASE) -> bool:
    """Ask the operator to type an exact phrase (case-sensitive)."""
    answer = click.prompt(message, default="", show_default=False)
    return answer.strip() == phrase
