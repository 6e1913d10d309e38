"""Transfer directions."""

from enum import Enum


class Direction(str, Enum):
    """Direction of a transfer relative to the local environment."""

    PUSH = "push"
    """Local -> remote"""

    PULL = "pull"
    """Remote -> local"""

    @classmethod
    def from_string(cls, value: str) -> "Direction":
        """Parse a direction name (case-insensitive).

        Raises:
            ValueError: If the value is not a known direction
        """
        try:
            return cls(value.lower())
        except ValueError:
            valid = ", ".join(d.value for d in cls)
            raise ValueError(
                f"Invalid direction: {value}. Valid directions: {valid}"
            ) from None

    @property
    def destination_label(self) -> str:
        """Which side gets overwritten, for prompts."""
        if self is Direction.PUSH:
            return "REMOTE"
        if self is Direction.PULL:
            return "LOCAL"
        raise AssertionError(f"Unhandled direction: {self!r}")
