"""
Immutable cursor over manifest text.

Token parsers take a Cursor and hand back the parsed value together with a
new, advanced Cursor. The receiver is never modified.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from .errors import InternalError

WHITESPACE = " \t\r\n\f\v"


class ScannableError(Exception):
    """A malformed or incomplete token found while scanning."""

    def __init__(self, message: str, current_line: Optional[str] = None):
        self.message = message
        self.current_line = current_line
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.current_line is None:
            return self.message
        return f"{self.message} in line: {self.current_line}"


@dataclass(frozen=True)
class Cursor:
    """A position-tracking view over a string."""

    text: str
    position: int = 0

    def advance(self, count: int) -> "Cursor":
        """Return a cursor moved forward by ``count`` characters."""
        new_position = self.position + count
        if count < 0 or new_position > len(self.text):
            raise InternalError(
                f"cursor cannot move from {self.position} to {new_position} "
                f"in text of length {len(self.text)}"
            )
        return Cursor(self.text, new_position)

    def skip_whitespace(self) -> "Cursor":
        position = self.position
        while position < len(self.text) and self.text[position] in WHITESPACE:
            position += 1
        if position == self.position:
            return self
        return Cursor(self.text, position)

    def peek(self, literal: str) -> bool:
        """Check whether ``literal`` follows, ignoring leading whitespace."""
        cursor = self.skip_whitespace()
        return cursor.text.startswith(literal, cursor.position)

    def consume(self, literal: str) -> Optional["Cursor"]:
        """
        Skip whitespace and consume ``literal``.

        Returns:
            Optional[Cursor]: The advanced cursor, or None if the literal
            does not follow.
        """
        if not self.peek(literal):
            return None
        return self.skip_whitespace().advance(len(literal))

    def consume_up_to(self, terminator: str) -> Tuple[str, "Cursor"]:
        """Take everything before ``terminator`` (or the end of input)."""
        index = self.text.find(terminator, self.position)
        if index == -1:
            index = len(self.text)
        return self.text[self.position:index], self.advance(index - self.position)

    def consume_while(self, predicate: Callable[[str], bool]) -> Tuple[str, "Cursor"]:
        position = self.position
        while position < len(self.text) and predicate(self.text[position]):
            position += 1
        return self.text[self.position:position], self.advance(position - self.position)

    @property
    def at_end(self) -> bool:
        """True when nothing but whitespace remains."""
        return self.skip_whitespace().position >= len(self.text)

    @property
    def remaining(self) -> str:
        return self.text[self.position:]

    @property
    def current_line(self) -> str:
        """Text of the logical line containing the current position."""
        start = max(
            self.text.rfind("\n", 0, self.position),
            self.text.rfind("\r", 0, self.position),
        ) + 1
        end = len(self.text)
        for separator in ("\n", "\r"):
            index = self.text.find(separator, self.position)
            if index != -1:
                end = min(end, index)
        return self.text[start:end]
