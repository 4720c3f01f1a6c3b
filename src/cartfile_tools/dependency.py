import re
from dataclasses import dataclass
from enum import Enum
from functools import total_ordering
from typing import Tuple
from urllib.parse import urlparse

from .cursor import Cursor, ScannableError

QUOTE = '"'

_GITHUB_SHORTHAND = re.compile(r"^[^/\s]+/[^/\s]+$")


class DependencyKind(Enum):
    """Where a dependency is fetched from."""

    GITHUB = "github"
    GIT = "git"
    BINARY = "binary"


# "github" must be tried before its prefix "git".
_KEYWORD_ORDER = (DependencyKind.GITHUB, DependencyKind.GIT, DependencyKind.BINARY)


@total_ordering
@dataclass(frozen=True)
class Dependency:
    """A dependency identifier: its source kind and location."""

    kind: DependencyKind
    location: str

    def __str__(self) -> str:
        return f'{self.kind.value} {QUOTE}{self.location}{QUOTE}'

    def __lt__(self, other: "Dependency") -> bool:
        if not isinstance(other, Dependency):
            return NotImplemented
        return str(self) < str(other)

    @property
    def is_binary(self) -> bool:
        return self.kind is DependencyKind.BINARY

    @property
    def name(self) -> str:
        """Short name of the dependency, e.g. ``ReactiveSwift``."""
        component = self.location.rstrip("/").rsplit("/", 1)[-1]
        for suffix in (".git", ".json"):
            if component.endswith(suffix):
                return component[: -len(suffix)]
        return component


def _scan_quoted_location(cursor: Cursor) -> Tuple[str, Cursor]:
    opened = cursor.consume(QUOTE)
    if opened is None:
        raise ScannableError(
            "expected string after dependency type", cursor.current_line
        )

    value, after = opened.consume_up_to(QUOTE)
    if after.position >= len(after.text) or "\n" in value or "\r" in value:
        raise ScannableError(
            "unterminated string after dependency type", opened.current_line
        )
    if not value:
        raise ScannableError("empty string after dependency type", opened.current_line)

    return value, after.advance(len(QUOTE))


def _validate_github(location: str, line: str) -> None:
    parsed = urlparse(location)
    if parsed.scheme and parsed.netloc:
        path = parsed.path.strip("/")
        if _GITHUB_SHORTHAND.match(path):
            return
    elif _GITHUB_SHORTHAND.match(location):
        return
    raise ScannableError(f'invalid GitHub repository identifier "{location}"', line)


def _validate_binary(location: str, line: str) -> None:
    scheme = urlparse(location).scheme.lower()
    if scheme == "http":
        raise ScannableError("non-https URL found for dependency type binary", line)
    # A single-letter scheme is a Windows drive, i.e. a plain path.
    if scheme not in ("", "https", "file") and len(scheme) > 1:
        raise ScannableError(
            f'invalid URL "{location}" found for dependency type binary', line
        )


def parse_dependency(cursor: Cursor) -> Tuple[Dependency, Cursor]:
    """
    Scan one dependency identifier.

    Args:
        cursor: Position to scan from; leading whitespace is skipped

    Returns:
        Tuple[Dependency, Cursor]: The identifier and the cursor after it

    Raises:
        ScannableError: If no valid identifier follows
    """
    start = cursor.skip_whitespace()
    for kind in _KEYWORD_ORDER:
        after_keyword = start.consume(kind.value)
        if after_keyword is not None:
            break
    else:
        raise ScannableError("unexpected dependency type", start.current_line)

    location, after = _scan_quoted_location(after_keyword)

    if kind is DependencyKind.GITHUB:
        _validate_github(location, start.current_line)
    elif kind is DependencyKind.BINARY:
        _validate_binary(location, start.current_line)

    return Dependency(kind, location), after
