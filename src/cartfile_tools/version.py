import re
from dataclasses import dataclass
from enum import Enum
from functools import total_ordering
from typing import Optional, Tuple

from .cursor import Cursor, ScannableError

QUOTE = '"'

_VERSION_PATTERN = re.compile(
    r"^(?P<major>\d+)(?:\.(?P<minor>\d+))?(?:\.(?P<patch>\d+))?"
    r"(?:-(?P<prerelease>[0-9A-Za-z.-]*))?(?:\+(?P<build>[0-9A-Za-z.-]+))?$"
)


def _is_version_character(character: str) -> bool:
    return character.isalnum() or character in ".-+"


@total_ordering
@dataclass(frozen=True)
class SemanticVersion:
    """A semantic version as used in version constraints."""

    major: int
    minor: int = 0
    patch: int = 0
    prerelease: Optional[str] = None
    build: Optional[str] = None

    def _precedence(self) -> tuple:
        prerelease_key: tuple = ()
        if self.prerelease is not None:
            prerelease_key = tuple(
                (0, int(part), "") if part.isdigit() else (1, 0, part)
                for part in self.prerelease.split(".")
            )
        return (
            self.major,
            self.minor,
            self.patch,
            self.prerelease is None,
            prerelease_key,
        )

    def __lt__(self, other: "SemanticVersion") -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._precedence() < other._precedence()

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease is not None:
            text += f"-{self.prerelease}"
        if self.build is not None:
            text += f"+{self.build}"
        return text

    @classmethod
    def from_string(cls, text: str) -> "SemanticVersion":
        """Parse a version such as ``1.2``, ``1.2.3-beta.1`` or ``2.0.0+42``."""
        match = _VERSION_PATTERN.match(text)
        if match is None:
            raise ValueError(f'invalid version number "{text}"')
        if match.group("prerelease") == "":
            raise ValueError(f'empty pre-release identifier in "{text}"')
        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor") or 0),
            patch=int(match.group("patch") or 0),
            prerelease=match.group("prerelease"),
            build=match.group("build"),
        )


def parse_semantic_version(cursor: Cursor) -> Tuple[SemanticVersion, Cursor]:
    start = cursor.skip_whitespace()
    token, after = start.consume_while(_is_version_character)
    if not token:
        raise ScannableError("expected version number", start.current_line)
    try:
        return SemanticVersion.from_string(token), after
    except ValueError as e:
        raise ScannableError(str(e), start.current_line) from e


class SpecifierKind(Enum):
    """The shape of a version constraint."""

    ANY = "any"
    EXACTLY = "=="
    AT_LEAST = ">="
    COMPATIBLE_WITH = "~>"
    GIT_REFERENCE = "git-reference"


_OPERATORS = (
    SpecifierKind.EXACTLY,
    SpecifierKind.AT_LEAST,
    SpecifierKind.COMPATIBLE_WITH,
)


@dataclass(frozen=True)
class VersionSpecifier:
    """A version constraint attached to a declared dependency."""

    kind: SpecifierKind
    version: Optional[SemanticVersion] = None
    reference: Optional[str] = None

    @classmethod
    def any(cls) -> "VersionSpecifier":
        return cls(SpecifierKind.ANY)

    @classmethod
    def git_reference(cls, reference: str) -> "VersionSpecifier":
        return cls(SpecifierKind.GIT_REFERENCE, reference=reference)

    @property
    def is_git_reference(self) -> bool:
        return self.kind is SpecifierKind.GIT_REFERENCE

    def is_satisfied_by(self, version: SemanticVersion) -> bool:
        """
        Check a concrete version against this constraint.

        Git references name a branch or commit, not a version, so they are
        never satisfied by a semantic version.
        """
        if self.kind is SpecifierKind.ANY:
            return True
        if self.kind is SpecifierKind.GIT_REFERENCE:
            return False
        if self.kind is SpecifierKind.EXACTLY:
            return version == self.version
        if self.kind is SpecifierKind.AT_LEAST:
            return version >= self.version

        # ~> stays within the same major version (same minor for 0.x).
        if version < self.version or version.major != self.version.major:
            return False
        return self.version.major != 0 or version.minor == self.version.minor

    def __str__(self) -> str:
        if self.kind is SpecifierKind.ANY:
            return ""
        if self.kind is SpecifierKind.GIT_REFERENCE:
            return f"{QUOTE}{self.reference}{QUOTE}"
        return f"{self.kind.value} {self.version}"


def parse_version_specifier(cursor: Cursor) -> Tuple[VersionSpecifier, Cursor]:
    """
    Scan an optional version constraint.

    Nothing recognisable at the cursor means "any version"; in that case the
    returned cursor is the one passed in.
    """
    for kind in _OPERATORS:
        after_operator = cursor.consume(kind.value)
        if after_operator is not None:
            version, after = parse_semantic_version(after_operator)
            return VersionSpecifier(kind, version=version), after

    opened = cursor.consume(QUOTE)
    if opened is None:
        return VersionSpecifier.any(), cursor

    reference, after = opened.consume_up_to(QUOTE)
    if after.position >= len(after.text) or "\n" in reference or "\r" in reference:
        raise ScannableError("unterminated Git reference", opened.current_line)
    if not reference:
        raise ScannableError("empty Git reference", opened.current_line)
    return VersionSpecifier.git_reference(reference), after.advance(len(QUOTE))


@dataclass(frozen=True)
class PinnedVersion:
    """An exact, already resolved version: a tag or a commit SHA."""

    commitish: str

    def __str__(self) -> str:
        return self.commitish


def parse_pinned_version(cursor: Cursor) -> Tuple[PinnedVersion, Cursor]:
    opened = cursor.consume(QUOTE)
    if opened is None:
        raise ScannableError(
            "expected pinned version", cursor.skip_whitespace().current_line
        )

    commitish, after = opened.consume_up_to(QUOTE)
    if after.position >= len(after.text) or "\n" in commitish or "\r" in commitish:
        raise ScannableError("unterminated pinned version", opened.current_line)
    if not commitish:
        raise ScannableError("empty pinned version", opened.current_line)
    return PinnedVersion(commitish), after.advance(len(QUOTE))
