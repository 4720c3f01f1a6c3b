"""
The three manifest formats: Cartfile, Cartfile.resolved and Cartfile.schemes.

Each type parses itself from text with ``from_string`` and renders back to
canonical text with ``render`` (also used by ``str``). Canonical text is
sorted by the dependency's textual form and ends with a single newline.
"""

from dataclasses import dataclass, field
from typing import ClassVar, Dict, FrozenSet, Iterable, List, Tuple

from .comments import COMMENT_INDICATOR, is_comment_line, strip_trailing_comment
from .cursor import Cursor, ScannableError
from .dependency import Dependency, parse_dependency
from .errors import (
    DuplicateDependenciesError,
    DuplicateDependency,
    ParseError,
    SemanticError,
)
from .version import (
    PinnedVersion,
    SpecifierKind,
    VersionSpecifier,
    parse_pinned_version,
    parse_version_specifier,
)

CARTFILE_PATH = "Cartfile"
PRIVATE_CARTFILE_PATH = "Cartfile.private"
RESOLVED_CARTFILE_PATH = "Cartfile.resolved"
SCHEMES_CARTFILE_PATH = "Cartfile.schemes"


def _render_lines(lines: List[str]) -> str:
    return "\n".join(lines) + "\n"


def _parse_declaration(
    line: str, comment_indicator: str
) -> Tuple[Dependency, VersionSpecifier]:
    """Parse one non-blank, non-comment Cartfile line."""
    content = strip_trailing_comment(line, comment_indicator).strip()
    cursor = Cursor(content)

    try:
        dependency, cursor = parse_dependency(cursor)
        specifier, cursor = parse_version_specifier(cursor)
    except ScannableError as e:
        raise ParseError(str(e)) from e

    if dependency.is_binary and specifier.is_git_reference:
        raise SemanticError(
            "binary dependencies cannot have a git reference for the version "
            f"specifier in line: {line}"
        )

    if not cursor.at_end:
        raise SemanticError(f"unexpected trailing characters in line: {line}")

    return dependency, specifier


@dataclass
class Cartfile:
    """A project's declared dependencies and their version constraints."""

    relative_path: ClassVar[str] = CARTFILE_PATH
    comment_indicator: ClassVar[str] = COMMENT_INDICATOR

    dependencies: Dict[Dependency, VersionSpecifier] = field(default_factory=dict)

    @classmethod
    def from_string(cls, text: str) -> "Cartfile":
        """
        Parse Cartfile text.

        Malformed lines abort the parse straight away. Dependencies declared
        more than once are collected and reported together after the last
        line.

        Args:
            text: Full Cartfile contents

        Returns:
            Cartfile: The parsed declarations

        Raises:
            ParseError: On the first malformed or forbidden line
            DuplicateDependenciesError: If any dependency is declared twice
        """
        dependencies: Dict[Dependency, VersionSpecifier] = {}
        duplicates: List[Dependency] = []

        for line in text.splitlines():
            if is_comment_line(line, cls.comment_indicator):
                continue
            if not line.strip():
                continue

            dependency, specifier = _parse_declaration(line, cls.comment_indicator)
            if dependency in dependencies:
                if dependency not in duplicates:
                    duplicates.append(dependency)
            else:
                dependencies[dependency] = specifier

        if duplicates:
            raise DuplicateDependenciesError(
                [DuplicateDependency(dependency) for dependency in duplicates]
            )
        return cls(dependencies)

    def append(self, other: "Cartfile") -> None:
        """Merge another Cartfile into this one; its entries win on conflict."""
        for dependency, specifier in other.dependencies.items():
            self.dependencies[dependency] = specifier

    def render(self) -> str:
        lines = []
        for dependency, specifier in sorted(
            self.dependencies.items(), key=lambda item: str(item[0])
        ):
            if specifier.kind is SpecifierKind.ANY:
                lines.append(str(dependency))
            else:
                lines.append(f"{dependency} {specifier}")
        return _render_lines(lines)

    def __str__(self) -> str:
        return self.render()


def duplicate_dependencies_in(first: Cartfile, second: Cartfile) -> List[Dependency]:
    """Dependencies declared in both Cartfiles."""
    return sorted(set(first.dependencies) & set(second.dependencies))


@dataclass(frozen=True)
class ResolvedCartfile:
    """The exact version checked out for each dependency."""

    relative_path: ClassVar[str] = RESOLVED_CARTFILE_PATH

    dependencies: Dict[Dependency, PinnedVersion] = field(default_factory=dict)

    @classmethod
    def from_string(cls, text: str) -> "ResolvedCartfile":
        """
        Parse Cartfile.resolved text.

        The file is machine generated, so it is scanned as one stream of
        dependency/version pairs. A dependency listed again replaces the
        earlier entry.
        """
        dependencies: Dict[Dependency, PinnedVersion] = {}
        cursor = Cursor(text)

        while not cursor.at_end:
            try:
                dependency, cursor = parse_dependency(cursor)
                pinned_version, cursor = parse_pinned_version(cursor)
            except ScannableError as e:
                raise ParseError(str(e)) from e
            dependencies[dependency] = pinned_version

        return cls(dependencies)

    def render(self) -> str:
        return _render_lines(
            [
                f'{dependency} "{pinned_version}"'
                for dependency, pinned_version in sorted(
                    self.dependencies.items(), key=lambda item: str(item[0])
                )
            ]
        )

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class LiteralSchemeMatcher:
    """Matches scheme names exactly, case-sensitively."""

    scheme_names: FrozenSet[str]

    def matches(self, scheme_name: str) -> bool:
        return scheme_name in self.scheme_names


@dataclass(frozen=True)
class SchemeCartfile:
    """The build schemes a project allows to be built."""

    relative_path: ClassVar[str] = SCHEMES_CARTFILE_PATH
    comment_indicator: ClassVar[str] = COMMENT_INDICATOR

    schemes: FrozenSet[str] = frozenset()

    def __post_init__(self):
        object.__setattr__(self, "schemes", frozenset(self.schemes))

    @classmethod
    def from_schemes(cls, schemes: Iterable[str]) -> "SchemeCartfile":
        return cls(frozenset(schemes))

    @classmethod
    def from_string(cls, text: str) -> "SchemeCartfile":
        schemes = set()
        for line in text.splitlines():
            if line.startswith(cls.comment_indicator):
                continue
            scheme = line.strip()
            if scheme:
                schemes.add(scheme)
        return cls(frozenset(schemes))

    @property
    def matcher(self) -> LiteralSchemeMatcher:
        return LiteralSchemeMatcher(self.schemes)

    def render(self) -> str:
        return _render_lines(sorted(self.schemes))

    def __str__(self) -> str:
        return self.render()
