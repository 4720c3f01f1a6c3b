"""
Error taxonomy for manifest parsing and loading.

Scan and semantic failures abort a parse immediately. Duplicate
dependencies are collected and reported together once a declaration file
has otherwise parsed cleanly.
"""

from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, List, Sequence, Tuple, Union

if TYPE_CHECKING:
    from .dependency import Dependency


class CartfileError(Exception):
    """Base class for every error raised by cartfile-tools."""


class ReadFailedError(CartfileError):
    """A manifest file could not be read."""

    def __init__(self, path: Union[str, Path], cause: Exception):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Failed to read file or folder at {self.path}: {cause}")


class ParseError(CartfileError, ValueError):
    """A manifest contained a malformed token."""

    def __init__(self, description: str):
        self.description = description
        super().__init__(f"Parse error: {description}")


class SemanticError(ParseError):
    """Well-formed tokens combined in a way the manifest format forbids."""


class InternalError(CartfileError):
    """A condition that should be unreachable."""

    def __init__(self, description: str):
        self.description = description
        super().__init__(f"Internal error: {description}")


@dataclass(frozen=True)
class DuplicateDependency:
    """A dependency that was declared more than once."""

    dependency: "Dependency"
    locations: Tuple[str, ...] = ()

    def __lt__(self, other: "DuplicateDependency") -> bool:
        return self.dependency < other.dependency

    def __str__(self) -> str:
        if not self.locations:
            return str(self.dependency)
        found_in = " and ".join(f'"{location}"' for location in self.locations)
        return f"{self.dependency} (found in {found_in})"


class DuplicateDependenciesError(CartfileError):
    """Every dependency declared more than once, reported in one go."""

    def __init__(self, duplicates: Sequence[DuplicateDependency]):
        self.duplicates: List[DuplicateDependency] = list(duplicates)
        lines = "".join(f"\n\t{duplicate}" for duplicate in sorted(self.duplicates))
        super().__init__(f"The following dependencies are duplicates:{lines}")

    def with_locations(self, locations: Iterable[str]) -> "DuplicateDependenciesError":
        """Copy of this error with each duplicate's locations replaced."""
        locations = tuple(locations)
        return DuplicateDependenciesError(
            [replace(duplicate, locations=locations) for duplicate in self.duplicates]
        )
