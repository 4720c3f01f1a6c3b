"""
Loading manifests from disk.

Parsing itself is pure and lives in ``manifests``; this module reads files,
attaches file locations to duplicate-dependency errors and logs what
happened.
"""

import time
from pathlib import Path
from typing import ClassVar, Dict, Protocol, Type, TypeVar, Union

from .cli_config import get_config
from .error_handling import log_parsing_error, log_read_error
from .errors import (
    CartfileError,
    DuplicateDependenciesError,
    DuplicateDependency,
    ReadFailedError,
)
from .manifests import (
    CARTFILE_PATH,
    PRIVATE_CARTFILE_PATH,
    Cartfile,
    ResolvedCartfile,
    SchemeCartfile,
    duplicate_dependencies_in,
)
from .structured_logging import log_parse_complete, log_parse_failed, log_parse_start

PathLike = Union[str, Path]


class ManifestFormat(Protocol):
    """What every manifest type provides to the loader."""

    relative_path: ClassVar[str]

    @classmethod
    def from_string(cls, text: str) -> "ManifestFormat": ...


M = TypeVar("M", bound=ManifestFormat)

MANIFEST_TYPES_BY_NAME: Dict[str, Type[ManifestFormat]] = {
    CARTFILE_PATH: Cartfile,
    PRIVATE_CARTFILE_PATH: Cartfile,
    ResolvedCartfile.relative_path: ResolvedCartfile,
    SchemeCartfile.relative_path: SchemeCartfile,
}


def detect_manifest_type(file_path: PathLike) -> Type[ManifestFormat]:
    """
    Work out the manifest format from a file name.

    Raises:
        ValueError: If the file name is not a known manifest name
    """
    filename = Path(file_path).name
    try:
        return MANIFEST_TYPES_BY_NAME[filename]
    except KeyError:
        raise ValueError(f"Unsupported file type: {filename}") from None


def path_in(manifest_type: Type[ManifestFormat], directory: PathLike) -> Path:
    """Location of a manifest inside a project directory."""
    return Path(directory) / manifest_type.relative_path


def read_manifest_text(file_path: PathLike) -> str:
    """
    Read a manifest as UTF-8 text.

    Args:
        file_path: File to read

    Returns:
        str: File contents with newlines normalised

    Raises:
        ReadFailedError: If the file is missing, unreadable, not UTF-8 or
            larger than the configured limit
    """
    path = Path(file_path)
    max_size = get_config().limits.max_file_size_bytes

    try:
        file_size = path.stat().st_size
        if file_size > max_size:
            raise OSError(f"File too large: {file_size} bytes (max: {max_size})")
        return path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        log_read_error(
            f"Could not read manifest: {e}",
            module="loader",
            function="read_manifest_text",
            file_path=str(path),
            exception=e,
        )
        raise ReadFailedError(path, e) from e


def _entry_count(manifest: ManifestFormat) -> int:
    if isinstance(manifest, SchemeCartfile):
        return len(manifest.schemes)
    return len(manifest.dependencies)


def load_from_file(manifest_type: Type[M], file_path: PathLike) -> M:
    """
    Read and parse one manifest file.

    Duplicate-dependency errors are re-raised with the file's path as the
    location of every duplicate.

    Raises:
        ReadFailedError: If the file cannot be read
        ParseError: If the contents are malformed
        DuplicateDependenciesError: If a dependency is declared twice
    """
    path = Path(file_path)
    text = read_manifest_text(path)
    format_name = manifest_type.__name__

    log_parse_start(str(path), format_name)
    started = time.perf_counter()
    try:
        manifest = manifest_type.from_string(text)
    except DuplicateDependenciesError as e:
        located = e.with_locations([str(path)])
        _report_parse_failure(path, format_name, located)
        raise located from e
    except CartfileError as e:
        _report_parse_failure(path, format_name, e)
        raise

    log_parse_complete(
        str(path),
        format_name,
        _entry_count(manifest),
        (time.perf_counter() - started) * 1000,
    )
    return manifest


def _report_parse_failure(path: Path, format_name: str, error: Exception) -> None:
    log_parse_failed(str(path), format_name, error)
    log_parsing_error(
        str(error),
        module="loader",
        function="load_from_file",
        file_path=str(path),
        manifest_format=format_name,
        exception=error,
    )


def load_from_directory(manifest_type: Type[M], directory: PathLike) -> M:
    return load_from_file(manifest_type, path_in(manifest_type, directory))


def load_combined_cartfile(directory: PathLike) -> Cartfile:
    """
    Load a project's Cartfile together with its Cartfile.private.

    Either file may be missing, but not both. A dependency declared in both
    files is reported with both paths as its locations.

    Raises:
        ReadFailedError: If neither file can be read
        DuplicateDependenciesError: If the files declare a dependency twice
    """
    cartfile_path = Path(directory) / CARTFILE_PATH
    private_path = Path(directory) / PRIVATE_CARTFILE_PATH

    if not private_path.exists():
        return load_from_file(Cartfile, cartfile_path)

    private_cartfile = load_from_file(Cartfile, private_path)
    if not cartfile_path.exists():
        return private_cartfile

    cartfile = load_from_file(Cartfile, cartfile_path)
    duplicates = duplicate_dependencies_in(cartfile, private_cartfile)
    if duplicates:
        raise DuplicateDependenciesError(
            [
                DuplicateDependency(dependency, (str(cartfile_path), str(private_path)))
                for dependency in duplicates
            ]
        )

    cartfile.append(private_cartfile)
    return cartfile
