import os
from pathlib import Path
from typing import Iterable, List, Literal, Optional

from utils.errors import FileError
from utils.ignore import compile_patterns, matches_any, normalize_path
from utils.logger import logger

PathType = Literal["file", "directory", "nonexistent"]

SKIPPED_DIRECTORIES = {".git"}


def get_absolute_path(file_path: str) -> str:
    """Resolves a path against the current working directory."""
    return str(Path(file_path).resolve())


def get_relative_path(file_path: str, base: Optional[str] = None) -> str:
    """
    Returns the path relative to `base` (the current directory by default),
    using forward slashes. Paths outside `base` are returned absolute.
    """
    absolute = Path(file_path).resolve()
    base_path = Path(base).resolve() if base else Path.cwd().resolve()
    try:
        return absolute.relative_to(base_path).as_posix()
    except ValueError:
        return absolute.as_posix()


def file_exists(file_path: str) -> bool:
    return Path(file_path).exists()


def get_path_type(path: str) -> PathType:
    p = Path(path)
    if p.is_file():
        return "file"
    if p.is_dir():
        return "directory"
    return "nonexistent"


def read_file(file_path: str) -> str:
    """
    Reads a UTF-8 text file.

    Raises:
        FileError: If the file cannot be read.
    """
    try:
        with open(get_absolute_path(file_path), "r", encoding="utf-8") as f:
            return f.read()
    except (IOError, OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read file {file_path}: {e}")
        raise FileError(f"Failed to read file {file_path}: {e}") from e


def write_file(file_path: str, content: str) -> None:
    """
    Writes a UTF-8 text file, creating parent directories as needed.

    Raises:
        FileError: If the file cannot be written.
    """
    absolute = Path(get_absolute_path(file_path))
    try:
        absolute.parent.mkdir(parents=True, exist_ok=True)
        with open(absolute, "w", encoding="utf-8") as f:
            f.write(content)
    except (IOError, OSError) as e:
        logger.error(f"Failed to write file {file_path}: {e}")
        raise FileError(f"Failed to write file {file_path}: {e}") from e
    logger.info(f"Wrote file: {absolute}")


def remove_file(file_path: str) -> bool:
    """Removes a file if it exists. Returns True if something was removed."""
    path = Path(file_path)
    if not path.is_file():
        return False
    try:
        path.unlink()
    except OSError as e:
        raise FileError(f"Failed to remove file {file_path}: {e}") from e
    logger.debug(f"Removed file: {path}")
    return True


def read_directory_files(directory: str, ignores: Optional[Iterable[str]] = None) -> List[str]:
    """
    Recursively lists the files under a directory.

    Ignored directories are pruned during the walk and `.git` is always
    skipped. Paths are relative to the current working directory.

    Args:
        directory: The directory to walk.
        ignores: Glob patterns matched against the relative paths.

    Returns:
        A sorted list of relative file paths.
    """
    rules = compile_patterns(ignores)
    files: List[str] = []

    for root, dirnames, filenames in os.walk(directory):
        kept_dirs = []
        for dirname in dirnames:
            if dirname in SKIPPED_DIRECTORIES:
                continue
            rel_dir = normalize_path(get_relative_path(os.path.join(root, dirname)))
            if rules and matches_any(rel_dir, rules):
                logger.debug(f"Ignoring directory: {rel_dir}")
                continue
            kept_dirs.append(dirname)
        dirnames[:] = kept_dirs

        for filename in filenames:
            rel_file = normalize_path(get_relative_path(os.path.join(root, filename)))
            if rules and matches_any(rel_file, rules):
                logger.debug(f"Ignoring file: {rel_file}")
                continue
            files.append(rel_file)

    return sorted(files)
