"""
Glob-based ignore filtering for relative file paths.

A path is ignored when any pattern matches the whole path, one of its
leading directories, or (for patterns without a slash) its basename.
Patterns use fnmatch semantics, so ``*`` also crosses directory separators.
"""
import fnmatch
import re
from typing import Iterable, List, NamedTuple, Optional, Pattern

from utils.logger import logger


class IgnoreRule(NamedTuple):
    pattern: str
    regex: Pattern[str]
    match_basename: bool


def normalize_path(path: str) -> str:
    """Converts a path to forward slashes without a leading './'."""
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


def compile_patterns(patterns: Optional[Iterable[str]]) -> List[IgnoreRule]:
    """
    Compiles glob patterns into ignore rules.

    Invalid patterns are logged and skipped.
    """
    rules: List[IgnoreRule] = []
    for pattern in patterns or []:
        if not isinstance(pattern, str) or not pattern.strip():
            logger.warning(f"Skipping invalid ignore pattern: {pattern!r}")
            continue

        cleaned = normalize_path(pattern.strip()).rstrip("/")
        variants = [cleaned]
        # "**/name" should also match "name" at the root
        if cleaned.startswith("**/"):
            variants.append(cleaned[3:])

        try:
            compiled = [re.compile(fnmatch.translate(v)) for v in variants]
        except re.error as e:
            logger.warning(f"Skipping invalid ignore pattern {pattern!r}: {e}")
            continue

        for variant, regex in zip(variants, compiled):
            rules.append(IgnoreRule(pattern=pattern, regex=regex, match_basename="/" not in variant))
    return rules


def matches_any(path: str, rules: List[IgnoreRule]) -> bool:
    """Checks a normalized path against compiled rules."""
    parts = path.split("/")
    candidates = [path] + ["/".join(parts[:i]) for i in range(1, len(parts))]
    basename = parts[-1]
    for rule in rules:
        if any(rule.regex.match(candidate) for candidate in candidates):
            return True
        if rule.match_basename and rule.regex.match(basename):
            return True
    return False


def is_file_ignored(path: str, patterns: Optional[Iterable[str]]) -> bool:
    """Returns True if any pattern matches the given relative path."""
    rules = compile_patterns(patterns)
    if not rules:
        return False
    return matches_any(normalize_path(path), rules)


def filter_ignored_files(files: Iterable[str], patterns: Optional[Iterable[str]]) -> List[str]:
    """
    Removes ignored files, keeping the original order.

    Args:
        files: Relative file paths.
        patterns: Glob patterns. No filtering happens when empty.

    Returns:
        The files that matched no pattern.
    """
    files = list(files)
    rules = compile_patterns(patterns)
    if not rules:
        return files

    kept = [f for f in files if not matches_any(normalize_path(f), rules)]
    ignored_count = len(files) - len(kept)
    if ignored_count:
        logger.info(f"Ignored {ignored_count} file(s) based on ignore patterns")
    return kept
