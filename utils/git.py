from pathlib import Path
from typing import Dict, List, Optional

from core.contracts.models import CommitInfo, FileDiffInfo
from utils.errors import GitError, ShellError
from utils.logger import logger
from utils.shell import get_output

# Fields are separated by the ASCII unit separator so subjects may contain any text.
FIELD_SEPARATOR = "\x1f"
COMMIT_FORMAT = f"--pretty=format:%H{FIELD_SEPARATOR}%an{FIELD_SEPARATOR}%ad{FIELD_SEPARATOR}%s"


def find_repository_root(start_dir: Optional[Path] = None) -> Optional[Path]:
    """
    Finds the repository root by searching upwards for a `.git` entry.

    This only inspects the filesystem, so no git process is started.
    """
    d = (start_dir or Path.cwd()).resolve()
    while True:
        if (d / ".git").exists():
            return d
        if d == d.parent:
            return None
        d = d.parent


def is_git_repository(start_dir: Optional[Path] = None) -> bool:
    """Checks if the current directory is inside a Git repository."""
    return find_repository_root(start_dir) is not None


def ensure_git_repository() -> Path:
    """
    Returns the repository root.

    Raises:
        GitError: If the current directory is not a git repository.
    """
    root = find_repository_root()
    if root is None:
        raise GitError(f"Not a git repository: {Path.cwd()}")
    return root


def run_git(*args: str) -> str:
    """
    Runs a git command from the repository root and returns its trimmed stdout.

    Paths printed by git and pathspecs passed to it are then both relative
    to the root, whichever subdirectory the tool was started from.

    Raises:
        ShellError: If the command exits with a non-zero code.
    """
    root = find_repository_root() or Path.cwd()
    return get_output(["git", *args], cwd=str(root))


def get_current_branch_name() -> str:
    """
    Gets the current Git branch name.

    Raises:
        GitError: If the git command fails or HEAD is detached.
    """
    try:
        branch = run_git("branch", "--show-current")
    except ShellError as e:
        raise GitError(f"Failed to get current branch name: {e.stderr.strip()}") from e
    if not branch:
        raise GitError("HEAD is detached; please pass the source branch explicitly.")
    return branch


def list_remotes() -> List[str]:
    """Lists the configured remote names, or an empty list on failure."""
    try:
        output = run_git("remote")
    except ShellError as e:
        logger.error(f"Failed to list remotes: {e}")
        return []
    return [line.strip() for line in output.splitlines() if line.strip()]


def _ref_exists(ref: str) -> bool:
    try:
        run_git("rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}")
    except ShellError:
        return False
    return True


def resolve_branch(branch_name: str) -> Optional[str]:
    """
    Resolves a branch name to a full ref git can use in a revision range.

    A local branch (`refs/heads/<name>`) wins over remote-tracking branches
    (`refs/remotes/<remote>/<name>`), which are tried in remote order. Names
    only match whole refs, so `login` does not match `fix/login`.

    Returns:
        The full ref, or None if the branch does not exist.
    """
    candidates = [f"refs/heads/{branch_name}"]
    candidates.extend(f"refs/remotes/{remote}/{branch_name}" for remote in list_remotes())
    for ref in candidates:
        if _ref_exists(ref):
            logger.debug(f"Resolved branch '{branch_name}' to {ref}")
            return ref
    return None


def branch_exists(branch_name: str) -> bool:
    """Checks if a branch exists locally or as a remote-tracking branch."""
    return resolve_branch(branch_name) is not None


def get_changed_files(source_ref: str, target_ref: str) -> List[str]:
    """
    Lists files changed on `source_ref` relative to `target_ref`, as paths
    relative to the repository root.

    Returns an empty list if the git command fails.
    """
    try:
        output = run_git("diff", "--name-only", f"{target_ref}..{source_ref}")
    except ShellError as e:
        logger.error(f"Failed to get changed files: {e}")
        return []
    return [line for line in output.splitlines() if line.strip()]


def get_file_diff(source_ref: str, target_ref: str, file_path: str) -> str:
    """
    Gets the unified diff of a single file between the two refs. The path is
    relative to the repository root.

    Returns an empty string if the git command fails.
    """
    try:
        return run_git("diff", f"{target_ref}..{source_ref}", "--", file_path)
    except ShellError as e:
        logger.error(f"Failed to get diff for {file_path}: {e}")
        return ""


def get_all_file_diffs(
    source_ref: str,
    target_ref: str,
    changed_files: Optional[List[str]] = None,
) -> Dict[str, FileDiffInfo]:
    """
    Collects the diff of every changed file, keyed by relative path.

    Files with an empty diff are left out. Absolute paths are resolved
    against the repository root.
    """
    if changed_files is None:
        changed_files = get_changed_files(source_ref, target_ref)
    root = find_repository_root() or Path.cwd()

    diffs: Dict[str, FileDiffInfo] = {}
    for file_path in changed_files:
        diff = get_file_diff(source_ref, target_ref, file_path)
        if diff:
            diffs[file_path] = FileDiffInfo(absolute_path=str((root / file_path).resolve()), diff=diff)
    return diffs


def _parse_commit_line(line: str) -> Optional[CommitInfo]:
    fields = line.split(FIELD_SEPARATOR, 3)
    if len(fields) != 4:
        logger.warning(f"Skipping malformed git log line: {line!r}")
        return None
    commit_hash, author, date, message = fields
    return CommitInfo(hash=commit_hash, author=author, date=date, message=message)


def get_latest_commit() -> Optional[CommitInfo]:
    """Gets the most recent commit on HEAD, or None if unavailable."""
    try:
        output = run_git("log", "-1", COMMIT_FORMAT, "--date=iso")
    except ShellError as e:
        logger.error(f"Failed to get latest commit: {e}")
        return None
    if not output:
        return None
    return _parse_commit_line(output)


def get_commits_between_branches(source_ref: str, target_ref: str) -> List[CommitInfo]:
    """
    Lists commits reachable from `source_ref` but not `target_ref`,
    newest first. Returns an empty list if the git command fails.
    """
    try:
        output = run_git("log", f"{target_ref}..{source_ref}", COMMIT_FORMAT, "--date=iso")
    except ShellError as e:
        logger.error(f"Failed to get commits between branches: {e}")
        return []

    commits = []
    for line in output.splitlines():
        if not line.strip():
            continue
        commit = _parse_commit_line(line)
        if commit:
            commits.append(commit)
    return commits
