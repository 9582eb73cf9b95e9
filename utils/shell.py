import shlex
import shutil
import subprocess
from typing import List, Mapping, Optional, Sequence

from pydantic import BaseModel

from utils.errors import ShellError
from utils.logger import logger

DEFAULT_TIMEOUT_SEC = 10

_default_timeout: float = DEFAULT_TIMEOUT_SEC


class ShellResult(BaseModel):
    """The captured outcome of a single command."""

    stdout: str = ""
    stderr: str = ""
    exit_code: int = -1

    @property
    def success(self) -> bool:
        return self.exit_code == 0


def set_default_timeout(timeout_sec: float) -> None:
    """Sets the timeout applied when a call does not pass its own."""
    global _default_timeout
    if timeout_sec <= 0:
        raise ValueError("Shell timeout must be a positive number of seconds.")
    _default_timeout = timeout_sec


def get_default_timeout() -> float:
    return _default_timeout


def execute(
    command: Sequence[str],
    *,
    cwd: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    input: Optional[str] = None,
    timeout: Optional[float] = None,
) -> ShellResult:
    """
    Runs a command and captures its output.

    A failing command never raises: a missing executable or a timeout is
    reported as exit code -1 with the reason in stderr. Output that is not
    valid UTF-8 is decoded with replacement characters.

    Args:
        command: The program and its arguments.
        cwd: Working directory for the command.
        env: Full environment for the child process. Inherits ours when None.
        input: Text written to the command's stdin.
        timeout: Seconds before the command is killed. Uses the module default when None.

    Returns:
        A ShellResult with stdout, stderr and the exit code.
    """
    argv = list(command)
    timeout = timeout if timeout is not None else _default_timeout
    logger.debug(f"Executing command: {shlex.join(argv)}")

    try:
        completed = subprocess.run(
            argv,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            cwd=cwd,
            env=dict(env) if env is not None else None,
            input=input,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        logger.error(f"Command not found: {argv[0]}")
        return ShellResult(stdout="", stderr=str(e), exit_code=-1)
    except subprocess.TimeoutExpired:
        logger.error(f"Command timed out after {timeout}s: {shlex.join(argv)}")
        return ShellResult(stdout="", stderr=f"Command timed out after {timeout}s", exit_code=-1)

    result = ShellResult(
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
        exit_code=completed.returncode,
    )
    if not result.success:
        logger.debug(f"Command exited with code {result.exit_code}: {result.stderr.strip()}")
    return result


def get_output(command: Sequence[str], **kwargs) -> str:
    """
    Runs a command and returns its trimmed stdout.

    Raises:
        ShellError: If the command exits with a non-zero code.
    """
    result = execute(command, **kwargs)
    if not result.success:
        raise ShellError(
            f"Command failed ({result.exit_code}): {shlex.join(command)}: {result.stderr.strip()}",
            stderr=result.stderr,
            exit_code=result.exit_code,
        )
    return result.stdout.strip()


def command_exists(name: str) -> bool:
    """Checks whether an executable is available on PATH."""
    return shutil.which(name) is not None


def execute_multiple(commands: Sequence[Sequence[str]], **kwargs) -> List[ShellResult]:
    """Runs commands in order and stops after the first failure."""
    results: List[ShellResult] = []
    for command in commands:
        result = execute(command, **kwargs)
        results.append(result)
        if not result.success:
            logger.warning(f"Command failed, skipping the remaining commands: {shlex.join(command)}")
            break
    return results
