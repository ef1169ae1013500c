"""Internal helpers: run git commands, GitRunnerError."""

import logging
import subprocess
from pathlib import Path

GIT_TIMEOUT = 120


class GitRunnerError(Exception):
    """Raised when a git command fails.

    Carries the failed command and git's exit status verbatim.
    """

    def __init__(self, message: str, command: list[str] | None = None, returncode: int | None = None) -> None:
        super().__init__(message)
        self.command = command or []
        self.returncode = returncode


def _cwd(repo_dir: Path | None) -> Path:
    return Path(repo_dir) if repo_dir is not None else Path.cwd()


def _run_git(args: list[str], cwd: Path, log: logging.Logger | None = None) -> str:
    """Run git command and return stdout without the trailing newline.

    Raises GitRunnerError on non-zero exit.
    """
    cmd = ["git"] + args
    try:
        result = subprocess.run(cmd, cwd=cwd, check=True, capture_output=True, text=True, timeout=GIT_TIMEOUT)
    except subprocess.CalledProcessError as e:
        err = (e.stderr or e.stdout or "").strip()
        if log:
            log.debug("Git %s failed (%s): %s", args, e.returncode, err)
        raise GitRunnerError(f"git {' '.join(args)}: {err}", command=cmd, returncode=e.returncode) from e
    except subprocess.TimeoutExpired as e:
        raise GitRunnerError(f"git {' '.join(args)}: timed out after {GIT_TIMEOUT}s", command=cmd) from e
    except FileNotFoundError as e:
        raise GitRunnerError("git not found", command=cmd) from e
    return (result.stdout or "").rstrip("\n")


def _git_succeeds(args: list[str], cwd: Path) -> bool:
    """Return True if the git command exits with status 0."""
    try:
        _run_git(args, cwd=cwd)
    except GitRunnerError as e:
        if e.returncode is None:
            raise
        return False
    return True
