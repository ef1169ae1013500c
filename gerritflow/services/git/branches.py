"""Local branch operations: names, upstreams, create/remove, checkout."""

import logging
from pathlib import Path

from gerritflow.services.git._run import GitRunnerError, _cwd, _git_succeeds, _run_git


def current_branch_name(repo_dir: Path | None = None) -> str | None:
    """Return the short name of the checked out branch, or None when HEAD is
    detached."""
    try:
        return _run_git(["symbolic-ref", "--quiet", "--short", "HEAD"], cwd=_cwd(repo_dir)) or None
    except GitRunnerError as e:
        if e.returncode == 1:
            return None
        raise


def is_detached_head(repo_dir: Path | None = None) -> bool:
    return current_branch_name(repo_dir) is None


def branch_exists(name: str, repo_dir: Path | None = None) -> bool:
    return _git_succeeds(["show-ref", "--verify", "--quiet", f"refs/heads/{name}"], cwd=_cwd(repo_dir))


def has_upstream(name: str, repo_dir: Path | None = None) -> bool:
    """Return True if the branch tracks an upstream."""
    return _git_succeeds(["rev-parse", "--verify", "--quiet", f"{name}@{{u}}"], cwd=_cwd(repo_dir))


def branch_upstream(name: str, repo_dir: Path | None = None) -> str:
    """Return the upstream of a branch in short form, e.g. origin/master."""
    return _run_git(["rev-parse", "--symbolic-full-name", "--abbrev-ref", f"{name}@{{u}}"], cwd=_cwd(repo_dir))


def is_remote_branch(ref: str, repo_dir: Path | None = None) -> bool:
    """Return True if ref names a remote-tracking branch (remote/branch)."""
    return _git_succeeds(["rev-parse", "--verify", "--quiet", f"refs/remotes/{ref}"], cwd=_cwd(repo_dir))


def split_remote_branch(ref: str) -> tuple[str, str]:
    """Split "remote/branch/name" into ("remote", "branch/name")."""
    remote, _, branch = ref.partition("/")
    return remote, branch


def create_branch(
    name: str,
    start_point: str = "HEAD",
    checkout: bool = False,
    repo_dir: Path | None = None,
    log: logging.Logger | None = None,
) -> None:
    """Create a branch at start_point, optionally checking it out."""
    args = ["checkout", "-b", name, start_point] if checkout else ["branch", name, start_point]
    _run_git(args, cwd=_cwd(repo_dir), log=log)
    if log:
        log.info("Created branch %s at %s", name, start_point)


def remove_branch(name: str, repo_dir: Path | None = None, log: logging.Logger | None = None) -> None:
    _run_git(["branch", "-D", name], cwd=_cwd(repo_dir), log=log)
    if log:
        log.info("Removed branch %s", name)


def set_upstream(
    name: str,
    upstream: str,
    repo_dir: Path | None = None,
    log: logging.Logger | None = None,
) -> None:
    _run_git(["branch", f"--set-upstream-to={upstream}", name], cwd=_cwd(repo_dir), log=log)
    if log:
        log.debug("Branch %s now tracks %s", name, upstream)


def checkout(ref: str, repo_dir: Path | None = None, log: logging.Logger | None = None) -> None:
    """Checkout a branch or commit (detached for non-branch refs)."""
    _run_git(["checkout", ref], cwd=_cwd(repo_dir), log=log)
    if log:
        log.info("Checked out %s", ref)
