"""Repository checks that must pass before any remote call."""

from pathlib import Path

from gerritflow.errors import StateError
from gerritflow.services import git


def require_in_repo(repo_dir: Path | None = None) -> None:
    if not git.in_repo(repo_dir):
        raise StateError("This command requires the working directory to be in a repository.")


def require_clean_index(repo_dir: Path | None = None) -> None:
    if not git.is_index_clean(repo_dir):
        raise StateError("There are uncommitted changes.")


def require_remote_upstream(branch: str, repo_dir: Path | None = None) -> str:
    """Return the branch's upstream, which must be a remote branch."""
    if not git.has_upstream(branch, repo_dir):
        raise StateError("Topic branch requires an upstream.")
    upstream = git.branch_upstream(branch, repo_dir)
    if not git.is_remote_branch(upstream, repo_dir):
        raise StateError(f'Upstream "{upstream}" is not a remote branch.')
    return upstream
