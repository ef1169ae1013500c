"""Repository-level queries: location, index state, revisions."""

from pathlib import Path

from gerritflow.services.git._run import _cwd, _git_succeeds, _run_git


def in_repo(repo_dir: Path | None = None) -> bool:
    """Return True if repo_dir (default cwd) is inside a git work tree."""
    return _git_succeeds(["rev-parse", "--git-dir"], cwd=_cwd(repo_dir))


def git_dir(repo_dir: Path | None = None) -> Path:
    """Return the absolute path of the repository's .git directory."""
    cwd = _cwd(repo_dir)
    return (cwd / _run_git(["rev-parse", "--git-dir"], cwd=cwd)).resolve()


def is_index_clean(repo_dir: Path | None = None) -> bool:
    """Return True if neither the index nor the work tree differ from HEAD."""
    return _git_succeeds(["diff-index", "--no-ext-diff", "--quiet", "--exit-code", "HEAD"], cwd=_cwd(repo_dir))


def hash_for(ref: str, repo_dir: Path | None = None) -> str:
    return _run_git(["rev-list", "--max-count=1", ref], cwd=_cwd(repo_dir))


def rev_list(target: str, exclude: str, repo_dir: Path | None = None) -> list[str]:
    """Return hashes reachable from target but not from exclude, newest first."""
    output = _run_git(["rev-list", target, f"^{exclude}"], cwd=_cwd(repo_dir))
    return [line for line in output.split("\n") if line]


def describe_hash(commit: str, repo_dir: Path | None = None) -> str:
    """Return "<short hash> <subject>" for a commit."""
    return _run_git(["show", "--no-patch", "--format=%h %s", commit], cwd=_cwd(repo_dir))


def ls_remote(remote: str, pattern: str, repo_dir: Path | None = None) -> list[str]:
    """Return the names of the refs on remote matching pattern."""
    output = _run_git(["ls-remote", remote, pattern], cwd=_cwd(repo_dir))
    refs = []
    for line in output.split("\n"):
        _, _, ref = line.partition("\t")
        if ref:
            refs.append(ref)
    return refs
