"""Transfer with remotes: fetch, push, clone."""

import logging
from pathlib import Path

from gerritflow.services.git._run import _cwd, _run_git


def fetch(
    remote: str,
    ref: str,
    repo_dir: Path | None = None,
    log: logging.Logger | None = None,
) -> None:
    """Fetch ref from remote into FETCH_HEAD."""
    _run_git(["fetch", remote, ref], cwd=_cwd(repo_dir), log=log)
    if log:
        log.info("Fetched %s from %s", ref, remote)


def push(
    remote: str,
    refspec: str,
    repo_dir: Path | None = None,
    log: logging.Logger | None = None,
) -> str:
    """Push refspec to remote; return git's output."""
    output = _run_git(["push", remote, refspec], cwd=_cwd(repo_dir), log=log)
    if log:
        log.info("Pushed %s to %s", refspec, remote)
    return output


def clone(
    url: str,
    destination: Path,
    work_dir: Path | None = None,
    log: logging.Logger | None = None,
) -> Path:
    """Clone url into destination (relative to work_dir); return its path."""
    cwd = _cwd(work_dir)
    target = cwd / destination
    _run_git(["clone", url, str(destination)], cwd=cwd, log=log)
    if log:
        log.info("Cloned %s into %s", url, target)
    return target
