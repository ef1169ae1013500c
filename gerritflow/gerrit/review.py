"""Post reviews and assign reviewers to commits."""

import logging
from pathlib import Path
from typing import Iterable, Sequence

from gerritflow.config import TransportConfig
from gerritflow.errors import RemoteError, TransportError
from gerritflow.gerrit import commands, profiles, squad
from gerritflow.models import AssignResult
from gerritflow.services import git, ssh

LOG = logging.getLogger("gerritflow.gerrit.review")

LEDGER_KEY = "gerrit.reviewers"
SQUAD_PREFIX = "@"


def review(
    commit: str,
    verified: int | str | None = None,
    code_review: int | str | None = None,
    message: str | None = None,
    action: str | None = None,
    remote: str | None = None,
    repo_dir: Path | None = None,
    settings: TransportConfig | None = None,
) -> str:
    """Score, comment on, submit or abandon one commit.

    action is "submit" or "abandon"; anything else is ignored. A score of 0
    is sent, None is omitted. No retry; callers loop over commits.
    """
    remote_ref = profiles.parse_remote(remote, repo_dir)
    command = commands.review(
        commit,
        project=remote_ref.project,
        verified=verified,
        code_review=code_review,
        message=message,
        action=action,
    )
    return ssh.run(command, remote_ref, settings)


def expand_reviewers(reviewers: Iterable[str], repo_dir: Path | None = None) -> list[str]:
    """Replace @squad tokens with the squad's members."""
    expanded: list[str] = []
    for reviewer in reviewers:
        if not reviewer.startswith(SQUAD_PREFIX):
            expanded.append(reviewer)
            continue
        name = reviewer[len(SQUAD_PREFIX) :]
        members = squad.get(name, repo_dir)
        if not members:
            LOG.warning('Squad "%s" does not exist or is empty.', name)
        expanded.extend(members)
    return expanded


def assign(
    rev_list: Sequence[str],
    reviewers: Iterable[str],
    remote: str | None = None,
    repo_dir: Path | None = None,
    settings: TransportConfig | None = None,
) -> list[list[AssignResult]]:
    """Add reviewers to every commit, one call per (commit, reviewer).

    Calls run sequentially in order. A failed call is recorded in its result
    and does not stop the rest. Reviewers added at least once are recorded
    in the reviewer ledger.

    Returns:
        One list of results per commit, in rev_list order.
    """
    expanded = expand_reviewers(reviewers, repo_dir)
    remote_ref = profiles.parse_remote(remote, repo_dir)

    results: list[list[AssignResult]] = []
    for commit in rev_list:
        commit_results = []
        for reviewer in expanded:
            try:
                ssh.run(commands.set_reviewers(reviewer, commit), remote_ref, settings)
            except (RemoteError, TransportError) as e:
                LOG.debug("Adding %s to %s failed: %s", reviewer, commit, e)
                commit_results.append(AssignResult(reviewer=reviewer, success=False, error=str(e)))
            else:
                commit_results.append(AssignResult(reviewer=reviewer, success=True))
        results.append(commit_results)

    assigned = [r.reviewer for commit_results in results for r in commit_results if r.success]
    if assigned:
        git.local_store(repo_dir).add(LEDGER_KEY, assigned, unique=True)
    return results


def reviewers_ledger(repo_dir: Path | None = None) -> list[str]:
    """Reviewers ever assigned successfully in this repository."""
    return git.local_store(repo_dir).get_all(LEDGER_KEY)
