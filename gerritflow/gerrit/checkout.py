"""Resolve a change number or topic to a patch set and check it out.

The target is looked up as both a change number and a topic; the matching
change's patch set is fetched and checked out detached, then bound to a
local branch named after the topic.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Literal

from gerritflow.config import TransportConfig
from gerritflow.errors import AmbiguousTargetError, NotFoundError
from gerritflow.gerrit import profiles, query
from gerritflow.gerrit.preconditions import require_clean_index, require_in_repo
from gerritflow.models import PatchRecord, RemoteRef
from gerritflow.prompter import Prompter
from gerritflow.services import git

LOG = logging.getLogger("gerritflow.gerrit.checkout")

FETCH_HEAD = "FETCH_HEAD"
# Topic that would clobber the mainline branch if bound
PROTECTED_TOPIC = "master"

Preference = Literal["topic", "number"]


def change_ref(number: int | str) -> str:
    """refs/changes/<last two digits>/<number>, e.g. 7 -> refs/changes/07/7."""
    number = int(number)
    return f"refs/changes/{number % 100:02d}/{number}"


def latest_patch_set(
    remote: str,
    number: int | str,
    repo_dir: Path | None = None,
) -> int:
    """Return the highest patch set number the remote has for a change.

    Raises:
        NotFoundError: the remote lists no patch sets for the change.
    """
    prefix = change_ref(number)
    patch_sets = []
    for ref in git.ls_remote(remote, f"{prefix}/*", repo_dir):
        suffix = ref[len(prefix) + 1 :]
        if ref.startswith(prefix + "/") and suffix.isdigit():
            patch_sets.append(int(suffix))
    if not patch_sets:
        raise NotFoundError(f"No patch sets found for change {number} on {remote}.")
    return max(patch_sets)


def resolve_target(
    target: str,
    remote: RemoteRef,
    prompter: Prompter | None = None,
    prefer: Preference | None = None,
    settings: TransportConfig | None = None,
) -> PatchRecord:
    """Find the change a target refers to, by number and by topic.

    Both lookups run concurrently. When both match, prefer decides; without
    it the prompter is asked.

    Raises:
        NotFoundError: neither lookup matches.
        AmbiguousTargetError: both match and there is no way to choose.
    """
    with ThreadPoolExecutor(max_workers=2) as pool:
        by_number = pool.submit(query.query_by_number, target, remote, settings=settings)
        by_topic = pool.submit(query.query_by_topic, target, remote, settings=settings)
        number_matches = by_number.result()
        topic_matches = by_topic.result()

    if number_matches and topic_matches:
        choice = prefer
        if choice is None:
            if prompter is None:
                raise AmbiguousTargetError(f'"{target}" is both a change number and a topic.')
            choice = prompter.choose(f'"{target}" is both a change number and a topic. Which one?', ["topic", "number"])
        return topic_matches[0] if choice == "topic" else number_matches[0]
    if topic_matches:
        return topic_matches[0]
    if number_matches:
        return number_matches[0]
    raise NotFoundError(f'"{target}" is neither a change number nor a topic.')


def _bind_branch(
    patch: PatchRecord,
    remote: RemoteRef,
    force: bool,
    prompter: Prompter | None,
    repo_dir: Path | None,
) -> None:
    topic = patch.topic
    if not topic:
        LOG.warning("Change %s has no topic; staying on a detached HEAD.", patch.number)
        return
    if topic == PROTECTED_TOPIC:
        LOG.warning('Topic is "%s"; staying on a detached HEAD.', PROTECTED_TOPIC)
        return

    if git.branch_exists(topic, repo_dir):
        if force:
            git.remove_branch(topic, repo_dir, log=LOG)
        elif prompter is not None and prompter.confirm(f'Branch "{topic}" already exists. Overwrite?', default=False):
            git.remove_branch(topic, repo_dir, log=LOG)

    if git.branch_exists(topic, repo_dir):
        LOG.warning('Kept existing branch "%s"; staying on a detached HEAD.', topic)
        return
    git.create_branch(topic, FETCH_HEAD, checkout=True, repo_dir=repo_dir, log=LOG)
    git.set_upstream(topic, f"{remote.name}/{patch.branch}", repo_dir, log=LOG)


def checkout(
    target: str,
    patch_set: int | None = None,
    force: bool = False,
    remote: str | None = None,
    repo_dir: Path | None = None,
    prompter: Prompter | None = None,
    prefer: Preference | None = None,
    settings: TransportConfig | None = None,
) -> PatchRecord:
    """Fetch and check out a change by number or topic.

    Without patch_set the latest one on the remote is used. The checkout is
    bound to a local branch named after the topic; an existing branch is
    replaced when forced or when the user agrees.

    Raises:
        StateError: not in a repository, or uncommitted changes.
        NotFoundError, AmbiguousTargetError: see resolve_target.
        GitRunnerError: fetch or checkout failed.
    """
    require_in_repo(repo_dir)
    require_clean_index(repo_dir)

    remote_ref = profiles.parse_remote(remote, repo_dir)
    patch = resolve_target(str(target), remote_ref, prompter=prompter, prefer=prefer, settings=settings)

    if patch_set is None:
        patch_set = latest_patch_set(remote_ref.name, patch.number, repo_dir)
    ref = f"{change_ref(patch.number)}/{patch_set}"

    git.fetch(remote_ref.name, ref, repo_dir, log=LOG)
    git.checkout(FETCH_HEAD, repo_dir, log=LOG)

    _bind_branch(patch, remote_ref, force, prompter, repo_dir)
    return patch


def recheckout(
    remote: str | None = None,
    repo_dir: Path | None = None,
    prompter: Prompter | None = None,
    settings: TransportConfig | None = None,
) -> PatchRecord:
    """Check out the latest patch set of the change HEAD belongs to.

    Raises:
        NotFoundError: HEAD is not a patch set known to the server.
    """
    require_in_repo(repo_dir)
    commit = git.hash_for("HEAD", repo_dir)
    remote_ref = profiles.parse_remote(remote, repo_dir)
    matches = query.run_query(("commit:%s project:%s limit:1", commit, remote_ref.project), remote_ref, settings)
    if not matches:
        raise NotFoundError(f"HEAD ({commit[:12]}) is not part of any change on {remote_ref.name}.")
    return checkout(
        str(matches[0].number),
        force=True,
        remote=remote,
        repo_dir=repo_dir,
        prompter=prompter,
        prefer="number",
        settings=settings,
    )
