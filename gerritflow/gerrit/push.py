"""Push the current topic for review, track draft state, create topics."""

import logging
from pathlib import Path

from gerritflow.errors import PushError, StateError
from gerritflow.gerrit import profiles
from gerritflow.gerrit.preconditions import require_in_repo, require_remote_upstream
from gerritflow.prompter import ClickPrompter, Prompter
from gerritflow.services import git

LOG = logging.getLogger("gerritflow.gerrit.push")

DRAFT_FLAG = "yes"


def _draft_key(topic: str) -> str:
    return f"branch.{topic}.draft"


def is_drafted(topic: str, repo_dir: Path | None = None) -> bool:
    """Return True if the topic's last push was a draft not since undrafted."""
    return git.local_store(repo_dir).get(_draft_key(topic)) == DRAFT_FLAG


def push_refspec(branch: str, topic: str, draft: bool = False) -> str:
    """HEAD:refs/for/<branch>/<topic>, or refs/drafts/... for drafts."""
    namespace = "drafts" if draft else "for"
    return f"HEAD:refs/{namespace}/{branch}/{topic}"


def push(
    remote: str | None = None,
    branch: str | None = None,
    draft: bool = False,
    repo_dir: Path | None = None,
    prompter: Prompter | None = None,
) -> bool:
    """Push the current topic branch for review.

    The target remote and branch default to the topic's upstream. A normal
    push of a topic last pushed as a draft asks to undraft first; declining
    aborts without pushing.

    Returns:
        False if the push was aborted, True otherwise.

    Raises:
        StateError: detached HEAD, or no remote upstream.
        PushError: git push failed.
    """
    require_in_repo(repo_dir)
    topic = git.current_branch_name(repo_dir)
    if topic is None:
        raise StateError("Cannot push from a detached HEAD; check out a topic branch.")
    upstream = require_remote_upstream(topic, repo_dir)
    upstream_remote, upstream_branch = git.split_remote_branch(upstream)
    remote_ref = profiles.parse_remote(remote or upstream_remote, repo_dir)
    branch = branch or upstream_branch

    undraft = False
    if not draft and is_drafted(topic, repo_dir):
        prompter = prompter or ClickPrompter()
        if not prompter.confirm(f'Topic "{topic}" was pushed as a draft. Undraft it?', default=True):
            LOG.info("Push aborted.")
            return False
        undraft = True

    refspec = push_refspec(branch, topic, draft)
    try:
        git.push(remote_ref.name, refspec, repo_dir, log=LOG)
    except git.GitRunnerError as e:
        raise PushError(f"Could not push {topic} to {remote_ref.name}: {e}", command=e.command, returncode=e.returncode) from e

    store = git.local_store(repo_dir)
    if draft:
        store.set(_draft_key(topic), DRAFT_FLAG)
    elif undraft:
        store.unset(_draft_key(topic))
    return True


def create_topic(
    name: str,
    upstream: str | None = None,
    repo_dir: Path | None = None,
) -> str:
    """Create and check out a topic branch at HEAD tracking upstream.

    upstream defaults to the current branch's upstream.

    Returns:
        The upstream the new topic tracks.

    Raises:
        StateError: no upstream given or found, or it is not a remote branch.
    """
    require_in_repo(repo_dir)
    if upstream is None:
        current = git.current_branch_name(repo_dir)
        if current is None:
            raise StateError("No upstream given and HEAD is detached.")
        upstream = require_remote_upstream(current, repo_dir)
    elif not git.is_remote_branch(upstream, repo_dir):
        raise StateError(f'Upstream "{upstream}" is not a remote branch.')

    git.create_branch(name, "HEAD", checkout=True, repo_dir=repo_dir, log=LOG)
    git.set_upstream(name, upstream, repo_dir, log=LOG)
    return upstream
