"""Git operations: branches, repository state, remotes, config store."""

from gerritflow.services.git._run import GitRunnerError
from gerritflow.services.git.branches import (
    branch_exists,
    branch_upstream,
    checkout,
    create_branch,
    current_branch_name,
    has_upstream,
    is_detached_head,
    is_remote_branch,
    remove_branch,
    set_upstream,
    split_remote_branch,
)
from gerritflow.services.git.config_store import ConfigStore, global_store, local_store, regex_escape
from gerritflow.services.git.push_pull import clone, fetch, push
from gerritflow.services.git.repo import (
    describe_hash,
    git_dir,
    hash_for,
    in_repo,
    is_index_clean,
    ls_remote,
    rev_list,
)

__all__ = [
    "ConfigStore",
    "GitRunnerError",
    "branch_exists",
    "branch_upstream",
    "checkout",
    "clone",
    "create_branch",
    "current_branch_name",
    "describe_hash",
    "fetch",
    "git_dir",
    "global_store",
    "has_upstream",
    "hash_for",
    "in_repo",
    "is_detached_head",
    "is_index_clean",
    "is_remote_branch",
    "local_store",
    "ls_remote",
    "push",
    "regex_escape",
    "remove_branch",
    "rev_list",
    "set_upstream",
    "split_remote_branch",
]
