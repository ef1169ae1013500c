"""Server-wide operations: list projects, clone, install the commit-msg hook,
list open changes and pass raw commands through."""

import logging
from pathlib import Path
from typing import Any, Mapping

from gerritflow.config import TransportConfig
from gerritflow.errors import StateError
from gerritflow.gerrit import commands, profiles, query
from gerritflow.gerrit.preconditions import require_in_repo
from gerritflow.models import PatchRecord, Profile
from gerritflow.services import git, ssh

LOG = logging.getLogger("gerritflow.gerrit.projects")

HOOK_SOURCE = "hooks/commit-msg"
CLONE_REMOTE = "origin"


def projects(profile: Profile, settings: TransportConfig | None = None) -> list[str]:
    """List the projects visible on the profile's server."""
    output = ssh.run(commands.ls_projects(), profile, settings)
    return [line for line in output.split("\n") if line.strip()]


def clone_url(profile: Profile, project: str) -> str:
    port = f":{profile.port}" if profile.port else ""
    return f"ssh://{profile.destination}{port}/{project}.git"


def install_hook(
    remote: str | None = None,
    repo_dir: Path | None = None,
    settings: TransportConfig | None = None,
) -> Path:
    """Copy the server's commit-msg hook into the repository's hooks dir."""
    require_in_repo(repo_dir)
    remote_ref = profiles.parse_remote(remote, repo_dir)
    hooks_dir = git.git_dir(repo_dir) / "hooks"
    hooks_dir.mkdir(parents=True, exist_ok=True)
    LOG.info("Setting up commit-msg hook...")
    ssh.scp(HOOK_SOURCE, hooks_dir, remote_ref, settings)
    return hooks_dir / "commit-msg"


def clone(
    profile: Profile,
    project: str,
    destination: str | Path | None = None,
    work_dir: Path | None = None,
    settings: TransportConfig | None = None,
) -> Path:
    """Clone a project, remember its profile and install the commit-msg hook.

    destination defaults to the project name and is relative to work_dir
    (default cwd). The process's working directory is never changed.

    Raises:
        StateError: destination already exists.
    """
    destination = Path(destination or project)
    base = Path(work_dir) if work_dir is not None else Path.cwd()
    if (base / destination).exists():
        raise StateError(f"Destination {destination} already exists.")

    LOG.info("Cloning project %s from %s into folder %s...", project, profile.name, destination)
    repo_dir = git.clone(clone_url(profile, project), destination, work_dir=base, log=LOG)
    git.local_store(repo_dir).set(f"remote.{CLONE_REMOTE}.gerrit", profile.name)
    install_hook(CLONE_REMOTE, repo_dir=repo_dir, settings=settings)
    return repo_dir


def open_patches(
    expr: Mapping[str, Any] | None = None,
    remote: str | None = None,
    repo_dir: Path | None = None,
    settings: TransportConfig | None = None,
) -> list[PatchRecord]:
    """Open changes of the remote's project, narrowed by expr."""
    remote_ref = profiles.parse_remote(remote, repo_dir)
    search = {"status": "open", "project": remote_ref.project, **(expr or {})}
    return query.run_query(search, remote_ref, settings)


def ssh_passthrough(
    command: str,
    remote: str | None = None,
    repo_dir: Path | None = None,
    settings: TransportConfig | None = None,
) -> str:
    """Run a raw server command against the remote's server."""
    remote_ref = profiles.parse_remote(remote, repo_dir)
    return ssh.run(commands.raw(command), remote_ref, settings)
