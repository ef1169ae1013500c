"""Server profiles stored in git config and connection info parsed from
remote URLs.

Profiles live in the global config as gerrit.<name>.<field>; a clone made by
this tool records its profile as remote.<remote>.gerrit.
"""

import logging
import re
from pathlib import Path
from typing import Any, Mapping

from pydantic import ValidationError

from gerritflow.errors import ConfigError
from gerritflow.gerrit.preconditions import require_in_repo
from gerritflow.models import Profile, RemoteRef
from gerritflow.services import git

LOG = logging.getLogger("gerritflow.gerrit.profiles")

PROFILE_SECTION = "gerrit"
DEFAULT_REMOTE = "origin"
DEFAULT_PORT = 29418

_SCHEME_URL_RE = re.compile(
    r"^[a-z][a-z0-9+.-]*://(?:(?P<user>[^@/]+)@)?(?P<host>[^:/]+)(?::(?P<port>\d+))?(?P<path>/.*)$",
    re.IGNORECASE,
)
_SCP_URL_RE = re.compile(r"^(?:(?P<user>[^@/:]+)@)?(?P<host>[^:/]+):(?P<path>.+)$")


def _project_from_path(path: str) -> str:
    project = path.strip().rstrip("/")
    if project.endswith(".git"):
        project = project[: -len(".git")]
    return project.strip("/")


def parse_remote_url(name: str, url: str) -> RemoteRef:
    """Parse user@host:path, host:path or scheme://[user@]host[:port]/path.

    Raises:
        ConfigError: url matches none of the supported forms.
    """
    match = _SCHEME_URL_RE.match(url) or _SCP_URL_RE.match(url)
    if not match:
        raise ConfigError(f'Remote "{name}" has an unsupported URL: {url}')
    parts = match.groupdict()
    project = _project_from_path(parts["path"])
    if not project:
        raise ConfigError(f'Remote "{name}" URL has no project path: {url}')
    return RemoteRef(
        name=name,
        host=parts["host"],
        port=parts.get("port"),
        user=parts["user"],
        project=project,
    )


def parse_remote(
    remote: str | None = None,
    repo_dir: Path | None = None,
    default_remote: str = DEFAULT_REMOTE,
) -> RemoteRef:
    """Resolve connection info for a local remote (default origin).

    Raises:
        StateError: not inside a repository.
        ConfigError: the remote has no URL configured.
    """
    require_in_repo(repo_dir)
    name = remote or default_remote
    url = git.ConfigStore(repo_dir=repo_dir).get(f"remote.{name}.url")
    if not url:
        raise ConfigError(f'Remote "{name}" does not exist or has no URL.')
    return parse_remote_url(name, url)


def _profile_pattern(name: str) -> str:
    return f"^{PROFILE_SECTION}\\.{git.regex_escape(name)}\\."


def profile_exists(name: str, repo_dir: Path | None = None) -> bool:
    return bool(git.global_store(repo_dir).get_regexp(_profile_pattern(name)))


def get_profile(
    name: str,
    overrides: Mapping[str, Any] | None = None,
    repo_dir: Path | None = None,
) -> Profile:
    """Read a profile; with overrides, merge and write them back.

    The merged profile is validated before anything is written; then each
    override is written as its own config key, and a failure part way leaves
    the earlier keys written.

    Raises:
        ConfigError: profile does not exist and no overrides were given, or
            the merged profile lacks a host or has an invalid value; nothing
            is written then.
    """
    store = git.global_store(repo_dir)
    prefix = f"{PROFILE_SECTION}.{name}."
    fields: dict[str, str] = {}
    for key, values in store.get_regexp(_profile_pattern(name)).items():
        if key.startswith(prefix) and values:
            fields[key[len(prefix) :]] = values[-1]

    if not fields and not overrides:
        raise ConfigError(f'Profile "{name}" does not exist.')

    updates = {field: str(value) for field, value in (overrides or {}).items() if value is not None}
    fields.update(updates)
    fields.pop("name", None)
    if fields.get("url"):
        fields["url"] = fields["url"].rstrip("/")
    try:
        profile = Profile(name=name, **fields)
    except ValidationError as e:
        raise ConfigError(f'Profile "{name}" is incomplete: {e.errors()[0]["msg"]}') from e

    for field, value in updates.items():
        store.set(f"{prefix}{field}", value)
    return profile


def all_profiles(repo_dir: Path | None = None) -> dict[str, Profile]:
    """Return every profile that has a host, keyed by name."""
    keys = git.global_store(repo_dir).get_regexp(f"^{PROFILE_SECTION}\\..*\\.host$")
    names: list[str] = []
    for key in keys:
        name = key[len(PROFILE_SECTION) + 1 : -len(".host")]
        if name and name not in names:
            names.append(name)
    return {name: get_profile(name, repo_dir=repo_dir) for name in names}


def repo_profile(
    remote: str | None = None,
    repo_dir: Path | None = None,
    default_remote: str = DEFAULT_REMOTE,
) -> Profile | None:
    """Return the profile a clone recorded for remote, if any."""
    require_in_repo(repo_dir)
    name = git.local_store(repo_dir).get(f"remote.{remote or default_remote}.gerrit")
    if not name:
        return None
    return get_profile(name, repo_dir=repo_dir)
