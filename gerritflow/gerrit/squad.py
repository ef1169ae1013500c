"""Squads: named reviewer groups stored per repository as
squad.<name>.reviewer."""

from pathlib import Path
from typing import Iterable

from gerritflow.services import git

SQUAD_SECTION = "squad"


def _key(name: str) -> str:
    return f"{SQUAD_SECTION}.{name}.reviewer"


def get(name: str, repo_dir: Path | None = None) -> list[str]:
    """Return the squad's reviewers (empty if the squad does not exist)."""
    return git.local_store(repo_dir).get_all(_key(name))


def get_all(repo_dir: Path | None = None) -> dict[str, list[str]]:
    return {name: get(name, repo_dir) for name in git.local_store(repo_dir).subsections(SQUAD_SECTION)}


def set(name: str, reviewers: Iterable[str], repo_dir: Path | None = None) -> list[str]:
    """Replace the squad's reviewers."""
    unique = list(dict.fromkeys(reviewers))
    return git.local_store(repo_dir).set(_key(name), unique)


def add(name: str, reviewers: Iterable[str], repo_dir: Path | None = None) -> list[str]:
    """Append reviewers not already in the squad; return those added."""
    return git.local_store(repo_dir).add(_key(name), list(reviewers), unique=True)


def remove(name: str, reviewers: Iterable[str], repo_dir: Path | None = None) -> list[str]:
    """Remove reviewers; return only those that were in the squad."""
    return git.local_store(repo_dir).unset_matching(_key(name), reviewers)


def delete(name: str, repo_dir: Path | None = None) -> None:
    git.local_store(repo_dir).remove_section(f"{SQUAD_SECTION}.{name}")


def rename(name: str, new_name: str, repo_dir: Path | None = None) -> None:
    git.local_store(repo_dir).rename_section(f"{SQUAD_SECTION}.{name}", f"{SQUAD_SECTION}.{new_name}")


def exists(name: str, repo_dir: Path | None = None) -> bool:
    return git.local_store(repo_dir).section_exists(f"{SQUAD_SECTION}.{name}")
