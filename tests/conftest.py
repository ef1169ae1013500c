"""Shared fixtures: in-memory git config store and repository stubs."""

import re
from typing import Iterable
from unittest.mock import patch

import pytest


class MemoryStore:
    """In-memory stand-in for gerritflow.services.git.ConfigStore."""

    def __init__(self, data: dict[str, list[str]] | None = None) -> None:
        self.data: dict[str, list[str]] = {k: list(v) for k, v in (data or {}).items()}

    def get(self, key: str) -> str | None:
        values = self.data.get(key)
        return values[-1] if values else None

    def get_all(self, key: str) -> list[str]:
        return list(self.data.get(key, []))

    def get_regexp(self, pattern: str) -> dict[str, list[str]]:
        return {k: list(v) for k, v in self.data.items() if re.search(pattern, k)}

    def set(self, key: str, values: str | Iterable[str]) -> list[str]:
        self.unset(key)
        return self.add(key, values)

    def add(self, key: str, values: str | Iterable[str], unique: bool = False) -> list[str]:
        values = [values] if isinstance(values, str) else list(values)
        stored = self.data.setdefault(key, [])
        added = []
        for value in values:
            if unique and value in stored:
                continue
            stored.append(value)
            added.append(value)
        return added

    def unset(self, key: str) -> None:
        self.data.pop(key, None)

    def unset_matching(self, key: str, values: Iterable[str]) -> list[str]:
        stored = self.data.get(key, [])
        removed = [v for v in dict.fromkeys(values) if v in stored]
        self.data[key] = [v for v in stored if v not in removed]
        return removed

    def subsections(self, section: str) -> list[str]:
        names = []
        for key in self.data:
            if key.startswith(section + "."):
                name = key[len(section) + 1 : key.rfind(".")]
                if name and name not in names:
                    names.append(name)
        return names

    def section_exists(self, section: str) -> bool:
        return any(key.startswith(section + ".") for key in self.data)

    def remove_section(self, section: str) -> None:
        for key in [k for k in self.data if k.startswith(section + ".")]:
            del self.data[key]

    def rename_section(self, old: str, new: str) -> None:
        for key in [k for k in self.data if k.startswith(old + ".")]:
            self.data[new + key[len(old) :]] = self.data.pop(key)


@pytest.fixture
def store():
    """One MemoryStore behind local, global and default scoped stores."""
    memory = MemoryStore()
    factory = lambda *args, **kwargs: memory  # noqa: E731
    with (
        patch("gerritflow.services.git.local_store", side_effect=factory),
        patch("gerritflow.services.git.global_store", side_effect=factory),
        patch("gerritflow.services.git.ConfigStore", side_effect=factory),
    ):
        yield memory


@pytest.fixture
def repo():
    """Pretend the working directory is a clean repository."""
    with (
        patch("gerritflow.services.git.in_repo", return_value=True),
        patch("gerritflow.services.git.is_index_clean", return_value=True),
    ):
        yield


@pytest.fixture
def origin(store, repo):
    """Repository whose origin points at a review server."""
    store.data["remote.origin.url"] = ["ssh://alice@review.example.com:29418/platform/tools.git"]
    return store
