"""Key-value store backed by git config.

Keys are namespaced (``section.subsection.name``) and may hold several
values in insertion order. The textual config format is never exposed:
callers get strings, lists and dicts.
"""

import logging
import re
from pathlib import Path
from typing import Iterable, Literal

from gerritflow.services.git._run import GitRunnerError, _cwd, _run_git

Scope = Literal["local", "global"]

# git config exit status when the key or section is absent
_MISSING_KEY = 1
_NOTHING_TO_UNSET = 5

_ERE_SPECIAL_RE = re.compile(r"([.\[\](){}*+?|^$\\])")


def regex_escape(text: str) -> str:
    """Escape text for use in a git config (POSIX extended) regex."""
    return _ERE_SPECIAL_RE.sub(r"\\\1", text)


def _as_list(values: str | Iterable[str]) -> list[str]:
    if isinstance(values, str):
        return [values]
    return list(values)


class ConfigStore:
    """Ordered multimap over ``git config`` for one scope.

    scope=None reads the merged view (system, global, local) and writes
    the repository config, as plain ``git config`` does.
    """

    def __init__(
        self,
        scope: Scope | None = None,
        repo_dir: Path | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.scope = scope
        self.repo_dir = repo_dir
        self._log = log

    def _git(self, *args: str) -> str:
        flags = [f"--{self.scope}"] if self.scope else []
        return _run_git(["config", *flags, *args], cwd=_cwd(self.repo_dir), log=self._log)

    def _read(self, *args: str) -> str | None:
        try:
            return self._git(*args)
        except GitRunnerError as e:
            if e.returncode == _MISSING_KEY:
                return None
            raise

    def get(self, key: str) -> str | None:
        """Return the last value of key, or None when unset."""
        return self._read("--get", key)

    def get_all(self, key: str) -> list[str]:
        """Return every value of key in insertion order."""
        output = self._read("--get-all", key)
        if output is None:
            return []
        return output.split("\n")

    def get_regexp(self, pattern: str) -> dict[str, list[str]]:
        """Return {key: [values]} for every key matching pattern."""
        output = self._read("--get-regexp", pattern)
        result: dict[str, list[str]] = {}
        if not output:
            return result
        for line in output.split("\n"):
            key, _, value = line.partition(" ")
            result.setdefault(key, []).append(value)
        return result

    def set(self, key: str, values: str | Iterable[str]) -> list[str]:
        """Replace all values of key."""
        self.unset(key)
        return self.add(key, values)

    def add(self, key: str, values: str | Iterable[str], unique: bool = False) -> list[str]:
        """Append values to key and return the ones actually written.

        With unique=True, values already stored (or repeated) are skipped.
        """
        to_add = _as_list(values)
        if unique:
            seen = set(self.get_all(key))
            filtered = []
            for value in to_add:
                if value not in seen:
                    seen.add(value)
                    filtered.append(value)
            to_add = filtered
        for value in to_add:
            self._git("--add", key, value)
        return to_add

    def unset(self, key: str) -> None:
        """Remove every value of key. A missing key is not an error."""
        try:
            self._git("--unset-all", key)
        except GitRunnerError as e:
            if e.returncode != _NOTHING_TO_UNSET:
                raise

    def unset_matching(self, key: str, values: Iterable[str]) -> list[str]:
        """Remove the given values from key; return those that were present."""
        stored = self.get_all(key)
        removed: list[str] = []
        for value in values:
            if value in stored and value not in removed:
                self._git("--unset-all", key, f"^{regex_escape(value)}$")
                removed.append(value)
        return removed

    def subsections(self, section: str) -> list[str]:
        """Return distinct subsection names under section, in config order."""
        prefix = f"{section.lower()}."
        names: list[str] = []
        for key in self.get_regexp(f"^{regex_escape(section)}\\."):
            if not key.lower().startswith(prefix):
                continue
            name = key[len(prefix) : key.rfind(".")]
            if name and name not in names:
                names.append(name)
        return names

    def section_exists(self, section: str) -> bool:
        """Return True if any key lives under section."""
        return bool(self.get_regexp(f"^{regex_escape(section)}\\."))

    def remove_section(self, section: str) -> None:
        self._git("--remove-section", section)

    def rename_section(self, old: str, new: str) -> None:
        self._git("--rename-section", old, new)


def local_store(repo_dir: Path | None = None, log: logging.Logger | None = None) -> ConfigStore:
    """Store for the repository config (squads, draft flags, reviewer ledger)."""
    return ConfigStore("local", repo_dir=repo_dir, log=log)


def global_store(repo_dir: Path | None = None, log: logging.Logger | None = None) -> ConfigStore:
    """Store for the user's global config (server profiles)."""
    return ConfigStore("global", repo_dir=repo_dir, log=log)
