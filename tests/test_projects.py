"""Tests for gerritflow.gerrit.projects."""

from pathlib import Path
from unittest.mock import patch

import pytest

from gerritflow.errors import StateError
from gerritflow.gerrit.projects import clone, clone_url, install_hook, open_patches, projects, ssh_passthrough
from gerritflow.models import Profile

PROFILE = Profile(name="work", host="review.example.com", port=29418, user="alice")


class TestProjects:
    def test_lists_nonblank_lines(self) -> None:
        with patch("gerritflow.services.ssh.run", return_value="platform/tools\nplatform/docs\n\n") as mock_run:
            assert projects(PROFILE) == ["platform/tools", "platform/docs"]
        assert mock_run.call_args[0][0].to_wire() == "ls-projects"

    def test_clone_url(self) -> None:
        assert clone_url(PROFILE, "platform/tools") == "ssh://alice@review.example.com:29418/platform/tools.git"
        assert clone_url(Profile(name="p", host="h"), "x") == "ssh://h/x.git"


class TestInstallHook:
    def test_copies_into_hooks_dir(self, origin, tmp_path) -> None:
        git_dir = tmp_path / ".git"
        with (
            patch("gerritflow.services.git.git_dir", return_value=git_dir),
            patch("gerritflow.services.ssh.scp") as mock_scp,
        ):
            hook = install_hook()
        assert hook == git_dir / "hooks" / "commit-msg"
        assert (git_dir / "hooks").is_dir()
        source, destination, address = mock_scp.call_args[0][:3]
        assert (source, destination, address.port) == ("hooks/commit-msg", git_dir / "hooks", 29418)


class TestClone:
    def test_clone_records_profile_and_installs_hook(self, store, repo, tmp_path) -> None:
        def fake_clone(url, destination, work_dir=None, log=None):
            store.data["remote.origin.url"] = [url]
            return work_dir / destination

        with (
            patch("gerritflow.services.git.clone", side_effect=fake_clone) as mock_clone,
            patch("gerritflow.gerrit.projects.install_hook") as mock_hook,
        ):
            target = clone(PROFILE, "platform/tools", work_dir=tmp_path)

        assert target == tmp_path / "platform/tools"
        assert mock_clone.call_args[0][:2] == ("ssh://alice@review.example.com:29418/platform/tools.git", Path("platform/tools"))
        assert store.data["remote.origin.gerrit"] == ["work"]
        mock_hook.assert_called_once_with("origin", repo_dir=target, settings=None)

    def test_existing_destination(self, store, tmp_path) -> None:
        (tmp_path / "tools").mkdir()
        with patch("gerritflow.services.git.clone") as mock_clone:
            with pytest.raises(StateError, match="already exists"):
                clone(PROFILE, "platform/tools", destination="tools", work_dir=tmp_path)
        mock_clone.assert_not_called()


class TestOpenPatches:
    def test_open_changes_of_project(self, origin) -> None:
        with patch("gerritflow.gerrit.query.run_query", return_value=[]) as mock_query:
            open_patches({"owner": "self", "not": {"branch": "stable"}})
        assert mock_query.call_args[0][0] == {
            "status": "open",
            "project": "platform/tools",
            "owner": "self",
            "not": {"branch": "stable"},
        }


class TestPassthrough:
    def test_raw_command(self, origin) -> None:
        with patch("gerritflow.services.ssh.run", return_value="ok") as mock_run:
            assert ssh_passthrough("ls-groups --verbose") == "ok"
        assert mock_run.call_args[0][0].to_wire() == "ls-groups --verbose"
