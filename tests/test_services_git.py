"""Tests for gerritflow.services.git (runner, branches, repo, push_pull)."""

import subprocess
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from gerritflow.services.git import (
    GitRunnerError,
    branch_exists,
    branch_upstream,
    clone,
    create_branch,
    current_branch_name,
    describe_hash,
    fetch,
    hash_for,
    in_repo,
    is_index_clean,
    is_remote_branch,
    ls_remote,
    push,
    rev_list,
    set_upstream,
    split_remote_branch,
)
from gerritflow.services.git._run import _git_succeeds, _run_git

REPO = Path("/tmp/repo")


class TestRunner:
    """_run_git and _git_succeeds."""

    def test_run_git_returns_stdout_without_trailing_newline(self) -> None:
        result = Mock(stdout="output\n")
        with patch("gerritflow.services.git._run.subprocess.run", return_value=result) as mock_run:
            assert _run_git(["status"], cwd=REPO) == "output"
        assert mock_run.call_args[0][0] == ["git", "status"]
        assert mock_run.call_args[1]["cwd"] == REPO

    def test_run_git_keeps_exit_status(self) -> None:
        """Failures carry the command and git's exit status."""
        error = subprocess.CalledProcessError(128, ["git", "fetch"], stderr="fatal: nope\n")
        with patch("gerritflow.services.git._run.subprocess.run", side_effect=error):
            with pytest.raises(GitRunnerError) as exc_info:
                _run_git(["fetch"], cwd=REPO)
        assert exc_info.value.returncode == 128
        assert exc_info.value.command == ["git", "fetch"]
        assert "fatal: nope" in str(exc_info.value)

    def test_run_git_missing_binary(self) -> None:
        with patch("gerritflow.services.git._run.subprocess.run", side_effect=FileNotFoundError()):
            with pytest.raises(GitRunnerError, match="git not found"):
                _run_git(["status"], cwd=REPO)

    def test_git_succeeds(self) -> None:
        with patch("gerritflow.services.git._run._run_git", return_value=""):
            assert _git_succeeds(["status"], cwd=REPO) is True
        with patch("gerritflow.services.git._run._run_git", side_effect=GitRunnerError("x", returncode=1)):
            assert _git_succeeds(["status"], cwd=REPO) is False

    def test_git_succeeds_raises_when_git_cannot_run(self) -> None:
        """A missing git binary is an error, not a False answer."""
        with patch("gerritflow.services.git._run._run_git", side_effect=GitRunnerError("git not found")):
            with pytest.raises(GitRunnerError):
                _git_succeeds(["status"], cwd=REPO)


class TestBranches:
    """gerritflow.services.git.branches."""

    def test_current_branch_name(self) -> None:
        with patch("gerritflow.services.git.branches._run_git", return_value="topic") as mock_run:
            assert current_branch_name(REPO) == "topic"
        assert mock_run.call_args[0][0] == ["symbolic-ref", "--quiet", "--short", "HEAD"]

    def test_current_branch_name_detached(self) -> None:
        with patch("gerritflow.services.git.branches._run_git", side_effect=GitRunnerError("", returncode=1)):
            assert current_branch_name(REPO) is None

    def test_branch_exists(self) -> None:
        with patch("gerritflow.services.git.branches._git_succeeds", return_value=True) as mock_ok:
            assert branch_exists("topic", REPO) is True
        assert mock_ok.call_args[0][0] == ["show-ref", "--verify", "--quiet", "refs/heads/topic"]

    def test_branch_upstream(self) -> None:
        with patch("gerritflow.services.git.branches._run_git", return_value="origin/master") as mock_run:
            assert branch_upstream("topic", REPO) == "origin/master"
        assert mock_run.call_args[0][0] == ["rev-parse", "--symbolic-full-name", "--abbrev-ref", "topic@{u}"]

    def test_is_remote_branch(self) -> None:
        with patch("gerritflow.services.git.branches._git_succeeds", return_value=False) as mock_ok:
            assert is_remote_branch("topic", REPO) is False
        assert mock_ok.call_args[0][0] == ["rev-parse", "--verify", "--quiet", "refs/remotes/topic"]

    def test_split_remote_branch(self) -> None:
        assert split_remote_branch("upstream/branch") == ("upstream", "branch")
        assert split_remote_branch("origin/release/1.0") == ("origin", "release/1.0")

    def test_create_branch(self) -> None:
        with patch("gerritflow.services.git.branches._run_git") as mock_run:
            create_branch("topic", "start", repo_dir=REPO)
            create_branch("topic", "FETCH_HEAD", checkout=True, repo_dir=REPO)
        assert mock_run.call_args_list[0][0][0] == ["branch", "topic", "start"]
        assert mock_run.call_args_list[1][0][0] == ["checkout", "-b", "topic", "FETCH_HEAD"]

    def test_set_upstream(self) -> None:
        with patch("gerritflow.services.git.branches._run_git") as mock_run:
            set_upstream("topic", "origin/master", REPO)
        assert mock_run.call_args[0][0] == ["branch", "--set-upstream-to=origin/master", "topic"]


class TestRepo:
    """gerritflow.services.git.repo."""

    def test_in_repo(self) -> None:
        with patch("gerritflow.services.git.repo._git_succeeds", return_value=True) as mock_ok:
            assert in_repo(REPO) is True
        assert mock_ok.call_args[0][0] == ["rev-parse", "--git-dir"]

    def test_is_index_clean(self) -> None:
        with patch("gerritflow.services.git.repo._git_succeeds", return_value=True) as mock_ok:
            assert is_index_clean(REPO) is True
        assert mock_ok.call_args[0][0] == ["diff-index", "--no-ext-diff", "--quiet", "--exit-code", "HEAD"]

    def test_hash_for(self) -> None:
        with patch("gerritflow.services.git.repo._run_git", return_value="abc123") as mock_run:
            assert hash_for("HEAD", REPO) == "abc123"
        assert mock_run.call_args[0][0] == ["rev-list", "--max-count=1", "HEAD"]

    def test_rev_list(self) -> None:
        with patch("gerritflow.services.git.repo._run_git", return_value="one\ntwo\nthree") as mock_run:
            assert rev_list("HEAD", "origin/master", REPO) == ["one", "two", "three"]
        assert mock_run.call_args[0][0] == ["rev-list", "HEAD", "^origin/master"]

    def test_rev_list_empty(self) -> None:
        with patch("gerritflow.services.git.repo._run_git", return_value=""):
            assert rev_list("HEAD", "origin/master", REPO) == []

    def test_describe_hash(self) -> None:
        with patch("gerritflow.services.git.repo._run_git", return_value="abc123 Fix it") as mock_run:
            assert describe_hash("abc123", REPO) == "abc123 Fix it"
        assert mock_run.call_args[0][0] == ["show", "--no-patch", "--format=%h %s", "abc123"]

    def test_ls_remote_returns_ref_names(self) -> None:
        output = "aaa\trefs/changes/34/1234/1\nbbb\trefs/changes/34/1234/2"
        with patch("gerritflow.services.git.repo._run_git", return_value=output) as mock_run:
            refs = ls_remote("origin", "refs/changes/34/1234/*", REPO)
        assert refs == ["refs/changes/34/1234/1", "refs/changes/34/1234/2"]
        assert mock_run.call_args[0][0] == ["ls-remote", "origin", "refs/changes/34/1234/*"]


class TestPushPull:
    """gerritflow.services.git.push_pull."""

    def test_fetch(self) -> None:
        with patch("gerritflow.services.git.push_pull._run_git") as mock_run:
            fetch("origin", "refs/changes/34/1234/1", REPO)
        mock_run.assert_called_once_with(["fetch", "origin", "refs/changes/34/1234/1"], cwd=REPO, log=None)

    def test_push(self) -> None:
        with patch("gerritflow.services.git.push_pull._run_git", return_value="") as mock_run:
            push("origin", "HEAD:refs/for/master/topic", REPO)
        mock_run.assert_called_once_with(["push", "origin", "HEAD:refs/for/master/topic"], cwd=REPO, log=None)

    def test_clone_runs_in_work_dir(self) -> None:
        """Clone runs with cwd=work_dir and returns the new repository path."""
        with patch("gerritflow.services.git.push_pull._run_git") as mock_run:
            target = clone("ssh://u@h:1/p.git", Path("p"), work_dir=REPO)
        assert target == REPO / "p"
        mock_run.assert_called_once_with(["clone", "ssh://u@h:1/p.git", "p"], cwd=REPO, log=None)
