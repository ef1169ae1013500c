"""Tests for gerritflow.gerrit.commands."""

import pytest

from gerritflow.gerrit import commands
from gerritflow.gerrit.commands import GerritCommand, Operation, format_score


class TestFormatScore:
    @pytest.mark.parametrize("value,expected", [(2, "+2"), (1, "+1"), (0, "0"), (-1, "-1"), (-2, "-2"), ("+1", "+1")])
    def test_format_score(self, value, expected) -> None:
        assert format_score(value) == expected


class TestToWire:
    """Serialization quotes every argument."""

    def test_query_flags(self) -> None:
        wire = commands.query("status:open").to_wire()
        assert wire.startswith("query status:open --format json --patch-sets --files")
        assert "--all-approvals" in wire
        assert "--commit-message" in wire

    def test_query_with_spaces_is_one_argument(self) -> None:
        wire = commands.query("change:1 project:p limit:1").to_wire()
        assert wire.startswith("query 'change:1 project:p limit:1' --format json")

    def test_message_with_quotes_and_metacharacters(self) -> None:
        """A message with shell metacharacters stays a single quoted argument."""
        wire = commands.review("abc", message="it's fine; rm -rf $HOME").to_wire()
        assert wire == "review --message 'it'\"'\"'s fine; rm -rf $HOME' abc"

    def test_raw_is_sent_unchanged(self) -> None:
        assert commands.raw("ls-groups --verbose").to_wire() == "ls-groups --verbose"

    def test_command_is_frozen(self) -> None:
        command = commands.ls_projects()
        with pytest.raises(Exception):
            command.args = ("x",)


class TestReview:
    def test_all_fields(self) -> None:
        command = commands.review(
            "abc123", project="platform/tools", verified=1, code_review=2, message="ok", action="submit"
        )
        assert command.operation is Operation.REVIEW
        assert command.args == (
            "--project",
            "platform/tools",
            "--submit",
            "--verified",
            "+1",
            "--code-review",
            "+2",
            "--message",
            "ok",
            "abc123",
        )

    def test_zero_scores_are_sent(self) -> None:
        command = commands.review("abc", verified=0, code_review=0)
        assert command.args == ("--verified", "0", "--code-review", "0", "abc")

    def test_unknown_action_is_ignored(self) -> None:
        """Only submit and abandon become flags."""
        assert commands.review("abc", action="restore").args == ("abc",)
        assert commands.review("abc", action="abandon").args == ("--abandon", "abc")


class TestOthers:
    def test_set_reviewers(self) -> None:
        command = commands.set_reviewers("bob@example.com", "abc")
        assert command.to_wire() == "set-reviewers --add bob@example.com -- abc"

    def test_ls_projects(self) -> None:
        assert commands.ls_projects() == GerritCommand(operation=Operation.LS_PROJECTS)
        assert commands.ls_projects().to_wire() == "ls-projects"
