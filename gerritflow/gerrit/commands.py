"""Typed remote commands for the review server's ssh interface.

Commands are built from typed parameters and serialized to the wire string
in one place (GerritCommand.to_wire), which quotes every argument.
"""

import shlex
from enum import Enum
from typing import Literal, Tuple

from pydantic import BaseModel, ConfigDict

Action = Literal["submit", "abandon"]
ACTIONS: tuple[str, ...] = ("submit", "abandon")

QUERY_FLAGS = (
    "--format",
    "json",
    "--patch-sets",
    "--files",
    "--all-approvals",
    "--comments",
    "--commit-message",
    "--submit-records",
)


class Operation(str, Enum):
    QUERY = "query"
    REVIEW = "review"
    SET_REVIEWERS = "set-reviewers"
    LS_PROJECTS = "ls-projects"
    RAW = "raw"


class GerritCommand(BaseModel):
    """One command for the server; args are quoted on serialization.

    RAW commands carry user-typed text in args[0] and are sent unchanged.
    """

    model_config = ConfigDict(frozen=True)

    operation: Operation
    args: Tuple[str, ...] = ()

    def to_wire(self) -> str:
        if self.operation is Operation.RAW:
            return self.args[0] if self.args else ""
        return " ".join([self.operation.value, *(shlex.quote(arg) for arg in self.args)])


def format_score(value: int | str) -> str:
    """Render a vote as the server expects it: +2, -1, 0."""
    if isinstance(value, int):
        return f"{value:+d}" if value else "0"
    return str(value)


def query(search: str) -> GerritCommand:
    """Query returning JSON records with patch sets, files, approvals,
    comments, commit message and submit records."""
    return GerritCommand(operation=Operation.QUERY, args=(search, *QUERY_FLAGS))


def review(
    commit: str,
    project: str | None = None,
    verified: int | str | None = None,
    code_review: int | str | None = None,
    message: str | None = None,
    action: str | None = None,
) -> GerritCommand:
    """Review command for one commit.

    Scores of 0 are sent; None means omitted. Actions other than submit
    and abandon are ignored.
    """
    args: list[str] = []
    if project:
        args += ["--project", project]
    if action in ACTIONS:
        args.append(f"--{action}")
    if verified is not None:
        args += ["--verified", format_score(verified)]
    if code_review is not None:
        args += ["--code-review", format_score(code_review)]
    if message is not None:
        args += ["--message", message]
    args.append(commit)
    return GerritCommand(operation=Operation.REVIEW, args=tuple(args))


def set_reviewers(reviewer: str, commit: str) -> GerritCommand:
    return GerritCommand(operation=Operation.SET_REVIEWERS, args=("--add", reviewer, "--", commit))


def ls_projects() -> GerritCommand:
    return GerritCommand(operation=Operation.LS_PROJECTS)


def raw(text: str) -> GerritCommand:
    return GerritCommand(operation=Operation.RAW, args=(text,))
