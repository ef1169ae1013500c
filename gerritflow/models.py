"""Data models for server profiles, remotes, patches and assignment results."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ServerAddress(BaseModel):
    """Where the review server's ssh daemon listens."""

    host: str = Field(..., description="Server host name")
    port: Optional[int] = Field(default=None, description="ssh port; None uses the ssh default")
    user: Optional[str] = Field(default=None, description="Login; None uses the ssh default")

    @property
    def destination(self) -> str:
        """ssh destination in user@host form."""
        return f"{self.user}@{self.host}" if self.user else self.host


class Profile(ServerAddress):
    """Named server connection stored as gerrit.<name>.<field>."""

    model_config = ConfigDict(extra="allow")

    name: str = Field(..., description="Profile name")
    project: Optional[str] = Field(default=None, description="Default project")
    url: Optional[str] = Field(default=None, description="Web URL without trailing slash")


class RemoteRef(ServerAddress):
    """Connection info parsed from a local remote's URL."""

    name: str = Field(..., description="Local remote name, e.g. origin")
    project: str = Field(..., description="Project path on the server")


class Account(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    name: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None


class Approval(BaseModel):
    """A vote on a patch set, e.g. Code-Review +2."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    type: str = Field(..., description="Verified or Code-Review")
    value: int = Field(default=0, description="Score")
    by: Account = Field(default_factory=Account)


class PatchFile(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    file: str
    type: Optional[str] = None
    insertions: int = 0
    deletions: int = 0


class PatchSet(BaseModel):
    """One revision of a change."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    number: Optional[int] = None
    revision: Optional[str] = None
    is_draft: bool = Field(default=False, alias="isDraft")
    approvals: List[Approval] = Field(default_factory=list)
    files: List[PatchFile] = Field(default_factory=list)


class Comment(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    timestamp: Optional[int] = None
    reviewer: Account = Field(default_factory=Account)
    message: str = ""


class PatchRecord(BaseModel):
    """Snapshot of a change as returned by a server query."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    number: Optional[int] = None
    id: Optional[str] = Field(default=None, description="Change-Id")
    topic: Optional[str] = None
    branch: Optional[str] = None
    project: Optional[str] = None
    subject: str = ""
    owner: Account = Field(default_factory=Account)
    status: Optional[str] = None
    created_on: Optional[int] = Field(default=None, alias="createdOn")
    last_updated: Optional[int] = Field(default=None, alias="lastUpdated")
    patch_sets: List[PatchSet] = Field(default_factory=list, alias="patchSets")
    comments: List[Comment] = Field(default_factory=list)
    commit_message: str = Field(default="", alias="commitMessage")
    url: Optional[str] = None

    @property
    def current_patch_set(self) -> PatchSet | None:
        """Latest patch set (server lists them oldest first)."""
        return self.patch_sets[-1] if self.patch_sets else None


class AssignResult(BaseModel):
    """Outcome of adding one reviewer to one commit."""

    reviewer: str
    success: bool
    error: Optional[str] = None
