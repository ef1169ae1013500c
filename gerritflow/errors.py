"""Error taxonomy for gerritflow operations."""


class GerritError(Exception):
    """Base class for all gerritflow errors."""

    pass


class ConfigError(GerritError):
    """Profile, remote or squad configuration is missing or malformed."""

    pass


class StateError(GerritError):
    """Repository preconditions are not met (not a repository, dirty index,
    missing or non-remote upstream, existing destination)."""

    pass


class NotFoundError(GerritError):
    """Target resolves to no change on the server."""

    pass


class AmbiguousTargetError(GerritError):
    """Target matches both a change number and a topic and no choice was
    made."""

    pass


class RemoteError(GerritError):
    """The review server rejected a command or the remote call failed."""

    def __init__(self, message: str, command: list[str] | str | None = None, returncode: int | None = None) -> None:
        super().__init__(message)
        self.command = command
        self.returncode = returncode


class PushError(RemoteError):
    """Pushing a change for review failed."""

    pass


class TransportError(GerritError):
    """The ssh or scp process itself could not be run."""

    def __init__(self, message: str, command: list[str] | None = None) -> None:
        super().__init__(message)
        self.command = command
