"""gerritflow: command-line bridge between a git work tree and a Gerrit
review server."""

__version__ = "0.1.0"
