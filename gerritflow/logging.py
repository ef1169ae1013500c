"""Logging from config and env.

Levels (inclusive):
- ERROR: failures that end the command
- WARNING: skipped work (missing squad, failed reviewer, detached checkout)
- INFO: progress and command results
- DEBUG: every git and ssh call

Configure via the YAML config (logging.level, logging.format) or env
(LOGGING_LEVEL, LOGGING_FORMAT).
"""

import logging

from gerritflow.config import LoggingConfig

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

DEFAULT_LEVEL = "INFO"
DEFAULT_FORMAT = "%(message)s"
VERBOSE_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _resolve_level(level: str) -> int:
    """Map level name to logging constant.

    Falls back to INFO if unknown.
    """
    return LEVELS.get(level.upper().strip(), logging.INFO)


class GerritLogging:
    """Configures root logger from LoggingConfig (YAML + env LOGGING_*)."""

    def __init__(self, config: LoggingConfig, verbose: bool = False) -> None:
        self._level = logging.DEBUG if verbose else _resolve_level(config.level)
        self._format = config.format or DEFAULT_FORMAT
        if verbose and self._format == DEFAULT_FORMAT:
            self._format = VERBOSE_FORMAT

    def setup(self) -> None:
        """Apply level and format to the root logger."""
        logging.basicConfig(
            level=self._level,
            format=self._format,
            force=True,
        )
