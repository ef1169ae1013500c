"""Configuration loading from YAML and environment.

Server profiles, squads and draft flags live in git config (see
gerritflow.services.git.ConfigStore). This module only covers how the tool
itself behaves: transport commands, defaults and logging.
"""

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_PATH = Path("~/.gerritflow.yaml")


class TransportConfig(BaseSettings):
    """ssh/scp invocation settings."""

    model_config = SettingsConfigDict(env_prefix="GERRIT_SSH_", extra="ignore")

    ssh_command: str = Field(default="ssh", description="ssh client binary")
    scp_command: str = Field(default="scp", description="scp client binary")
    command_prefix: str = Field(default="gerrit", description="Remote command namespace")
    timeout: int = Field(default=60, ge=1, description="Per-call timeout in seconds")


class RepoConfig(BaseSettings):
    """Defaults applied when the command line does not say otherwise."""

    model_config = SettingsConfigDict(env_prefix="GERRITFLOW_", extra="ignore")

    default_remote: str = Field(default="origin", description="Remote used when none is given")
    default_profile: str = Field(default="default", description="Profile used by projects/clone")
    # Used when a checkout target is both a change number and a topic and no one can be asked
    prefer: Literal["topic", "number"] | None = Field(
        default=None,
        description="Non-interactive disambiguation policy: topic or number",
    )


class LoggingConfig(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOGGING_", extra="ignore")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="%(message)s", description="Log format")


class AppConfig(BaseSettings):
    """Root application config from YAML + env."""

    model_config = SettingsConfigDict(extra="ignore")

    transport: TransportConfig = Field(default_factory=TransportConfig)
    repo: RepoConfig = Field(default_factory=RepoConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _substitute_env(value: Any, env: dict[str, str]) -> Any:
    """Replace ${VAR} and $VAR in strings with values from env."""
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            return env.get(value[2:-1].strip(), value)
        if value.startswith("$"):
            return env.get(value[1:].strip(), value)
        return value
    if isinstance(value, dict):
        return {k: _substitute_env(v, env) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env(v, env) for v in value]
    return value


def resolve_config_path(config_path: Path | None = None) -> Path:
    """Explicit path, else $GERRITFLOW_CONFIG, else ~/.gerritflow.yaml."""
    if config_path is not None:
        return Path(config_path).expanduser()
    env_path = os.environ.get("GERRITFLOW_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH.expanduser()


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load config from YAML file and environment.

    A missing file yields defaults (still overridable from env).
    """
    path = resolve_config_path(config_path)
    if not path.is_file():
        return AppConfig()

    raw = yaml.safe_load(path.read_text()) or {}
    raw = _substitute_env(raw, dict(os.environ))

    return AppConfig(
        transport=TransportConfig(**(raw.get("transport") or {})),
        repo=RepoConfig(**(raw.get("repo") or {})),
        logging=LoggingConfig(**(raw.get("logging") or {})),
    )
