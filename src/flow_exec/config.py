"""Load flow-exec configuration from env vars and an optional YAML file.

Order: FLOW_EXEC_* env vars → config file → built-in defaults.
The config file is FLOW_EXEC_CONFIG if set, else .flow-exec.yml when present.
"""

import os
from dataclasses import dataclass, field

import yaml

from flow_exec.errors import ConfigError
from flow_exec.options import ExecContext, OutputMode, StartOptions

CONFIG_FILE = ".flow-exec.yml"

_TRUE = {"1", "true", "yes", "on"}


@dataclass
class Config:
    output: OutputMode = OutputMode.IGNORE
    error_output: OutputMode = OutputMode.IGNORE
    echo: bool = True
    which: str | None = None
    extensions: list[str] = field(default_factory=list)

    def start_options(self) -> StartOptions:
        return StartOptions(
            output=self.output,
            error_output=self.error_output,
            suppress_echo=not self.echo,
        )

    def context(self) -> ExecContext:
        return ExecContext(start_options=self.start_options(), which_helper=self.which)


def _config_path() -> str | None:
    env_path = os.environ.get("FLOW_EXEC_CONFIG")
    if env_path:
        return env_path
    if os.path.isfile(CONFIG_FILE):
        return CONFIG_FILE
    return None


def _parse_mode(key: str, value) -> OutputMode:
    try:
        return OutputMode(str(value).lower())
    except ValueError:
        raise ConfigError(f"{key}: expected 'capture' or 'ignore', got {value!r}") from None


def parse_config(data: dict) -> Config:
    """Build a Config from a parsed YAML mapping."""
    if not isinstance(data, dict):
        raise ConfigError("config file must contain a mapping")

    config = Config()
    if "output" in data:
        config.output = _parse_mode("output", data["output"])
    if "error_output" in data:
        config.error_output = _parse_mode("error_output", data["error_output"])
    if "echo" in data:
        config.echo = bool(data["echo"])
    if data.get("which"):
        config.which = str(data["which"])

    extensions = data.get("extensions", [])
    if isinstance(extensions, str):
        # PATHEXT style: ".EXE;.CMD"
        extensions = [e for e in extensions.split(";") if e]
    config.extensions = [str(e).upper() for e in extensions]
    return config


def load() -> Config:
    """Resolve the effective configuration."""
    path = _config_path()
    config = Config()
    if path is not None:
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigError(f"cannot read config {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid YAML in {path}: {e}") from e
        config = parse_config(data)

    env_which = os.environ.get("FLOW_EXEC_WHICH")
    if env_which:
        config.which = env_which
    if os.environ.get("FLOW_EXEC_NO_ECHO", "").lower() in _TRUE:
        config.echo = False
    return config
