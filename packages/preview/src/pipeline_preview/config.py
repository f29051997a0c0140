"""
Configuration: paths, shell detection and settings.

Settings come from, in increasing priority: built-in defaults, the
environment (PIPELINE_SHELL / SHELL), ~/.pipeline/settings.json, and the
command-line flags.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass
from typing import Any, Mapping

from .renderer import DEFAULT_MAX_LINES

logger = logging.getLogger(__name__)

# App metadata
APP_NAME: str = "pipeline"
CONFIG_DIR_NAME: str = ".pipeline"
VERSION: str = "0.1.0"

DEFAULT_PROMPT = "pipeline> "
DEFAULT_SHELL = "/bin/sh"
KNOWN_SHELLS: tuple[str, ...] = ("sh", "bash", "zsh", "fish")

ENV_CONFIG_DIR: str = f"{APP_NAME.upper()}_CONFIG_DIR"
ENV_SHELL: str = f"{APP_NAME.upper()}_SHELL"
ENV_DEBUG_LOG: str = f"{APP_NAME.upper()}_DEBUG_LOG"


# ============================================================================
# Paths
# ============================================================================


def get_config_dir() -> str:
    """Get the config directory (e.g., ~/.pipeline/)."""
    env_dir = os.environ.get(ENV_CONFIG_DIR)
    if env_dir:
        return os.path.expanduser(env_dir)
    return os.path.join(os.path.expanduser("~"), CONFIG_DIR_NAME)


def get_settings_path() -> str:
    """Get path to settings.json."""
    return os.path.join(get_config_dir(), "settings.json")


# ============================================================================
# Shell detection
# ============================================================================


def detect_shell(env: Mapping[str, str] | None = None) -> str:
    """
    PIPELINE_SHELL, then SHELL, then /bin/sh.

    SHELL is the login shell, which may differ from the shell the user is
    currently running in.
    """
    env = os.environ if env is None else env
    return env.get(ENV_SHELL) or env.get("SHELL") or DEFAULT_SHELL


def validate_shell(shell: str) -> tuple[str, bool]:
    """
    Only shells known to accept ``-c`` are used; anything else falls back to
    /bin/sh. Returns (shell_to_use, accepted).
    """
    if os.path.basename(shell) in KNOWN_SHELLS and os.sep in shell:
        return shell, True
    return DEFAULT_SHELL, False


# ============================================================================
# Settings
# ============================================================================


@dataclass
class Settings:
    """Optional values from settings.json; None means "not set"."""
    shell: str | None = None
    truncate_lines: bool | None = None
    max_lines: int | None = None
    timeout: float | None = None
    prompt: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Settings":
        known = cls.__dataclass_fields__.keys()
        filtered = {k: v for k, v in data.items() if k in known}
        return cls(**filtered)

    def merge(self, other: "Settings") -> "Settings":
        """Merge another Settings into this one (other wins for non-None values)."""
        base = self.to_dict()
        for k, v in other.to_dict().items():
            if v is not None:
                base[k] = v
        return Settings.from_dict(base)


def load_settings(path: str | None = None) -> Settings:
    """Read settings.json; a missing, unreadable or malformed file yields defaults."""
    path = path or get_settings_path()
    if not os.path.exists(path):
        return Settings()
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("ignoring settings file %s: %s", path, exc)
        return Settings()
    if not isinstance(data, dict):
        logger.warning("ignoring settings file %s: expected a JSON object", path)
        return Settings()
    return Settings.from_dict(data)


@dataclass(frozen=True)
class PreviewConfig:
    """Resolved configuration handed to the orchestrator."""
    shell: str = DEFAULT_SHELL
    truncate_lines: bool = False
    max_lines: int = DEFAULT_MAX_LINES
    timeout: float | None = None
    prompt: str = DEFAULT_PROMPT

    def __post_init__(self) -> None:
        if self.max_lines <= 0:
            raise ValueError(f"max_lines must be positive, got {self.max_lines}")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")


def resolve_config(
    overrides: Settings | None = None,
    settings: Settings | None = None,
    env: Mapping[str, str] | None = None,
) -> tuple[PreviewConfig, list[str]]:
    """
    Combine settings file values and CLI overrides into a PreviewConfig.
    Returns the config and a list of human-readable warnings.
    """
    merged = (settings or Settings()).merge(overrides or Settings())
    warnings: list[str] = []

    requested = merged.shell or detect_shell(env)
    shell, accepted = validate_shell(requested)
    if not accepted:
        warnings.append(f"Unknown shell '{requested}', falling back to '{shell}'")

    config = PreviewConfig(
        shell=shell,
        truncate_lines=bool(merged.truncate_lines),
        max_lines=merged.max_lines if merged.max_lines is not None else DEFAULT_MAX_LINES,
        timeout=merged.timeout,
        prompt=merged.prompt if merged.prompt is not None else DEFAULT_PROMPT,
    )
    return config, warnings
