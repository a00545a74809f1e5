"""Reading of environment variables, optionally under a common prefix."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class EnvModuleConf:
    """Settings of the environment module."""

    prefix: str | None = None

    def with_prefix(self, prefix: str) -> EnvModuleConf:
        """A copy of these settings that reads ``<prefix>_<name>`` variables."""
        return replace(self, prefix=prefix)


def read_env(prefix: str | None, name: str) -> str | None:
    """The value of variable ``name``, or of ``<prefix>_<name>`` with a prefix."""
    key = f"{prefix}_{name}" if prefix is not None else name
    return os.environ.get(key)


class EnvModule:
    """Gives scripts read access to environment variables."""

    def __init__(self, cfg: EnvModuleConf) -> None:
        self._cfg = cfg

    def read(self, name: str) -> str | None:
        """The value of the variable ``name``, honouring the prefix."""
        return read_env(self._cfg.prefix, name)


def env_module(cfg: EnvModuleConf) -> EnvModule:
    """The environment module for the given settings."""
    return EnvModule(cfg)