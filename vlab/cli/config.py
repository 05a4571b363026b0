"""Runtime configuration shared by command handlers."""

from __future__ import annotations

import os
from dataclasses import dataclass

from ..env import load_env


@dataclass(frozen=True)
class RuntimeConfig:
    log_level: str
    log_format: str = "kv"

    def export(self) -> None:
        """Publish the logging choice to processes started from this one."""

        os.environ["LOG_LEVEL"] = self.log_level
        os.environ["VLAB_LOG_FORMAT"] = self.log_format


def bootstrap() -> None:
    load_env()


def build_runtime_config(*, log_level: str, log_format: str = "kv") -> RuntimeConfig:
    return RuntimeConfig(log_level=log_level.upper(), log_format=log_format)
