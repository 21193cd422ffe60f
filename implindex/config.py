"""Configuration — registry settings loaded from YAML with env overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from implindex.registry.models import PendingPolicy

DEFAULT_CONFIG_FILE = "implindex.yaml"
ENV_PENDING_POLICY = "IMPLINDEX_PENDING_POLICY"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class RegistryConfig:
    """Settings for the shard registry and CLI."""

    pending_policy: PendingPolicy = PendingPolicy.QUEUE
    capability: str = ""  # Default capability for lookups
    shard_dirs: list[str] = field(default_factory=list)
    log_level: str = "WARNING"


def load_config(path: str | Path | None = None) -> RegistryConfig:
    """Load registry settings from a YAML file.

    A missing file yields defaults. ``IMPLINDEX_PENDING_POLICY`` overrides
    the file's ``pending_policy``. Unknown policies or log levels raise
    ``ValueError``.
    """
    data = {}
    if path is not None and Path(path).is_file():
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    policy = os.environ.get(ENV_PENDING_POLICY) or data.get("pending_policy", "queue")

    log_level = str(data.get("log_level", "WARNING")).upper()
    if log_level not in LOG_LEVELS:
        raise ValueError(
            f"Unknown log_level {log_level!r}, expected one of {', '.join(LOG_LEVELS)}"
        )

    shard_dirs = data.get("shard_dirs") or []
    if isinstance(shard_dirs, str):
        shard_dirs = [shard_dirs]

    return RegistryConfig(
        pending_policy=PendingPolicy(policy),
        capability=data.get("capability", ""),
        shard_dirs=[str(d) for d in shard_dirs],
        log_level=log_level,
    )
