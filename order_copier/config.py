"""
Process configuration: account credentials for the source and destination.

Loaded once at startup (environment, optionally a .env file) and passed
explicitly to the components that need it.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from order_copier.errors import ConfigurationError

logger = logging.getLogger(__name__)

SOURCE_API_KEY = "SOURCE_API_KEY"
SOURCE_SECRET_KEY = "SOURCE_SECRET_KEY"
DEST_API_KEY = "DEST_API_KEY"
DEST_SECRET_KEY = "DEST_SECRET_KEY"
REQUIRED_VARS = (SOURCE_API_KEY, SOURCE_SECRET_KEY, DEST_API_KEY, DEST_SECRET_KEY)

DRY_RUN_ENV = "ORDER_COPIER_DRY_RUN"
LOG_LEVEL_ENV = "ORDER_COPIER_LOG_LEVEL"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class AccountCredentials:
    """API key pair for one exchange account. The secret never appears in repr."""

    api_key: str
    api_secret: str = field(repr=False)


@dataclass(frozen=True)
class ReplicatorConfig:
    """Startup configuration for one replication run."""

    source: AccountCredentials
    destination: AccountCredentials
    dry_run: bool = False
    max_records: int = 1000


def config_from_env(environ: Mapping[str, str], *, dry_run: bool | None = None) -> ReplicatorConfig:
    """
    Build the config from an environment mapping.
    Raises ConfigurationError naming every missing or blank credential.
    """
    values = {name: (environ.get(name) or "").strip() for name in REQUIRED_VARS}
    missing = tuple(name for name in REQUIRED_VARS if not values[name])
    if missing:
        raise ConfigurationError(
            "Missing required credentials: " + ", ".join(missing)
            + ". Please set environment variables: " + ", ".join(REQUIRED_VARS),
            missing=missing,
        )
    if dry_run is None:
        dry_run = environ.get(DRY_RUN_ENV, "").strip().lower() in _TRUTHY
    return ReplicatorConfig(
        source=AccountCredentials(values[SOURCE_API_KEY], values[SOURCE_SECRET_KEY]),
        destination=AccountCredentials(values[DEST_API_KEY], values[DEST_SECRET_KEY]),
        dry_run=dry_run,
    )


def load_config(
    environ: Mapping[str, str] | None = None,
    *,
    dotenv_path: str | Path | None = None,
    dry_run: bool | None = None,
) -> ReplicatorConfig:
    """
    Load configuration for the process.

    With environ=None, a .env file (dotenv_path, or one found from the working
    directory) is loaded into os.environ first; variables already set win.
    An explicit environ mapping is used as-is.
    """
    if environ is None:
        if dotenv_path is not None and not Path(dotenv_path).exists():
            raise ConfigurationError(f".env file not found: {dotenv_path}")
        if load_dotenv(dotenv_path=dotenv_path):
            logger.info("Loaded environment from .env file")
        else:
            logger.info("No .env file found, using system environment variables")
        environ = os.environ
    return config_from_env(environ, dry_run=dry_run)
