"""Shared helpers for CLI commands."""

import logging
from typing import Any

from repeater.application.config import AppConfig, resolve_config
from repeater.domain.exceptions import (
    CorruptRecordError,
    DuplicateCardError,
    StoreError,
)


def configure_logging(verbose: int) -> None:
    if verbose <= 0:
        level = logging.WARNING
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG
    logging.getLogger().setLevel(level)


def _resolve_with_overrides(**kwargs: Any) -> AppConfig:
    """Resolve config, ignoring CLI options the user did not pass."""
    config = resolve_config(kwargs)
    configure_logging(config.verbose)
    return config


def humanize_error(err: Exception) -> str:
    """Turn an application error into a one-line message for the terminal."""
    match err:
        case DuplicateCardError():
            return f"Card already exists ({err.identity[:12]}); nothing was saved."
        case CorruptRecordError():
            return f"Stored record is corrupt: {err.reason}"
        case StoreError():
            return f"Card store error: {err}"
        case _:
            return str(err)

