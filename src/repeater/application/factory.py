"""
Card Store Factory
Centralizes the choice of persistence adapter.
"""

import logging

from repeater.application.config import AppConfig
from repeater.infrastructure.store.sqlite_store import SqliteCardStore

logger = logging.getLogger(__name__)


def get_card_store(config: AppConfig) -> SqliteCardStore:
    """
    Returns the CardStore implementation for the configured database path.
    """
    logger.debug(f"[store] Using {config.db_path}")
    return SqliteCardStore(config.db_path)
