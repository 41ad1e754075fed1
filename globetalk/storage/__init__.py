"""Storage backends for profiles and penpal requests."""

import logging
import os
from typing import Optional, Tuple

from .user_directory import DirectoryTransaction, UserDirectory
from .penpal_store import PenpalStore, PenpalTransaction
from .memory import InMemoryPenpalStore, InMemoryUserDirectory

from globetalk.utils.constants import ENV_DATABASE_URL


logger = logging.getLogger(__name__)


def create_stores(database_url: Optional[str] = None) -> Tuple[UserDirectory, PenpalStore]:
    """
    Build the directory and penpal store for this process.

    Uses PostgreSQL when a database URL is given or DATABASE_URL is set,
    otherwise in-memory stores. Both PostgreSQL stores share one pool.

    Returns:
        (directory, penpal_store)
    """
    database_url = database_url or os.getenv(ENV_DATABASE_URL)
    if not database_url:
        logger.info("DATABASE_URL not set, using in-memory storage")
        return InMemoryUserDirectory(), InMemoryPenpalStore()

    from .postgres import PostgresPenpalStore, PostgresUserDirectory

    directory = PostgresUserDirectory(database_url)
    penpals = PostgresPenpalStore(database_url, connection_pool=directory.connection_pool)
    directory.init_schema()
    penpals.init_schema()
    logger.info("Using PostgreSQL storage")
    return directory, penpals


__all__ = [
    'DirectoryTransaction',
    'UserDirectory',
    'PenpalStore',
    'PenpalTransaction',
    'InMemoryUserDirectory',
    'InMemoryPenpalStore',
    'create_stores',
]
