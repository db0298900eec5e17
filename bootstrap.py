from __future__ import annotations

import logging

from backup import backup_files
from config import BACKUP_ON_START, DATA_DIR, LOG_LEVEL
from storage.json_storage import JsonStorage, data_files

logger = logging.getLogger(__name__)


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def bootstrap_storage(data_dir: str = DATA_DIR, backup_on_start: bool = BACKUP_ON_START) -> JsonStorage:
    """Build the single storage instance handed to every use case."""
    if backup_on_start:
        created = backup_files(data_files(data_dir))
        logger.info("Startup backup: %s file(s) copied", len(created))
    storage = JsonStorage(data_dir)
    logger.info("Storage ready at %s", data_dir)
    return storage
