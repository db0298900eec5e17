from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)


def create_backup(json_path: str, label: str = "backup") -> str | None:
    source = Path(json_path)
    if not source.exists():
        return None
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    backup_dir = source.parent / "backups"
    backup_dir.mkdir(exist_ok=True)
    backup_path = backup_dir / f"{source.stem}_{label}_{stamp}{source.suffix}"
    shutil.copy2(source, backup_path)
    logger.info("JSON %s created: %s", label, backup_path)
    return str(backup_path)


def backup_files(paths: Iterable[str]) -> list[str]:
    created: list[str] = []
    for path in paths:
        backup_path = create_backup(path)
        if backup_path:
            created.append(backup_path)
    return created
