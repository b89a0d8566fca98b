"""
Snapshot export of every collection.

Exports read through the repositories, so they work the same for both storage
backends. Server-side backup files keep password hashes; downloads do not.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict

from nulltasker.core.errors import StorageError
from nulltasker.models import utc_now

logger = logging.getLogger(__name__)

DATA_DOWNLOAD_FILENAME = "nulltasker-data-backup.json"
SETTINGS_DOWNLOAD_FILENAME = "nulltasker-settings-backup.json"


def export_data(storage, include_passwords: bool = False) -> Dict[str, Any]:
    user_exclude = None if include_passwords else {"password"}
    return {
        "users": [u.model_dump(mode="json", exclude=user_exclude) for u in storage.users.list()],
        "tasks": [t.model_dump(mode="json") for t in storage.tickets.list()],
        "projects": [p.model_dump(mode="json") for p in storage.projects.list()],
    }


def export_settings(storage) -> Dict[str, Any]:
    return {"settings": storage.settings.get(), "exportDate": utc_now()}


def backup_filename(timestamp: str) -> str:
    """backup-<ISO timestamp with ':' and '.' replaced by '-'>.json"""
    return "backup-{}.json".format(timestamp.replace(":", "-").replace(".", "-"))


def write_backup(storage, directory: Path) -> str:
    """Write a full snapshot to ``directory`` and return the file name."""
    now = utc_now()
    payload = export_data(storage, include_passwords=True)
    payload["settings"] = storage.settings.get()
    payload["backupDate"] = now

    filename = backup_filename(now)
    path = Path(directory) / filename
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as fh:
            json.dump(payload, fh, ensure_ascii=False, indent=2)
    except OSError:
        logger.exception("Failed to write backup %s", path)
        raise StorageError()
    logger.info("Backup written to %s", path)
    return filename
