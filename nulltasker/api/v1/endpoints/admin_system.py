"""
System administration: settings document and backups.
Restricted to Super Admins.
"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from nulltasker.api import deps
from nulltasker.db.backup import (
    DATA_DOWNLOAD_FILENAME,
    SETTINGS_DOWNLOAD_FILENAME,
    export_data,
    export_settings,
    write_backup,
)
from nulltasker.db.session import Storage, get_storage
from nulltasker.models import utc_now
from nulltasker.schemas.auth import TokenPayload

logger = logging.getLogger(__name__)

router = APIRouter()


def _attachment(content: Dict[str, Any], filename: str) -> JSONResponse:
    return JSONResponse(
        content=content,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.put("/system-settings")
def update_system_settings(
    settings_in: Dict[str, Any],
    storage: Storage = Depends(get_storage),
    admin: TokenPayload = Depends(deps.require_system_admin),
):
    """Merge the given keys into the system settings document."""
    updated = storage.settings.update(settings_in)
    logger.info("Admin %s updated system settings (%s)", admin.id, ", ".join(sorted(settings_in)))
    return {"success": True, "message": "System settings saved", "settings": updated}


@router.post("/backup")
def create_backup(
    request: Request,
    storage: Storage = Depends(get_storage),
    admin: TokenPayload = Depends(deps.require_system_admin),
):
    """
    Write a full snapshot (users, tasks, projects, settings) to the backup directory.
    """
    filename = write_backup(storage, request.app.state.settings.backup_path)
    logger.info("Admin %s created backup %s", admin.id, filename)
    return {"success": True, "message": "Backup created", "filename": filename}


@router.get("/backup/download/data")
def download_data_backup(
    storage: Storage = Depends(get_storage),
    admin: TokenPayload = Depends(deps.require_system_admin),
):
    content = export_data(storage)
    content["exportDate"] = utc_now()
    return _attachment(content, DATA_DOWNLOAD_FILENAME)


@router.get("/backup/download/settings")
def download_settings_backup(
    storage: Storage = Depends(get_storage),
    admin: TokenPayload = Depends(deps.require_system_admin),
):
    return _attachment(export_settings(storage), SETTINGS_DOWNLOAD_FILENAME)
