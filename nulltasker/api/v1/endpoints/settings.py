from typing import Any, Dict

from fastapi import APIRouter, Depends

from nulltasker.api import deps
from nulltasker.db.session import Storage, get_storage
from nulltasker.schemas.auth import TokenPayload

router = APIRouter()


@router.get("", response_model=Dict[str, Any])
def read_settings(
    storage: Storage = Depends(get_storage),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """
    Application settings (categories, notification and display defaults).
    """
    return storage.settings.get()
