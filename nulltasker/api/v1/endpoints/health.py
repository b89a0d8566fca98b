from typing import Any

from fastapi import APIRouter, Depends

from nulltasker.db.session import Storage, get_storage

router = APIRouter()


@router.get("", response_model=dict[str, Any])
def health_check(storage: Storage = Depends(get_storage)) -> Any:
    """
    Health check endpoint.
    """
    return {"status": "ok", "storage": storage.backend}
