from typing import Optional

from fastapi import APIRouter, Depends

from api.dependencies import get_scan_history
from services.history import ScanHistory

router = APIRouter(prefix="/api/history", tags=["history"])


@router.get("")
async def list_history(history: Optional[ScanHistory] = Depends(get_scan_history)):
    """Most recent scans for the calling session, newest first."""
    entries = history.entries() if history is not None else []
    return {"history": [entry.model_dump(mode="json", by_alias=True) for entry in entries]}


@router.delete("")
async def clear_history(history: Optional[ScanHistory] = Depends(get_scan_history)):
    return {"cleared": history.clear() if history is not None else 0}
