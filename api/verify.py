# internal imports
import httpx
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

# external imports
from api.dependencies import get_http_client
from db.database import get_session
from services.schemas import BatchVerification, VerifyBatchRequest
from services.verifier import verify_batch


router = APIRouter(prefix="/api/verify-batch", tags=["verify"])


@router.post("", response_model=BatchVerification, response_model_exclude_none=True)
async def verify_batch_number(
    body: VerifyBatchRequest,
    http: httpx.AsyncClient = Depends(get_http_client),
    session: Session = Depends(get_session),
):
    """
    Check a batch number against the verified-medicines store.

    Args:
        body: `{"batchNumber": ..., "medicineName": ...}`; the medicine name enables
            the registry fallback when the batch is not stored yet
        http: Outbound HTTP client (injected)
        session: Database session (injected)
    """
    batch_number = (body.batch_number or "").strip()
    if not batch_number:
        raise HTTPException(status_code=400, detail="Batch number is required")

    medicine_name = (body.medicine_name or "").strip() or None
    return await verify_batch(session, http, batch_number, medicine_name)
