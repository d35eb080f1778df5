import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_http_client
from services.qr_processor import process_qr_data
from services.schemas import QRDataRequest, QRProcessResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["qr"])


@router.post("/process-qr-data", response_model=QRProcessResult)
async def process_qr(body: QRDataRequest, http: httpx.AsyncClient = Depends(get_http_client)):
    """
    Classify a scanned QR payload (image URL, web page, JSON or plain text)
    and extract batch number, expiry date, manufacturer and medicine name.
    """
    if not body.qr_data or not body.qr_data.strip():
        raise HTTPException(status_code=400, detail="Invalid QR data")

    result = await process_qr_data(body.qr_data, http)
    logger.info(f"Processed QR data as {result.type}")
    return result
