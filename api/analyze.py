# internal imports
import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Header, HTTPException
from sqlmodel import Session

# external imports
from api.dependencies import get_analyzer, get_http_client, get_session_registry
from db.database import get_session
from services.analyzer import MedicineAnalyzer
from services.errors import AnalysisError
from services.history import SessionRegistry
from services.scanner import compose_scan
from services.schemas import AnalysisResponse, AnalyzeRequest, ScanResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["analyze"])


async def _run_analysis(analyzer: MedicineAnalyzer, body: AnalyzeRequest) -> AnalysisResponse:
    if not body.image:
        raise HTTPException(status_code=400, detail="No image provided")

    try:
        return await analyzer.analyze(body.image)
    except AnalysisError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    except HTTPException as e:
        raise e
    except Exception as e:
        logger.exception("Error in analyze-medicine")
        raise HTTPException(
            status_code=500,
            detail={"error": str(e) or "Unknown error occurred", "details": "Failed to analyze medicine image"},
        )


@router.post("/analyze-medicine", response_model=AnalysisResponse)
async def analyze_medicine(body: AnalyzeRequest, analyzer: MedicineAnalyzer = Depends(get_analyzer)):
    """
    Forward a package photo to the AI model.

    Args:
        body: `{"image": ...}` where image is a data URI, bare base64 or an http(s) image URL
        analyzer: Model forwarder (injected)
    """
    return await _run_analysis(analyzer, body)


@router.post("/scan", response_model=ScanResult)
async def scan_medicine(
    body: AnalyzeRequest,
    analyzer: MedicineAnalyzer = Depends(get_analyzer),
    http: httpx.AsyncClient = Depends(get_http_client),
    session: Session = Depends(get_session),
    registry: SessionRegistry = Depends(get_session_registry),
    x_session_id: Optional[str] = Header(default=None),
):
    """
    Full scan: AI analysis, batch verification, reference texts, expiry
    check and voice message. When an X-Session-Id header is sent the result
    is added to that session's history.
    """
    analysis = await _run_analysis(analyzer, body)
    result = await compose_scan(session, http, analysis)

    if x_session_id and x_session_id.strip():
        registry.history_for(x_session_id.strip()).record(result)

    return result
