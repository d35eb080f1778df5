from functools import lru_cache
from typing import Optional

import httpx
from fastapi import Depends, Header, HTTPException
from google import genai
from google.genai import types

from config.settings import (
    GENAI_BASE_URL,
    GENAI_MODEL,
    GOOGLE_API_KEY,
    HISTORY_LIMIT,
    HISTORY_SESSION_LIMIT,
    HTTP_TIMEOUT_SECONDS,
)
from services.analyzer import MedicineAnalyzer
from services.history import ScanHistory, SessionRegistry


# One outbound client per request; handlers share no connection state
async def get_http_client():
    async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS) as client:
        yield client


@lru_cache(maxsize=1)
def get_genai_client() -> Optional[genai.Client]:
    # Created lazily so routes that never touch the model work without a key
    if not GOOGLE_API_KEY:
        return None
    http_options = types.HttpOptions(base_url=GENAI_BASE_URL) if GENAI_BASE_URL else None
    return genai.Client(api_key=GOOGLE_API_KEY, http_options=http_options)


def get_analyzer(
    client: Optional[genai.Client] = Depends(get_genai_client),
    http: httpx.AsyncClient = Depends(get_http_client),
) -> MedicineAnalyzer:
    return MedicineAnalyzer(client=client, http=http, model=GENAI_MODEL)


_session_registry = SessionRegistry(limit=HISTORY_LIMIT, max_sessions=HISTORY_SESSION_LIMIT)


def get_session_registry() -> SessionRegistry:
    return _session_registry


def get_scan_history(
    x_session_id: Optional[str] = Header(default=None),
    registry: SessionRegistry = Depends(get_session_registry),
) -> Optional[ScanHistory]:
    if not x_session_id or not x_session_id.strip():
        raise HTTPException(status_code=400, detail="X-Session-Id header is required")
    # reads never create a history; only recorded scans do
    return registry.get(x_session_id.strip())
