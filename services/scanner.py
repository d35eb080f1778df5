"""
Turns a raw analysis into the ScanResult the client renders: batch
verification, reference texts, expiry flag and the voice message.
"""

import logging
from typing import Optional, Tuple

import httpx
from sqlalchemy import String, func, literal, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from db.models import FakeMedicineEffect, MedicineInfo
from services.feedback import is_expired, voice_message
from services.schemas import AnalysisResponse, BatchVerification, ScanResult
from services.verifier import verify_batch

logger = logging.getLogger(__name__)


_LIKE_ESCAPE = "\\"


def _escape_like(value: str) -> str:
    for char in (_LIKE_ESCAPE, "%", "_"):
        value = value.replace(char, _LIKE_ESCAPE + char)
    return value


def _escape_like_column(column):
    escaped = col(column)
    for char in (_LIKE_ESCAPE, "%", "_"):
        escaped = func.replace(escaped, char, _LIKE_ESCAPE + char, type_=String)
    return escaped


def _name_matches(column, medicine_name: str):
    # either name may carry extra words ("Paracetamol" vs "Paracetamol 500mg");
    # % and _ in either name are matched literally
    return or_(
        col(column).ilike(f"%{_escape_like(medicine_name)}%", escape=_LIKE_ESCAPE),
        literal(medicine_name).ilike("%" + _escape_like_column(column) + "%", escape=_LIKE_ESCAPE),
    )


def lookup_reference_texts(session: Session, medicine_name: str) -> Tuple[Optional[str], Optional[str]]:
    """(purpose, side effects) from the reference tables, matched loosely on name."""
    if not medicine_name or medicine_name == "Unknown Medicine":
        return None, None

    try:
        info = session.exec(select(MedicineInfo).where(_name_matches(MedicineInfo.name, medicine_name))).first()
        effect = session.exec(
            select(FakeMedicineEffect).where(_name_matches(FakeMedicineEffect.name, medicine_name))
        ).first()
    except SQLAlchemyError as e:
        logger.error(f"Reference lookup failed for {medicine_name}: {e}")
        return None, None

    return (info.purpose if info else None), (effect.side_effects if effect else None)


async def compose_scan(
    session: Session,
    http: httpx.AsyncClient,
    analysis: AnalysisResponse,
    verify: bool = True,
) -> ScanResult:
    blockchain: Optional[BatchVerification] = None
    if verify and analysis.batch_number != "N/A":
        medicine_name = analysis.medicine_name if analysis.medicine_name != "Unknown Medicine" else None
        blockchain = await verify_batch(session, http, analysis.batch_number, medicine_name)

    purpose, side_effects = lookup_reference_texts(session, analysis.medicine_name)
    if analysis.fda_info:
        purpose = purpose or analysis.fda_info.purpose
        side_effects = side_effects or analysis.fda_info.side_effects

    result = ScanResult(
        status=analysis.prediction,
        confidence=analysis.confidence,
        medicine_name=analysis.medicine_name,
        batch_number=analysis.batch_number,
        expiry_date=analysis.expiry_date,
        manufacturer=analysis.manufacturer,
        details=analysis.details,
        fda_info=analysis.fda_info,
        blockchain=blockchain,
        is_expired=is_expired(analysis.expiry_date),
        purpose=purpose,
        side_effects=side_effects,
    )
    result.voice_message = voice_message(result)
    return result
