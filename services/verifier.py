"""
Batch verification against the local verified-medicines store with a
fallback to public drug registries.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from db.models import VerifiedMedicine
from services.registries import DEFAULT_REGISTRIES, RegistryLookup
from services.schemas import BatchVerification, RegistryMatch

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Batch not found in verified medicine databases"


def _to_millis(moment: datetime) -> int:
    # SQLite hands back naive datetimes; they are stored as UTC
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)


def verification_from_row(row: VerifiedMedicine) -> BatchVerification:
    return BatchVerification(
        is_verified=row.is_genuine,
        timestamp=_to_millis(row.verification_timestamp),
        manufacturer=row.manufacturer,
        medicine_name=row.medicine_name,
        source=row.verification_source,
        metadata=row.source_metadata,
    )


def find_verified_batch(session: Session, batch_number: str) -> Optional[VerifiedMedicine]:
    return session.exec(
        select(VerifiedMedicine).where(VerifiedMedicine.batch_number == batch_number)
    ).first()


async def search_registries(
    http: httpx.AsyncClient,
    medicine_name: str,
    registries: Sequence[Tuple[str, RegistryLookup]] = DEFAULT_REGISTRIES,
) -> Optional[RegistryMatch]:
    """
    Query every registry concurrently, then return the match from the
    highest-priority registry that answered with data.
    """
    logger.info(f"Starting multi-source verification for: {medicine_name}")

    results: List = await asyncio.gather(
        *(lookup(http, medicine_name) for _, lookup in registries),
        return_exceptions=True,
    )

    for (name, _), result in zip(registries, results):
        if isinstance(result, BaseException):
            logger.warning(f"{name} lookup failed: {result!r}")
            continue
        if result is not None:
            return result
    return None


def _persist_match(
    session: Session, batch_number: str, medicine_name: str, match: RegistryMatch
) -> Optional[VerifiedMedicine]:
    row = VerifiedMedicine(
        batch_number=batch_number,
        medicine_name=medicine_name,
        manufacturer=match.manufacturer,
        verification_source=match.source,
        is_genuine=True,
        source_metadata=match.metadata,
    )
    try:
        session.add(row)
        session.commit()
        session.refresh(row)
        return row
    except SQLAlchemyError as e:
        # concurrent identical requests can race on the unique batch_number
        session.rollback()
        logger.error(f"Auto-insert of batch {batch_number} failed: {e}")
        return None


async def verify_batch(
    session: Session,
    http: httpx.AsyncClient,
    batch_number: str,
    medicine_name: Optional[str] = None,
    registries: Sequence[Tuple[str, RegistryLookup]] = DEFAULT_REGISTRIES,
) -> BatchVerification:
    """
    Resolve a batch number to a verification verdict.

    A stored row is returned as-is. Otherwise, when a medicine name is given,
    the registries are consulted and the winning match is stored so the next
    lookup is a cache hit. An unknown batch is reported as unverified, never
    as genuine.
    """
    try:
        existing = find_verified_batch(session, batch_number)
    except SQLAlchemyError as e:
        logger.error(f"Database fetch error for batch {batch_number}: {e}")
        existing = None

    if existing:
        logger.info(f"Batch found in database: {batch_number}")
        return verification_from_row(existing)

    if medicine_name:
        match = await search_registries(http, medicine_name, registries)
        if match:
            row = _persist_match(session, batch_number, medicine_name, match)
            if row is not None:
                logger.info(f"Verified batch {batch_number} and added to database from {match.source}")
                return verification_from_row(row)

            return BatchVerification(
                is_verified=True,
                timestamp=_to_millis(datetime.now(timezone.utc)),
                manufacturer=match.manufacturer,
                medicine_name=match.generic_name,
                source=match.source,
                metadata=match.metadata,
            )

    logger.info(f"Batch not found in any database: {batch_number}")
    return BatchVerification(is_verified=False, message=NOT_FOUND_MESSAGE)
