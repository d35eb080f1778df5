# internal imports
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Form, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

# external imports
from db.models import VerifiedMedicine
from db.database import get_session
from services.verifier import find_verified_batch

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/register-batch", tags=["register batch"])

MANUFACTURER_SOURCE = "Manufacturer Registry"


@router.post("/")
async def register_batch(
    batch_number: str = Form(...),
    medicine_name: str = Form(...),
    manufacturer: str = Form(...),
    expiry_date: Optional[str] = Form(None),
    manufacture_date: Optional[str] = Form(None),
    session: Session = Depends(get_session)
):
    """
    Register a genuine batch in the verified-medicines store.

    Args:
        batch_number: Manufacturer-assigned lot identifier (e.g., "LOT12345")
        medicine_name: Name of the medicine in this batch
        manufacturer: Manufacturer name
        expiry_date: Printed expiry date (optional)
        manufacture_date: Printed manufacturing date (optional)
        session: Database session (injected)
    """

    # 1. Normalize and validate input
    batch_number_clean = batch_number.strip()
    medicine_name_clean = medicine_name.strip()
    manufacturer_clean = manufacturer.strip()

    if not batch_number_clean or not medicine_name_clean or not manufacturer_clean:
        raise HTTPException(
            status_code=400,
            detail="Batch number, medicine name and manufacturer must not be empty."
        )

    # 2. Check if batch already exists in database
    if find_verified_batch(session, batch_number_clean):
        raise HTTPException(
            status_code=400,
            detail=f"Batch '{batch_number_clean}' already exists in the database."
        )

    # 3. Create database record
    try:
        new_batch = VerifiedMedicine(
            batch_number=batch_number_clean,
            medicine_name=medicine_name_clean,
            manufacturer=manufacturer_clean,
            is_genuine=True,
            verification_source=MANUFACTURER_SOURCE,
            expiry_date=(expiry_date or "").strip() or None,
            manufacture_date=(manufacture_date or "").strip() or None,
        )

        session.add(new_batch)
        session.commit()
        session.refresh(new_batch)

    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error registering batch {batch_number_clean}: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Error saving to database: {str(e)}"
        )

    logger.info(f"Registered batch {new_batch.batch_number} for {new_batch.medicine_name}")
    return {
        "status": "success",
        "message": f"Batch '{new_batch.batch_number}' registered successfully",
        "data": {
            "id": new_batch.id,
            "batch_number": new_batch.batch_number,
            "medicine_name": new_batch.medicine_name,
            "manufacturer": new_batch.manufacturer,
            "verification_source": new_batch.verification_source,
            "expiry_date": new_batch.expiry_date,
            "manufacture_date": new_batch.manufacture_date,
            "created_at": new_batch.created_at.isoformat()
        }
    }
