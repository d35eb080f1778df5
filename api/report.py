import logging

from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session
from starlette.responses import JSONResponse

# external imports
from db.database import get_session
from db.models import CounterfeitReport
from services.schemas import CounterfeitReportRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix='/api/report', tags=["report"])


@router.post("/")
async def submit_report(body: CounterfeitReportRequest, session: Session = Depends(get_session)):
    """
    Receives a report of a suspected counterfeit medicine and stores it for review.

    Args:
        body: Reporter name, email, subject and message, plus the medicine name and
            batch number when known
        session: Database session (injected)
    """
    report = CounterfeitReport(
        name=body.name,
        email=str(body.email),
        subject=body.subject,
        message=body.message,
        medicine_name=body.medicine_name or None,
        batch_number=body.batch_number or None,
    )

    try:
        session.add(report)
        session.commit()
        session.refresh(report)
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error saving counterfeit report: {e}")
        raise HTTPException(status_code=500, detail="Failed to submit report. Please try again.")

    logger.info(f"Counterfeit report {report.id} received (batch: {report.batch_number or 'n/a'})")
    return JSONResponse(
        status_code=200,
        content={"message": "Report submitted successfully! We'll review it within 24 hours.", "id": report.id},
    )
