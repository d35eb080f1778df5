from fastapi import APIRouter, HTTPException

from services.pharmacies import find_pharmacies
from services.schemas import PharmacyRequest

router = APIRouter(prefix="/api/pharmacies", tags=["pharmacies"])


@router.post("")
async def list_pharmacies(body: PharmacyRequest):
    """Nearby pharmacies stocking the medicine, with price and availability."""
    if not body.medicine_name or not body.medicine_name.strip():
        raise HTTPException(status_code=400, detail="Medicine name is required")

    pharmacies = find_pharmacies(body.medicine_name.strip(), body.latitude, body.longitude)
    return {"pharmacies": [pharmacy.model_dump(by_alias=True) for pharmacy in pharmacies]}
