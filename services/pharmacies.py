from typing import List, Optional

from services.schemas import Pharmacy

# Static listing until a real pharmacy inventory API is wired in
MOCK_PHARMACIES = [
    Pharmacy(
        name="HealthPlus Pharmacy",
        distance="0.5 km",
        price="$12.99",
        available=True,
        rating=4.5,
        address="123 Main St",
        phone="+1-555-0123",
    ),
    Pharmacy(
        name="MediCare Express",
        distance="1.2 km",
        price="$11.49",
        available=True,
        rating=4.8,
        address="456 Oak Ave",
        phone="+1-555-0456",
    ),
    Pharmacy(
        name="QuickMed Pharmacy",
        distance="2.3 km",
        price="$13.99",
        available=False,
        rating=4.2,
        address="789 Pine Rd",
        phone="+1-555-0789",
    ),
]


def find_pharmacies(
    medicine_name: str, latitude: Optional[float] = None, longitude: Optional[float] = None
) -> List[Pharmacy]:
    return [pharmacy.model_copy() for pharmacy in MOCK_PHARMACIES]
