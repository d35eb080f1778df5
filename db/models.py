from sqlmodel import SQLModel, Field, Column, JSON
from typing import Optional
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# -------------------
# VERIFIED MEDICINE MODEL
# -------------------
class VerifiedMedicine(SQLModel, table=True):
    __tablename__ = "verified_medicines"

    id: Optional[int] = Field(default=None, primary_key=True)
    batch_number: str = Field(index=True, unique=True)
    medicine_name: str
    manufacturer: str
    is_genuine: bool = True
    verification_source: str
    verification_timestamp: datetime = Field(default_factory=utcnow)
    # "metadata" is reserved on declarative models, so the attribute name differs from the column
    source_metadata: Optional[dict] = Field(default=None, sa_column=Column("metadata", JSON))
    expiry_date: Optional[str] = None
    manufacture_date: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


# -------------------
# REFERENCE TEXT MODELS
# -------------------
class MedicineInfo(SQLModel, table=True):
    __tablename__ = "medicine_info"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    purpose: str
    description: str
    created_at: datetime = Field(default_factory=utcnow)


class FakeMedicineEffect(SQLModel, table=True):
    __tablename__ = "fake_medicine_effects"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    side_effects: str
    reason: str
    created_at: datetime = Field(default_factory=utcnow)


# -------------------
# COUNTERFEIT REPORT MODEL
# -------------------
class CounterfeitReport(SQLModel, table=True):
    __tablename__ = "counterfeit_reports"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str
    subject: str
    message: str
    medicine_name: Optional[str] = None
    batch_number: Optional[str] = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=utcnow)
