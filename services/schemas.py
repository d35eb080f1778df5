"""
Request and result types shared by the services and the API routes.

External payloads (AI responses, registry JSON, QR contents) have a loose
shape; everything is normalised into these models with explicit defaults
before it leaves a service. JSON uses camelCase keys, except for the
analysis response which keeps the model's snake_case contract.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


Verdict = Literal["genuine", "fake", "suspicious"]
QRPayloadType = Literal["url", "image_url", "json", "text"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -------------------
# EXTRACTION / QR
# -------------------
class ExtractedFields(CamelModel):
    batch_number: Optional[str] = None
    medicine_name: Optional[str] = None
    manufacturer: Optional[str] = None
    expiry_date: Optional[str] = None
    should_analyze_image: Optional[bool] = None
    found_in_website: Optional[bool] = None
    website_url: Optional[str] = None
    raw_json: Optional[Any] = None


class QRProcessResult(CamelModel):
    type: QRPayloadType
    data: str
    extracted: ExtractedFields = Field(default_factory=ExtractedFields)
    image_url: Optional[str] = None


# -------------------
# AI ANALYSIS
# -------------------
class FdaInfo(CamelModel):
    generic_name: str = "N/A"
    brand_name: str = "N/A"
    manufacturer: str = "N/A"
    purpose: str = "N/A"
    dosage_form: str = "N/A"
    composition: str = "N/A"
    side_effects: str = "See package insert for complete information"
    contraindications: str = "Consult healthcare provider"


class AnalysisResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prediction: Verdict = "suspicious"
    confidence: int = 50
    medicine_name: str = "Unknown Medicine"
    batch_number: str = "N/A"
    expiry_date: str = "N/A"
    manufacturer: str = "Unknown"
    details: str = "Analysis completed"
    fda_info: Optional[FdaInfo] = Field(default=None, alias="fdaInfo")


# -------------------
# BATCH VERIFICATION
# -------------------
class RegistryMatch(BaseModel):
    manufacturer: str
    generic_name: str
    brand_name: str
    source: str
    metadata: Optional[dict] = None


class BatchVerification(CamelModel):
    is_verified: bool
    timestamp: Optional[int] = None
    manufacturer: Optional[str] = None
    medicine_name: Optional[str] = None
    source: Optional[str] = None
    metadata: Optional[dict] = None
    message: Optional[str] = None


# -------------------
# SCAN RESULT / HISTORY
# -------------------
class ScanResult(CamelModel):
    status: Verdict
    confidence: int
    medicine_name: str
    batch_number: str
    expiry_date: str
    manufacturer: str
    details: str
    fda_info: Optional[FdaInfo] = None
    blockchain: Optional[BatchVerification] = None
    is_expired: Optional[bool] = None
    purpose: Optional[str] = None
    side_effects: Optional[str] = None
    voice_message: Optional[str] = None


class ScanHistoryEntry(ScanResult):
    id: str
    timestamp: str


# -------------------
# PHARMACIES
# -------------------
class Pharmacy(CamelModel):
    name: str
    distance: str
    price: str
    available: bool
    rating: float
    address: str
    phone: str


# -------------------
# REQUEST BODIES
# -------------------
class AnalyzeRequest(CamelModel):
    image: Optional[str] = None


class QRDataRequest(CamelModel):
    qr_data: Optional[str] = None


class VerifyBatchRequest(CamelModel):
    batch_number: Optional[str] = None
    medicine_name: Optional[str] = None


class PharmacyRequest(CamelModel):
    medicine_name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class CounterfeitReportRequest(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    subject: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1, max_length=1000)
    medicine_name: Optional[str] = Field(default=None, max_length=200)
    batch_number: Optional[str] = Field(default=None, max_length=100)
