"""
Forwarding of medicine package images to the hosted multimodal model.

The model performs the OCR and the authenticity call; this module only
prepares the image, sends the fixed prompt, maps upstream failures to
user-facing errors and normalises the JSON it gets back.
"""

import base64
import binascii
import json
import logging
import math
import re
from typing import Any, Optional, Tuple

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import ValidationError

from config.settings import BROWSER_USER_AGENT, GENAI_MODEL
from config.system_prompts import PACKAGE_ANALYST, PACKAGE_ANALYST_REQUEST
from services.errors import (
    AnalysisFailedError,
    ImageFetchError,
    InvalidImageError,
    PaymentRequiredError,
    RateLimitError,
)
from services.registries import fetch_fda_label
from services.schemas import AnalysisResponse

logger = logging.getLogger(__name__)

_DATA_URI = re.compile(r"^data:(?P<mime>[\w.+\-]+/[\w.+\-]+)?(?:;[\w\-]+=[\w\-]+)*;base64,(?P<data>.*)$", re.S)

_VERDICT_ALIASES = {
    "genuine": "genuine",
    "real": "genuine",
    "authentic": "genuine",
    "fake": "fake",
    "counterfeit": "fake",
    "suspicious": "suspicious",
}


def decode_image(image: str) -> Tuple[bytes, str]:
    """Split a data URI (or bare base64) into raw bytes and a mime type."""
    match = _DATA_URI.match(image.strip())
    if match:
        mime_type = match.group("mime") or "image/jpeg"
        payload = match.group("data")
    else:
        mime_type = "image/jpeg"
        payload = image.strip()

    try:
        return base64.b64decode(payload, validate=True), mime_type
    except (binascii.Error, ValueError):
        raise InvalidImageError("The uploaded image could not be decoded.")


async def fetch_image(http: httpx.AsyncClient, url: str) -> Tuple[bytes, str]:
    """
    Download a remote image so it can be sent inline; some hosts reject
    hot-linking by the model provider.
    """
    logger.info(f"Fetching image from URL: {url}")
    try:
        response = await http.get(url, headers={"User-Agent": BROWSER_USER_AGENT}, follow_redirects=True)
    except httpx.HTTPError as e:
        logger.error(f"Error fetching image: {e}")
        raise ImageFetchError(
            "Could not load the image from this QR code.",
            hint="Please upload a photo of the medicine package directly instead of scanning a URL-based QR code.",
        )

    if not response.is_success:
        logger.error(f"Failed to fetch image, status: {response.status_code}")
        raise ImageFetchError(
            "Unable to access the QR code image. Please try uploading the medicine package photo directly.",
            hint="This QR link may not be a direct image. Try taking a photo of the medicine package instead.",
        )

    mime_type = response.headers.get("content-type", "").split(";")[0].strip()
    if not mime_type.startswith("image/"):
        mime_type = "image/jpeg"
    return response.content, mime_type


def _normalize_confidence(value: Any) -> int:
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return 50
    if math.isnan(confidence):
        return 50
    # Some models answer with a 0-1 probability; 1 reads as certainty, not 1%
    if 0 < confidence <= 1:
        confidence *= 100
    return int(round(min(max(confidence, 0), 100)))


def _text_or(value: Any, default: str) -> str:
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def parse_model_output(payload: dict, fda_info=None) -> AnalysisResponse:
    """Default every field the model left out."""
    prediction = _VERDICT_ALIASES.get(str(payload.get("prediction", "")).strip().lower(), "suspicious")
    confidence = payload.get("confidence")

    fda_manufacturer = fda_info.manufacturer if fda_info and fda_info.manufacturer != "N/A" else None
    return AnalysisResponse(
        prediction=prediction,
        confidence=_normalize_confidence(confidence) if confidence not in (None, "") else 50,
        medicine_name=_text_or(payload.get("medicine_name"), "Unknown Medicine"),
        batch_number=_text_or(payload.get("batch_number"), "N/A"),
        expiry_date=_text_or(payload.get("expiry_date"), "N/A"),
        manufacturer=_text_or(payload.get("manufacturer"), fda_manufacturer or "Unknown"),
        details=_text_or(payload.get("details"), "Analysis completed"),
        fda_info=fda_info,
    )


class MedicineAnalyzer:
    """Sends one package image to the model and returns a normalised result."""

    def __init__(self, client: Optional[genai.Client], http: httpx.AsyncClient, model: str = GENAI_MODEL):
        self.client = client
        self.http = http
        self.model = model

    async def _load_image(self, image: str) -> Tuple[bytes, str]:
        if image.startswith("http://") or image.startswith("https://"):
            return await fetch_image(self.http, image)
        return decode_image(image)

    async def _generate(self, image_bytes: bytes, mime_type: str) -> dict:
        if self.client is None:
            raise AnalysisFailedError("AI analysis is not configured. Set GOOGLE_API_KEY.")

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                config=types.GenerateContentConfig(
                    system_instruction=PACKAGE_ANALYST,
                    response_mime_type="application/json",
                ),
                contents=[
                    PACKAGE_ANALYST_REQUEST,
                    types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                ],
            )
        except genai_errors.APIError as e:
            logger.error(f"AI gateway error: {e.code} {e.message}")
            if e.code == 429:
                raise RateLimitError("Rate limit exceeded. Please try again later.")
            if e.code == 402:
                raise PaymentRequiredError("Payment required. Please add credits to your AI workspace.")
            raise AnalysisFailedError("AI analysis failed")
        except httpx.HTTPError as e:
            logger.error(f"AI gateway unreachable: {e}")
            raise AnalysisFailedError("AI analysis failed")

        ai_response_text = response.text
        if not ai_response_text:
            raise AnalysisFailedError("AI analysis failed")

        try:
            parsed = json.loads(ai_response_text)
        except json.JSONDecodeError:
            logger.error(f"Failed to parse AI response: {ai_response_text}")
            raise AnalysisFailedError("Invalid AI response format")

        if not isinstance(parsed, dict):
            raise AnalysisFailedError("Invalid AI response format")
        return parsed

    async def analyze(self, image: str) -> AnalysisResponse:
        logger.info("Analyzing medicine image with AI...")
        image_bytes, mime_type = await self._load_image(image)
        payload = await self._generate(image_bytes, mime_type)

        medicine_name = _text_or(payload.get("medicine_name"), "Unknown Medicine")
        fda_info = None
        if medicine_name != "Unknown Medicine":
            try:
                fda_info = await fetch_fda_label(self.http, medicine_name)
            except (ValidationError, AttributeError, TypeError, KeyError, IndexError) as e:
                logger.warning(f"Ignoring malformed FDA label for {medicine_name}: {e}")
                fda_info = None

        result = parse_model_output(payload, fda_info)
        logger.info(f"Returning analysis result for {result.medicine_name}: {result.prediction}")
        return result
