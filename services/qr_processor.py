import json
import logging
import re
from typing import Any, Optional

import httpx

from config.settings import BOT_USER_AGENT
from services.extractor import extract_medicine_info, merge_extracted
from services.schemas import ExtractedFields, QRProcessResult

logger = logging.getLogger(__name__)

IMAGE_URL = re.compile(r"\.(jpg|jpeg|png|gif|webp)(\?[^#]*)?(#.*)?$", re.I)

_SCRIPT_BLOCK = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.I)
_STYLE_BLOCK = re.compile(r"<style\b[^<]*(?:(?!</style>)<[^<]*)*</style>", re.I)
_TAG = re.compile(r"<[^>]+>")
_WHITESPACE = re.compile(r"\s+")

JSON_ALIASES = {
    "batch_number": ("batch", "batchNumber", "lot"),
    "medicine_name": ("name", "medicine", "product"),
    "manufacturer": ("manufacturer", "mfg"),
    "expiry_date": ("expiry", "exp", "expiryDate"),
}


def html_to_text(html: str) -> str:
    text = _SCRIPT_BLOCK.sub("", html)
    text = _STYLE_BLOCK.sub("", text)
    text = _TAG.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()


async def fetch_url_text(http: httpx.AsyncClient, url: str) -> Optional[str]:
    try:
        response = await http.get(url, headers={"User-Agent": BOT_USER_AGENT}, follow_redirects=True)
    except httpx.HTTPError as e:
        logger.warning(f"URL fetch error for {url}: {e}")
        return None

    if not response.is_success:
        logger.info(f"URL fetch for {url} returned status {response.status_code}")
        return None
    return html_to_text(response.text)


def _first_present(data: dict, keys) -> Optional[str]:
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return str(value)
    return None


def extract_from_json(payload: Any) -> ExtractedFields:
    """Map the known key aliases of a JSON QR payload onto extracted fields."""
    record = payload
    if isinstance(payload, list):
        record = next((item for item in payload if isinstance(item, dict)), {})
    if not isinstance(record, dict):
        record = {}

    fields = {name: _first_present(record, aliases) for name, aliases in JSON_ALIASES.items()}
    return ExtractedFields(**fields, raw_json=payload)


async def process_qr_data(qr_data: str, http: httpx.AsyncClient) -> QRProcessResult:
    """
    Classify a scanned QR payload and pull whatever medicine fields it holds.

    Fetch and parse failures degrade to the partial result instead of raising.
    """
    logger.info(f"Processing QR data: {qr_data}")
    stripped = qr_data.strip()

    if stripped.startswith("http://") or stripped.startswith("https://"):
        if IMAGE_URL.search(stripped):
            return QRProcessResult(
                type="image_url",
                data=qr_data,
                image_url=stripped,
                extracted=ExtractedFields(should_analyze_image=True),
            )

        from_url = extract_medicine_info(stripped)
        content = await fetch_url_text(http, stripped)
        if content is None:
            return QRProcessResult(type="url", data=qr_data, extracted=from_url)

        extracted = merge_extracted(extract_medicine_info(content), from_url)
        extracted.found_in_website = True
        extracted.website_url = stripped
        return QRProcessResult(type="url", data=qr_data, extracted=extracted)

    if stripped.startswith("{") or stripped.startswith("["):
        try:
            payload = json.loads(stripped)
        except json.JSONDecodeError as e:
            logger.warning(f"JSON parse error, treating QR data as text: {e}")
        else:
            return QRProcessResult(type="json", data=qr_data, extracted=extract_from_json(payload))

    return QRProcessResult(type="text", data=qr_data, extracted=extract_medicine_info(qr_data))
