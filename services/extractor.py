"""
Regex extraction of medicine fields from free text (decoded QR payloads,
scraped web pages).

Each field has an ordered list of patterns; the first one that matches wins
and a field nothing matches is left as None.
"""

import re
from typing import List, Optional, Pattern

from services.schemas import ExtractedFields


# Lookahead marking the end of a free-text field value
_FIELD_END = (
    r"(?=\s*(?:[|;\n]|,?\s*\b(?:batch|lot|exp|expiry|expires|mfg|mfd|manufactured|manufacturer|marketed|b\.\s*no)\b|$))"
)

_DATE = (
    r"(\d{1,2}[-/.]\d{1,2}[-/.]\d{2,4}"
    r"|\d{1,2}[-/.]\d{4}"
    r"|\d{1,2}[-/.]\d{2}(?!\d)"
    r"|(?:jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\.?[\s\-/,]*\d{2,4})"
)

BATCH_PATTERNS: List[Pattern] = [
    re.compile(r"\bbatch\s*(?:number|no|#)\b\.?[:\s#.]*([A-Z0-9\-]+)", re.I),
    re.compile(r"\blot\s*(?:number|no|#)\b\.?[:\s#.]*([A-Z0-9\-]+)", re.I),
    re.compile(r"\bbatch\b[:\s#.=]*([A-Z0-9\-]+)", re.I),
    re.compile(r"\blot\b[:\s#.=]*([A-Z0-9\-]+)", re.I),
    re.compile(r"\bb\.\s*no\.?[:\s]*([A-Z0-9\-]+)", re.I),
]

EXPIRY_PATTERNS: List[Pattern] = [
    re.compile(r"\b(?:exp(?:iry|\.)?(?:\s*date)?|expires?)[:\s.]*" + _DATE, re.I),
    re.compile(r"\bvalid\s*(?:until|till|upto)[:\s.]*" + _DATE, re.I),
    re.compile(r"\buse\s*(?:before|by)[:\s.]*" + _DATE, re.I),
]

MANUFACTURER_PATTERNS: List[Pattern] = [
    re.compile(
        r"\b(?:manufactured\s*by|mfd\.?\s*by|mfg\.?\s*by|marketed\s*by|manufacturer)\b\.?[:\s.]*"
        r"([A-Z][A-Z0-9&.,'()\- ]*?)" + _FIELD_END,
        re.I,
    ),
    # bare MFG/MFD labels are also used for the manufacturing date
    re.compile(
        r"\b(?:mfg|mfd|mfr)\b\.?(?!\s*(?:date|dt)\b)[:\s.]*"
        r"([A-Z][A-Z0-9&.,'()\- ]*?)" + _FIELD_END,
        re.I,
    ),
]

NAME_PATTERNS: List[Pattern] = [
    re.compile(
        r"\b(?:(?:medicine|product|drug|brand)\s*)?name\s*[:\-]\s*([A-Z][A-Z0-9\-+ ]*?)" + _FIELD_END,
        re.I,
    ),
    re.compile(r"\b(?:medicine|product|drug)\s*[:\-]\s*([A-Z][A-Z0-9\-+ ]*?)" + _FIELD_END, re.I),
    # leading run of capitalised words
    re.compile(
        r"^([A-Z][a-z]+(?:\s+(?!(?:Batch|Lot|Exp|Expiry|Mfg|Mfd|Manufactured|Manufacturer|Marketed)\b)[A-Z][a-z]+)*)"
    ),
]


def _first_match(patterns: List[Pattern], text: str) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            value = match.group(1).strip()
            if value:
                return value
    return None


def extract_medicine_info(text: str) -> ExtractedFields:
    """
    Best-effort extraction of batch number, expiry date, manufacturer and
    medicine name from arbitrary text.
    """
    if not text:
        return ExtractedFields()

    text = text.strip()
    batch_number = _first_match(BATCH_PATTERNS, text)

    return ExtractedFields(
        batch_number=batch_number.upper() if batch_number else None,
        expiry_date=_first_match(EXPIRY_PATTERNS, text),
        manufacturer=_first_match(MANUFACTURER_PATTERNS, text),
        medicine_name=_first_match(NAME_PATTERNS, text),
    )


def merge_extracted(preferred: ExtractedFields, fallback: ExtractedFields) -> ExtractedFields:
    """Field-wise merge; values from `preferred` win when they are present."""
    return ExtractedFields(
        batch_number=preferred.batch_number or fallback.batch_number,
        medicine_name=preferred.medicine_name or fallback.medicine_name,
        manufacturer=preferred.manufacturer or fallback.manufacturer,
        expiry_date=preferred.expiry_date or fallback.expiry_date,
    )
