"""
Read-only lookups against public drug registries.

Every lookup takes a shared ``httpx.AsyncClient`` and a medicine name and
returns a ``RegistryMatch`` or None. Network errors, non-2xx responses and
malformed JSON are logged and reported as "no data".
"""

import logging
import re
from typing import Awaitable, Callable, List, Optional, Tuple
from urllib.parse import quote

import httpx

from services.schemas import FdaInfo, RegistryMatch

logger = logging.getLogger(__name__)

OPENFDA_LABEL_URL = "https://api.fda.gov/drug/label.json"
RXNORM_DRUGS_URL = "https://rxnav.nlm.nih.gov/REST/drugs.json"
DAILYMED_SPLS_URL = "https://dailymed.nlm.nih.gov/dailymed/services/v2/spls.json"
PUBCHEM_DESCRIPTION_URL = "https://pubchem.ncbi.nlm.nih.gov/rest/pug/compound/name/{name}/description/JSON"
EMA_SEARCH_URL = "https://api.ema.europa.eu/medicines/search"

RegistryLookup = Callable[[httpx.AsyncClient, str], Awaitable[Optional[RegistryMatch]]]


async def _get_json(http: httpx.AsyncClient, url: str, params: Optional[dict] = None) -> Optional[dict]:
    try:
        response = await http.get(url, params=params)
    except httpx.HTTPError as e:
        logger.warning(f"Request to {url} failed: {e}")
        return None

    if not response.is_success:
        logger.info(f"{url} returned status {response.status_code}")
        return None

    try:
        data = response.json()
    except ValueError as e:
        logger.warning(f"Failed to parse response from {url}: {e}")
        return None

    return data if isinstance(data, dict) else None


def _first(values, default=None):
    """openFDA wraps most label fields in single-element lists."""
    if isinstance(values, list) and values:
        return values[0]
    return default


# --- OpenFDA ---

async def _search_openfda_label(http: httpx.AsyncClient, medicine_name: str) -> Optional[dict]:
    generic_term = medicine_name.split(" ")[0]
    simple_term = re.sub(r"[®™©]", "", medicine_name).strip().split(" ")[0]

    searches = [
        f'openfda.brand_name:"{medicine_name}"',
        f'openfda.generic_name:"{generic_term}"',
        simple_term,
    ]
    for search in searches:
        if not search:
            continue
        data = await _get_json(http, OPENFDA_LABEL_URL, params={"search": search, "limit": 1})
        if data and data.get("results"):
            return data["results"][0]
    return None


async def lookup_openfda(http: httpx.AsyncClient, medicine_name: str) -> Optional[RegistryMatch]:
    label = await _search_openfda_label(http, medicine_name)
    if not label:
        logger.info(f"OpenFDA: no results for {medicine_name}")
        return None

    openfda = label.get("openfda") or {}
    logger.info(f"OpenFDA: medicine found - {_first(openfda.get('brand_name'), medicine_name)}")
    return RegistryMatch(
        manufacturer=_first(openfda.get("manufacturer_name"), "FDA Verified Manufacturer"),
        generic_name=_first(openfda.get("generic_name"), medicine_name),
        brand_name=_first(openfda.get("brand_name"), medicine_name),
        source="OpenFDA (US FDA)",
        metadata=openfda or None,
    )


async def fetch_fda_label(http: httpx.AsyncClient, medicine_name: str) -> Optional[FdaInfo]:
    """Label details used to enrich an analysis result (brand name search only)."""
    data = await _get_json(
        http,
        OPENFDA_LABEL_URL,
        params={"search": f'openfda.brand_name:"{medicine_name.lower()}"', "limit": 1},
    )
    if not data or not data.get("results"):
        return None

    label = data["results"][0]
    openfda = label.get("openfda") or {}
    return FdaInfo(
        generic_name=_first(openfda.get("generic_name"), "N/A"),
        brand_name=_first(openfda.get("brand_name"), medicine_name),
        manufacturer=_first(openfda.get("manufacturer_name"), "N/A"),
        purpose=_first(label.get("purpose")) or _first(label.get("indications_and_usage"), "N/A"),
        dosage_form=_first(openfda.get("dosage_form"), "N/A"),
        composition=_first(label.get("active_ingredient"), "N/A"),
        side_effects=_first(label.get("adverse_reactions"), "See package insert for complete information"),
        contraindications=_first(label.get("contraindications"), "Consult healthcare provider"),
    )


# --- NLM RxNorm ---

async def lookup_rxnorm(http: httpx.AsyncClient, medicine_name: str) -> Optional[RegistryMatch]:
    data = await _get_json(http, RXNORM_DRUGS_URL, params={"name": medicine_name})
    if not data:
        return None

    groups = (data.get("drugGroup") or {}).get("conceptGroup") or []
    for group in groups:
        concepts = group.get("conceptProperties") or []
        if concepts:
            drug = concepts[0]
            logger.info(f"RxNorm: medicine found - {drug.get('name')}")
            return RegistryMatch(
                manufacturer="RxNorm Verified",
                generic_name=drug.get("name") or medicine_name,
                brand_name=medicine_name,
                source="RxNorm (NLM)",
                metadata={"rxcui": drug.get("rxcui"), "tty": drug.get("tty")},
            )
    return None


# --- NLM DailyMed ---

async def lookup_dailymed(http: httpx.AsyncClient, medicine_name: str) -> Optional[RegistryMatch]:
    data = await _get_json(http, DAILYMED_SPLS_URL, params={"drug_name": medicine_name})
    if not data or not data.get("data"):
        return None

    drug = data["data"][0]
    logger.info(f"DailyMed: medicine found - {drug.get('title')}")
    return RegistryMatch(
        manufacturer=drug.get("author") or "DailyMed Verified",
        generic_name=drug.get("title") or medicine_name,
        brand_name=medicine_name,
        source="DailyMed (NLM)",
        metadata={"setid": drug.get("setid"), "published_date": drug.get("published_date")},
    )


# --- NIH PubChem ---

async def lookup_pubchem(http: httpx.AsyncClient, medicine_name: str) -> Optional[RegistryMatch]:
    url = PUBCHEM_DESCRIPTION_URL.format(name=quote(medicine_name, safe=""))
    data = await _get_json(http, url)
    if not data:
        return None

    information = (data.get("InformationList") or {}).get("Information") or []
    if not information:
        return None

    info = information[0]
    logger.info(f"NIH PubChem: medicine found - {info.get('Title')}")
    description = info.get("Description")
    return RegistryMatch(
        manufacturer="NIH Verified",
        generic_name=info.get("Title") or medicine_name,
        brand_name=medicine_name,
        source="NIH PubChem",
        metadata={"cid": info.get("CID"), "description": description[:200] if description else None},
    )


# --- European Medicines Agency ---

async def lookup_ema(http: httpx.AsyncClient, medicine_name: str) -> Optional[RegistryMatch]:
    data = await _get_json(http, EMA_SEARCH_URL, params={"query": medicine_name})
    if not data or not data.get("results"):
        return None

    medicine = data["results"][0]
    logger.info(f"EMA: medicine found - {medicine.get('name')}")
    return RegistryMatch(
        manufacturer=medicine.get("marketingAuthorisationHolder") or "EMA Verified",
        generic_name=medicine.get("activeSubstance") or medicine_name,
        brand_name=medicine.get("name") or medicine_name,
        source="EMA (European Medicines Agency)",
        metadata={
            "authorization_number": medicine.get("authorizationNumber"),
            "status": medicine.get("status"),
        },
    )


# Priority order used to pick a single winner among the registries that answered
DEFAULT_REGISTRIES: List[Tuple[str, RegistryLookup]] = [
    ("OpenFDA", lookup_openfda),
    ("DailyMed", lookup_dailymed),
    ("RxNorm", lookup_rxnorm),
    ("PubChem", lookup_pubchem),
    ("EMA", lookup_ema),
]
