# local imports
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# external imports
from api import analyze, history, pharmacy, qr, register, report, verify
from config.settings import CORS_ALLOW_ORIGINS, GOOGLE_API_KEY, LOG_LEVEL
from db.database import init_db

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    if not GOOGLE_API_KEY:
        logger.warning("GOOGLE_API_KEY environment variable not set; image analysis is disabled.")
    yield


app = FastAPI(
    title="MedGuard Verification API",
    description="""
    **MedGuard** checks medicine packaging for signs of counterfeiting and enriches the verdict
    with registry data.

    ## Features

    * **Image Analysis** - Sends package photos to a hosted Gemini model for OCR and a genuine/fake/suspicious verdict
    * **QR Processing** - Classifies scanned QR payloads (image links, web pages, JSON, plain text) and extracts batch details
    * **Batch Verification** - Checks batch numbers against the verified-medicines store, falling back to OpenFDA, DailyMed, RxNorm, PubChem and EMA
    * **Scan History** - Keeps the last scans of each session
    * **Pharmacy Lookup** - Lists nearby pharmacies with price and availability
    * **Counterfeit Reports** - Collects reports of suspected fake medicines

    ## How It Works

    1. Upload a photo of the medicine package or scan its QR code
    2. Receive a verdict, confidence, extracted label details and batch verification
    3. Play the voice message or report the medicine if it looks fake
    """,
    version="1.0.0",
    contact={
        "name": "MedGuard Team",
    },
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=False,  # Must be False when allow_origins=["*"]
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(analyze.router)
app.include_router(qr.router)
app.include_router(verify.router)
app.include_router(history.router)
app.include_router(pharmacy.router)
app.include_router(register.router)
app.include_router(report.router)
