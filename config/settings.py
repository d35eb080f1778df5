import os
from dotenv import load_dotenv

load_dotenv()


# --- AI model ---
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")
GENAI_MODEL = os.getenv("GENAI_MODEL", "gemini-2.5-flash")
# Optional gateway in front of the model (e.g. an OpenAI-style proxy that speaks the Gemini API)
GENAI_BASE_URL = os.getenv("GENAI_BASE_URL")

# --- Database ---
SQLITE_DATABASE_NAME = "medguard.db"
SQLITE_DATABASE_URL = f"sqlite:///{SQLITE_DATABASE_NAME}"
DATABASE_URL = os.getenv("DATABASE_URL") or SQLITE_DATABASE_URL

# --- Outbound HTTP ---
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))
BROWSER_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
BOT_USER_AGENT = "MedGuard-AI-Bot/1.0"

# --- Misc ---
HISTORY_LIMIT = int(os.getenv("HISTORY_LIMIT", "20"))
# Sessions kept in memory; the least recently used one is dropped past this
HISTORY_SESSION_LIMIT = int(os.getenv("HISTORY_SESSION_LIMIT", "1000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ALLOW_ORIGINS = [
    origin.strip() for origin in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if origin.strip()
]
