"""Runtime settings read from the environment."""

import os

from models import SheetsGateway, TripNoteGenerator, YamlGateway

SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-prod")

# Placeholder value left in an unedited configuration
PLACEHOLDER_SCRIPT_URL = "MASUKKAN_URL_SCRIPT_ANDA_DI_SINI"

# Spreadsheet web-app URL; when unset the local YAML store is used
SCRIPT_URL = os.environ.get("ARMADA_SCRIPT_URL", "")
STORE_FILE = os.environ.get("ARMADA_STORE", "armada.yaml")

# Origin used for report links encoded in QR codes
BASE_URL = os.environ.get("ARMADA_BASE_URL", "http://localhost:5001")

TIMEZONE = os.environ.get("ARMADA_TIMEZONE", "Asia/Jakarta")
HTTP_TIMEOUT = float(os.environ.get("ARMADA_HTTP_TIMEOUT", "30"))

GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY")
GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")

LOG_LEVEL = os.environ.get("ARMADA_LOG_LEVEL", "INFO")


def is_configured(url: str) -> bool:
    """True when a real script URL (not empty, not the placeholder) is set."""
    return bool(url) and url.strip() != PLACEHOLDER_SCRIPT_URL


def make_gateway(url: str = "", store: str = ""):
    """Gateway for a script URL when configured, else for the YAML store file."""
    if store and not url:
        return YamlGateway(store)
    url = url or SCRIPT_URL
    if is_configured(url):
        return SheetsGateway(url, timeout=HTTP_TIMEOUT)
    return YamlGateway(store or STORE_FILE)


def make_note_generator():
    return TripNoteGenerator(
        GEMINI_API_KEY, model=GEMINI_MODEL, timezone=TIMEZONE, timeout=HTTP_TIMEOUT
    )
