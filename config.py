import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent

DATA_DIR = os.environ.get("FINANCE_DATA_DIR", str(PROJECT_ROOT / "data"))
LOG_LEVEL = os.environ.get("FINANCE_LOG_LEVEL", "INFO").upper()
BACKUP_ON_START = os.environ.get("FINANCE_BACKUP_ON_START", "").lower() in {"1", "true", "yes"}

MF_API_BASE = os.environ.get("FINANCE_MF_API_BASE", "https://api.mfapi.in").rstrip("/")
HTTP_TIMEOUT = float(os.environ.get("FINANCE_HTTP_TIMEOUT", "10"))

EXPORT_VERSION = "1.0"
TREND_MONTHS = 6
