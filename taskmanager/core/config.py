import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Base directory of the project (parent of 'taskmanager')
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# Database Directory
DB_DIR = BASE_DIR / "db"

APP_NAME = "Task Manager API"
APP_VERSION = "1.0.0"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Docs / transport hardening
ENABLE_DOCS = os.getenv("ENABLE_DOCS", "true").lower() == "true"
ENABLE_HSTS = os.getenv("ENABLE_HSTS", "false").lower() == "true"
TRUSTED_HOSTS = [h.strip() for h in os.getenv("TRUSTED_HOSTS", "*").split(",") if h.strip()]

# Seed admin (only created when ADMIN_PASSWORD is set and no admin exists)
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")


def get_cors_allow_origins() -> list[str]:
    """Comma-separated CORS_ALLOW_ORIGINS, defaulting to local frontends."""
    raw = os.getenv("CORS_ALLOW_ORIGINS", "http://localhost:3000,http://localhost:5173")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


# Ensure DB directory exists
os.makedirs(DB_DIR, exist_ok=True)
