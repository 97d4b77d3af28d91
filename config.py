"""
Runtime settings for the City College API, read from the environment.

A local ``.env`` file is loaded first so development setups don't need
exported variables.
"""

import os

from dotenv import load_dotenv

load_dotenv()

ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
PORT = int(os.getenv("PORT", 5000))

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")
DATABASE_TIMEOUT_MS = int(os.getenv("DATABASE_TIMEOUT_MS", 5000))

DEFAULT_JWT_SECRET = "your-secret-key-change-in-production"
JWT_SECRET = os.getenv("JWT_SECRET") or DEFAULT_JWT_SECRET
JWT_ALGORITHM = "HS256"
TOKEN_EXPIRES_DAYS = 7

ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin@852##")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@citycollegeofmanagement.com")

DEFAULT_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
    "http://localhost:5174",
    "http://localhost:4173",
    "https://citycollegelko.vercel.app",
    "https://citycollegelko.com",
    "https://www.citycollegelko.com",
]
ALLOWED_ORIGINS = [
    o.strip() for o in os.getenv("ALLOWED_ORIGINS", "").split(",") if o.strip()
] or DEFAULT_ORIGINS

SPACES_REGION = str(os.getenv("SPACES_REGION") or "").strip()
SPACES_BUCKET = str(os.getenv("SPACES_BUCKET") or "").strip()
SPACES_ENDPOINT = str(os.getenv("SPACES_ENDPOINT") or "").strip()
SPACES_CDN_BASE_URL = str(os.getenv("SPACES_CDN_BASE_URL") or "").strip()
SPACES_KEY = str(os.getenv("SPACES_KEY") or "").strip()
SPACES_SECRET = str(os.getenv("SPACES_SECRET") or "").strip()
UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", "cityacademy/students")

REGISTRATION_PREFIX = "CCM"


def is_development() -> bool:
    return ENVIRONMENT == "development"
