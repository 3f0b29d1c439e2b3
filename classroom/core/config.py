import os
from datetime import timedelta
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent

# DEV defaults. Override through environment variables in production.
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR}/classroom.db")

SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-secret-key-change-me-in-production")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE = timedelta(
    minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Pagination
PAGE_SIZE_OPTIONS = (10, 25, 50, 100)
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", str(PAGE_SIZE_OPTIONS[0])))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", str(PAGE_SIZE_OPTIONS[-1])))

CLASS_CODE_LENGTH = 6

GRADE_LEVELS = ("10", "11", "12")

UNKNOWN_LABEL = "Unknown"
