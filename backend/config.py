import os

from dotenv import load_dotenv

BACKEND_DIR = os.path.dirname(os.path.abspath(__file__))

# Load .env from the backend directory so local settings are picked up
load_dotenv(os.path.join(BACKEND_DIR, ".env"), override=False)


class Config:
    DATABASE_PATH = os.environ.get("TASKCHAT_DB_PATH", os.path.join(BACKEND_DIR, "taskchat.db"))
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get("TASKCHAT_CORS_ORIGINS", "http://localhost:5173").split(",")
        if origin.strip()
    ]
    LOG_LEVEL = os.environ.get("TASKCHAT_LOG_LEVEL", "INFO").upper()
