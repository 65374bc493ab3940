import os
import logging
from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()

OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY")
OPENAI_MODEL = os.environ.get("OPENAI_MODEL", "gpt-4o-mini")

DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./docquiz.db")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("CORS_ORIGINS", "http://localhost:5173,http://localhost:8080").split(",")
    if origin.strip()
]

SESSION_INACTIVITY_SECONDS = int(os.environ.get("SESSION_INACTIVITY_SECONDS", 60 * 60))  # 1 hour

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# Upload boundary limits
MAX_FILE_SIZE = 50 * 1024 * 1024        # 50MB per file
MAX_FILES_PER_UPLOAD = 10
MAX_TOTAL_UPLOAD_SIZE = 200 * 1024 * 1024  # 200MB per request

ALLOWED_EXTENSIONS = (
    ".pdf", ".doc", ".docx", ".ppt", ".pptx", ".txt",
    ".html", ".css", ".js", ".json", ".xml", ".csv",
    ".xls", ".xlsx", ".rtf", ".odt", ".epub",
)


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
