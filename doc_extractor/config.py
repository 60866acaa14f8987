"""
config.py

Central place to load environment variables and service constants.
"""

from dotenv import load_dotenv
import os

# Load variables from .env file into environment
load_dotenv()

# Text-understanding service (OpenAI)
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

# HTTP server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# OCR
DEFAULT_LANGUAGE = os.getenv("DEFAULT_LANGUAGE", "por")
TESSERACT_CMD = os.getenv("TESSERACT_CMD")

# Upload limits (not configurable)
MAX_FILE_SIZE = 50 * 1024 * 1024  # 50MB
ALLOWED_MIME_TYPES = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/bmp",
    "image/webp",
)

SUPPORTED_LANGUAGES = ["por", "eng", "spa", "fra", "deu", "ita", "por+eng"]
