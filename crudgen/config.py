import os
from dotenv import load_dotenv

load_dotenv()


def _resolve_base_url() -> str:
    """OPENAI_BASE_URL without a trailing slash, so paths can be appended."""
    return os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/")


class Config:
    PORT = int(os.getenv("PORT", 8000))
    DEBUG = os.getenv("DEBUG", "false").lower() == "true"
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")

    # Completion provider
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")
    OPENAI_BASE_URL = _resolve_base_url()
    OPENAI_TIMEOUT = float(os.getenv("OPENAI_TIMEOUT", "180"))

    # Client side
    GENERATOR_API_URL = os.getenv("GENERATOR_API_URL", "http://localhost:8000")
    STREAM_MAX_BUFFER_BYTES = int(os.getenv("STREAM_MAX_BUFFER_BYTES", str(2 * 1024 * 1024)))
    COPY_CONFIRMATION_SECONDS = float(os.getenv("COPY_CONFIRMATION_SECONDS", "2"))


config = Config()
