import os
import logging
from dotenv import load_dotenv

load_dotenv()

IS_HF = os.environ.get("SPACE_ID") is not None
DEFAULT_BASE_DIR = "/tmp/data" if IS_HF else "data"

MODEL_NAME = os.getenv("MODEL_NAME", "llama-3.3-70b-versatile")
LLM_API_URL = os.getenv("LLM_API_URL", "https://api.groq.com/openai/v1/chat/completions")
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "60"))

# 12 hours
INSIGHTS_CACHE_TTL = float(os.getenv("INSIGHTS_CACHE_TTL", str(12 * 60 * 60)))

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def base_dir() -> str:
    return os.getenv("BASE_DIR", DEFAULT_BASE_DIR)


def database_url() -> str:
    """SQLAlchemy URL; defaults to a SQLite file under BASE_DIR."""
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    return f"sqlite:///{os.path.join(base_dir(), 'talent.db')}"


def groq_api_key():
    # read at call time, load_dotenv() has already populated os.environ
    return os.getenv("GROQ_API_KEY") or None


def setup_logging(level: str = None):
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
