"""
Application settings
Environment loading, OpenAI client construction and data directory paths
"""
import os
from pathlib import Path

from dotenv import load_dotenv
from openai import OpenAI

from briefdesk.utils.log import get_logger

load_dotenv()

logger = get_logger(__name__)

# =========================
# Settings from the environment
# =========================

# OpenAI
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_TEXT_MODEL = os.getenv("OPENAI_TEXT_MODEL", "gpt-4o-mini")
OPENAI_VISION_MODEL = os.getenv("OPENAI_VISION_MODEL", "gpt-4o-mini")
OPENAI_TIMEOUT = float(os.getenv("OPENAI_TIMEOUT", "60"))

# Brief generation
BRIEF_TEMPERATURE = float(os.getenv("BRIEF_TEMPERATURE", "0.9"))
BRIEF_LANGUAGE = os.getenv("BRIEF_LANGUAGE", "English")

# Provided asset images (GET endpoint of the image generator)
ASSET_IMAGE_BASE_URL = os.getenv("ASSET_IMAGE_BASE_URL", "https://image.pollinations.ai/prompt")
ASSET_IMAGE_MODEL = os.getenv("ASSET_IMAGE_MODEL", "flux")

LOG_DEBUG = os.getenv("LOG_DEBUG", "false").lower() == "true"

# =========================
# Directory paths
# =========================
BASE_DIR = Path(__file__).parent
DATA_DIR = Path(os.getenv("BRIEFDESK_DATA_DIR", "") or BASE_DIR / "data")


def upload_dir(data_dir: Path) -> Path:
    """Directory where submitted design images are kept."""
    return data_dir / "uploads"


def ensure_data_dirs(data_dir: Path) -> None:
    """
    Create the data directory tree

    Args:
        data_dir: root of the persisted state
    """
    for d in (data_dir, upload_dir(data_dir)):
        d.mkdir(parents=True, exist_ok=True)


# =========================
# Client construction
# =========================
def build_openai_client(api_key: str = OPENAI_API_KEY) -> OpenAI:
    """
    Build the OpenAI client used by the AI gateway

    A missing key does not stop startup: the error is logged and every
    AI call fails later, which the gateway reports as a generation error
    or a fallback evaluation.
    """
    if not api_key:
        logger.error("openai.api_key_missing", hint="set OPENAI_API_KEY")
        api_key = "missing-api-key"
    return OpenAI(api_key=api_key, timeout=OPENAI_TIMEOUT)
