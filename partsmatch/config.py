import os
from dotenv import load_dotenv
from utils.logger import get_logger
from utils.custom_exception import CustomException

# Load environment variables
load_dotenv()

logger = get_logger(__name__)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}, using {default}")
        return default


class Config:
    """
    Singleton-style configuration loader and validator.
    Environment variables are read once at import time.
    """

    # === Constants ===
    PLACEHOLDER_MARKERS = ("coming soon", "new list", "universal")
    GROUP_DELIMITER = "="

    # === Environment Variables ===
    CATALOG_PATH = os.getenv("CATALOG_PATH", "data/data.json").strip('"')
    ADMIN_KEY = os.getenv("ADMIN_KEY")
    LOG_DIR = os.getenv("LOG_DIR", "logs")
    LOG_RETENTION_DAYS = _int_env("LOG_RETENTION_DAYS", 30)
    MAX_RESULTS = _int_env("MAX_RESULTS", 20)
    EXACT_THRESHOLD = _int_env("EXACT_THRESHOLD", 95)
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = _int_env("PORT", 3000)

    _validated = False  # internal flag to prevent double validation

    @classmethod
    def validate(cls):
        """Ensure all required variables are available (only once)."""
        if cls._validated:
            return True

        problems = []
        if not cls.ADMIN_KEY:
            problems.append("Missing environment variable: ADMIN_KEY")
        if cls.MAX_RESULTS <= 0:
            problems.append(f"MAX_RESULTS must be positive, got {cls.MAX_RESULTS}")

        if problems:
            raise CustomException("Config validation failed", "; ".join(problems))

        cls._validated = True
        logger.info("✅ Configuration successfully loaded and validated.")
        return True
