"""Runtime configuration read from the environment (and an optional .env file)."""
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DATA_DIR = Path.home() / ".roadmap_tracker"

DEFAULT_DB_PATH = os.getenv("ROADMAP_DB_PATH", str(DATA_DIR / "tracker.db"))
DEFAULT_CACHE_PATH = os.getenv(
    "ROADMAP_CACHE_PATH", str(Path(DEFAULT_DB_PATH).parent / "cache.json")
)
LOG_DIR = Path(os.getenv("ROADMAP_LOG_DIR", str(DATA_DIR / "logs")))
LOG_LEVEL = os.getenv("ROADMAP_LOG_LEVEL", "INFO").upper()
POOL_FLOOR = int(os.getenv("ROADMAP_POOL_FLOOR", "5"))
