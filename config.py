import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# Load env vars (.env in the working directory, if any)
load_dotenv()

BASE_DIR = Path(__file__).resolve().parent
DATA_DIR = BASE_DIR / "data"

DB_PATH = DATA_DIR / "transactions.db"
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DB_PATH}")

SOURCE_URL = os.getenv(
    "SOURCE_URL", "https://s3.amazonaws.com/roxiler.com/product_transaction.json"
)
FETCH_TIMEOUT = float(os.getenv("FETCH_TIMEOUT", "30"))

HOST = os.getenv("HOST", "localhost")
PORT = int(os.getenv("PORT", "5000"))
DEBUG = os.getenv("FLASK_DEBUG", "0") in ("1", "true", "True")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = LOG_LEVEL):
    """Console logging for the service and the CLI."""
    logging.basicConfig(
        level=level.upper(),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
