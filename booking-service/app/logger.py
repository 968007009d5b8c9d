import logging
import os

from app.config import get_settings

settings = get_settings()

LOG_DIR = settings.LOG_DIR
LOG_FILE = os.path.join(LOG_DIR, "booking-service.log")

os.makedirs(LOG_DIR, exist_ok=True)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s | %(levelname)s | %(message)s",
    handlers=[
        logging.FileHandler(LOG_FILE),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger("booking-service")
