import secrets
import string
import time
from typing import Container

from app.exceptions import ConflictError
from app.logger import logger

SUFFIX_ALPHABET = string.ascii_uppercase + string.digits
SUFFIX_LENGTH = 8


def generate_booking_id() -> str:
    """BK + миллисекунды + случайный суффикс"""
    suffix = "".join(secrets.choice(SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))
    return f"BK{int(time.time() * 1000)}{suffix}"


def assign_booking_id(existing: Container[str], max_attempts: int = 5) -> str:
    """Сгенерировать номер брони, которого ещё нет в журнале"""
    for attempt in range(1, max_attempts + 1):
        candidate = generate_booking_id()
        if candidate not in existing:
            return candidate
        logger.warning(f"Booking id collision on attempt {attempt}: {candidate}")
    raise ConflictError("Could not allocate a unique booking id, please retry")
