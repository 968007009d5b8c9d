import requests

from app.config import get_settings
from app.logger import logger

MESSAGES = {
    "confirmed": "Booking confirmed",
    "pending": "Booking received and waiting for approval",
    "cancelled": "Booking cancelled",
    "rejected": "Booking rejected, seats released",
}


def notify(booking_id: str, event_type: str, user_id: str = None) -> bool:
    """Отправить уведомление о брони, ошибки только логируются"""
    base_url = get_settings().NOTIFICATION_SERVICE_URL
    if not base_url:
        logger.debug(f"Notification service disabled, skipping {event_type} for booking {booking_id}")
        return False

    payload = {
        "booking_id": booking_id,
        "message": MESSAGES.get(event_type, "Booking status updated"),
        "event_type": event_type,
        "user_id": user_id
    }
    try:
        response = requests.post(f"{base_url.rstrip('/')}/notify", json=payload, timeout=3)
        response.raise_for_status()
        logger.info(f"Notification triggered for booking {booking_id}, event: {event_type}")
        return True
    except requests.RequestException as e:
        logger.error(f"Failed to notify for booking {booking_id}: {e}")
        return False
