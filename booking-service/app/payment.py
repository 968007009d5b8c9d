from app.logger import logger
from app.models import Booking


def process_dummy_payment(booking: Booking) -> dict:
    """Имитация оплаты - всегда успешна"""
    logger.info(f"Dummy payment of {booking.total_amount} accepted for booking {booking.booking_id}")
    return {"success": True, "message": "Payment successful (dummy)"}
