"""Протоколы бронирования: создание, отмена, решение администратора, смена статуса.

Каждая операция выполняется в одной транзакции хранилища: места в карте
зала, счётчик сеанса и запись в журнале броней меняются вместе или не
меняются вовсе.
"""
import copy
import math
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from app import inventory
from app.auth import require_admin
from app.booking_id import assign_booking_id
from app.config import get_settings
from app.exceptions import (
    AuthorizationError,
    ConflictError,
    PolicyViolationError,
    ValidationError,
)
from app.logger import logger
from app.logging_service import log_action
from app.models import BookedSeat, Booking, BookingStatus, PaymentStatus, User
from app.notification_client import notify
from app.payment import process_dummy_payment
from app.storage import Store

# сочетания статусов, которые владелец может выставить сам
OWNER_PAYMENT_STATES = {
    BookingStatus.PENDING: {PaymentStatus.PENDING},
    BookingStatus.CONFIRMED: {PaymentStatus.COMPLETED},
    BookingStatus.CANCELLED: {PaymentStatus.PENDING, PaymentStatus.FAILED},
}


def _booking_details(booking: Booking) -> dict:
    return {
        "booking_id": booking.booking_id,
        "show_id": booking.show_id,
        "seats": booking.seat_numbers,
        "total_amount": booking.total_amount,
        "status": booking.status.value,
        "payment_status": booking.payment_status.value
    }


def _price_seats(seats: Sequence[BookedSeat], show_price: float) -> List[BookedSeat]:
    """Проверить места и цены запроса, цена берётся из сеанса"""
    if not seats:
        raise ValidationError("At least one seat is required")

    priced = []
    for seat in seats:
        if seat.price is None:
            raise ValidationError(f"Seat {seat.seat_number} is missing a price")
        row, number = inventory.parse_seat_id(seat.seat_number)
        seat_id = f"{row}-{number}"
        if not math.isclose(float(seat.price), show_price, abs_tol=0.005):
            raise ValidationError(
                f"Seat {seat_id} price {seat.price} does not match show price {show_price}"
            )
        priced.append(BookedSeat(seat_number=seat_id, price=show_price))
    return priced


def _check_cancellation_window(booking: Booking, now: datetime):
    window = get_settings().CANCELLATION_WINDOW_HOURS
    hours_left = (booking.show_starts_at - now).total_seconds() / 3600
    if hours_left < window:
        raise PolicyViolationError(f"Cannot cancel booking within {window:g} hours of show time")


def _cancel_and_release(store: Store, booking: Booking):
    """Отменить бронь и вернуть места; вызывается внутри транзакции"""
    inventory.release(store, booking.theater_id, booking.seat_numbers)
    booking.status = BookingStatus.CANCELLED

    show = store.shows.get(booking.show_id)
    if show and show.available_seats + len(booking.seats) > show.total_seats:
        # счётчик уже разошёлся с журналом, пересчитываем вместо отказа
        logger.warning(f"Show {show.id} counter cannot take back {len(booking.seats)} seats, recounting")
        inventory.recount(store, booking.show_id)
    else:
        inventory.increment(store, booking.show_id, len(booking.seats))


def _check_owner_payment(booking: Booking, status: BookingStatus, payment_status: PaymentStatus, lifecycle: str):
    if (
        lifecycle == "adjudication"
        and booking.status == BookingStatus.PENDING
        and payment_status != booking.payment_status
    ):
        raise AuthorizationError("Only an admin can change payment status of a pending booking")
    if payment_status not in OWNER_PAYMENT_STATES[status]:
        raise ValidationError(
            f"Payment status {payment_status.value} does not match booking status {status.value}"
        )


def create_booking(
    store: Store,
    user: User,
    show_id: int,
    seats: Sequence[BookedSeat],
    now: Optional[datetime] = None,
) -> Booking:
    settings = get_settings()
    now = now or datetime.now()

    with store.transaction():
        show = store.get_show(show_id)
        theater = store.get_theater(show.theater_id)

        # время сеанса не учитывается, сегодняшний сеанс не считается прошедшим
        if show.show_date < now.date():
            raise PolicyViolationError("Cannot book for past shows")

        priced = _price_seats(seats, show.price)

        inventory.claim(store, theater.id, [seat.seat_number for seat in priced])
        inventory.decrement(store, show.id, len(priced))

        booking = Booking(
            booking_id=None,
            user_id=user.id,
            show_id=show.id,
            movie_id=show.movie_id,
            theater_id=theater.id,
            seats=priced,
            total_amount=sum(seat.price for seat in priced),
            show_date=show.date,
            show_time=show.time,
            booking_date=now.isoformat()
        )
        booking.booking_id = assign_booking_id(store.bookings, settings.ID_MAX_ATTEMPTS)

        if settings.LIFECYCLE == "auto_confirm":
            process_dummy_payment(booking)
            booking.status = BookingStatus.CONFIRMED
            booking.payment_status = PaymentStatus.COMPLETED

        store.bookings[booking.booking_id] = booking

    logger.info(f"Booking {booking.booking_id} created for show {show_id}: {booking.seat_numbers}")
    log_action(action="CREATE_BOOKING", user_id=user.id, details=_booking_details(booking))
    notify(booking.booking_id, booking.status.value, user.id)
    return booking


def cancel_booking(store: Store, booking_id: str, user: User, now: Optional[datetime] = None) -> Tuple[Booking, str]:
    """Отмена брони владельцем; повторная отмена ничего не меняет"""
    now = now or datetime.now()

    with store.transaction():
        booking = store.get_booking(booking_id)
        if booking.user_id != user.id:
            raise AuthorizationError()

        if booking.status == BookingStatus.CANCELLED:
            logger.info(f"Booking {booking_id} already cancelled")
            return booking, "Booking already cancelled"

        _check_cancellation_window(booking, now)
        _cancel_and_release(store, booking)

    logger.info(f"Booking {booking_id} cancelled, released {booking.seat_numbers}")
    log_action(action="CANCEL_BOOKING", user_id=user.id, details=_booking_details(booking))
    notify(booking_id, "cancelled", user.id)
    return booking, "Booking cancelled successfully"


def approve_booking(store: Store, booking_id: str, user: User) -> Booking:
    require_admin(user)
    with store.transaction():
        booking = store.get_booking(booking_id)
        if booking.status != BookingStatus.PENDING:
            raise ConflictError(f"Booking {booking_id} is not pending")
        booking.status = BookingStatus.CONFIRMED
        booking.payment_status = PaymentStatus.COMPLETED

    logger.info(f"Booking {booking_id} approved")
    log_action(action="APPROVE_BOOKING", user_id=user.id, details=_booking_details(booking))
    notify(booking_id, "confirmed", booking.user_id)
    return booking


def reject_booking(store: Store, booking_id: str, user: User) -> Booking:
    require_admin(user)
    with store.transaction():
        booking = store.get_booking(booking_id)
        if booking.status != BookingStatus.PENDING:
            raise ConflictError(f"Booking {booking_id} is not pending")
        _cancel_and_release(store, booking)
        booking.payment_status = PaymentStatus.FAILED

    logger.info(f"Booking {booking_id} rejected, released {booking.seat_numbers}")
    log_action(action="REJECT_BOOKING", user_id=user.id, details=_booking_details(booking))
    notify(booking_id, "rejected", booking.user_id)
    return booking


def update_status(
    store: Store,
    booking_id: str,
    status: BookingStatus,
    payment_status: PaymentStatus,
    user: User,
    now: Optional[datetime] = None,
) -> Booking:
    """Смена статуса владельцем или администратором по правилам жизненного цикла"""
    now = now or datetime.now()
    lifecycle = get_settings().LIFECYCLE

    with store.transaction():
        booking = store.get_booking(booking_id)
        if booking.user_id != user.id and not user.is_admin:
            raise AuthorizationError()

        current = booking.status
        if status != current:
            if current == BookingStatus.CANCELLED:
                raise ConflictError("Cancelled booking cannot change status")
            if status == BookingStatus.PENDING:
                raise ConflictError(f"Cannot move booking from {current.value} back to pending")
            if status == BookingStatus.CONFIRMED and lifecycle == "adjudication" and not user.is_admin:
                raise AuthorizationError("Only an admin can confirm a pending booking")

        if not user.is_admin:
            _check_owner_payment(booking, status, payment_status, lifecycle)

        if status != current and status == BookingStatus.CANCELLED:
            if not user.is_admin:
                _check_cancellation_window(booking, now)
            _cancel_and_release(store, booking)

        booking.status = status
        booking.payment_status = payment_status

    logger.info(f"Booking {booking_id} status {current.value} -> {booking.status.value}, payment {payment_status.value}")
    log_action(action="UPDATE_BOOKING_STATUS", user_id=user.id, details=_booking_details(booking))
    if booking.status != current:
        notify(booking_id, booking.status.value, booking.user_id)
    return booking


def get_booking(store: Store, booking_id: str, user: User) -> Booking:
    with store.reading():
        booking = store.get_booking(booking_id)
        if booking.user_id != user.id and not user.is_admin:
            raise AuthorizationError()
        return copy.deepcopy(booking)


def list_bookings(store: Store, user: User) -> List[Booking]:
    with store.reading():
        bookings = [copy.deepcopy(b) for b in store.bookings.values() if b.user_id == user.id]
    return sorted(bookings, key=lambda b: b.booking_date, reverse=True)


def list_pending(store: Store, user: User) -> List[Booking]:
    """Очередь на подтверждение мест"""
    require_admin(user)
    with store.reading():
        bookings = [copy.deepcopy(b) for b in store.bookings.values() if b.status == BookingStatus.PENDING]
    return sorted(bookings, key=lambda b: b.booking_date, reverse=True)


def reconcile_show(store: Store, show_id: int, user: User) -> dict:
    require_admin(user)
    report = inventory.recount(store, show_id)
    log_action(action="RECONCILE_SHOW", user_id=user.id, details=report)
    return report


def describe_booking(store: Store, booking: Booking) -> dict:
    """Бронь со сводками фильма, зала и сеанса; удалённые записи заменяются заглушками"""
    with store.reading():
        movie = store.movies.get(booking.movie_id)
        theater = store.theaters.get(booking.theater_id)
        show = store.shows.get(booking.show_id)
        return {
            "booking_id": booking.booking_id,
            "user": booking.user_id,
            "show": {
                "id": show.id, "date": show.date, "time": show.time, "screen_number": show.screen_number
            } if show else {"id": None, "date": None, "time": "", "screen_number": 0},
            "movie": {"id": movie.id, "title": movie.title} if movie else {"id": None, "title": "Deleted Movie"},
            "theater": {
                "id": theater.id, "name": theater.name, "location": theater.location
            } if theater else {"id": None, "name": "Unknown Theater", "location": ""},
            "seats": [{"seat_number": seat.seat_number, "price": seat.price} for seat in booking.seats],
            "total_amount": booking.total_amount,
            "show_date": booking.show_date,
            "show_time": booking.show_time,
            "status": booking.status,
            "payment_status": booking.payment_status,
            "booking_date": booking.booking_date
        }


def describe_show(store: Store, show_id: int) -> dict:
    # карта мест и счётчик читаются под одной блокировкой
    with store.reading():
        show = store.get_show(show_id)
        theater = store.get_theater(show.theater_id)
        movie = store.movies.get(show.movie_id)
        return {
            "id": show.id,
            "movie": {"id": movie.id, "title": movie.title} if movie else {"id": None, "title": "Deleted Movie"},
            "theater": {"id": theater.id, "name": theater.name, "location": theater.location},
            "screen_number": show.screen_number,
            "date": show.date,
            "time": show.time,
            "price": show.price,
            "total_seats": show.total_seats,
            "available_seats": show.available_seats,
            "seat_matrix": [
                {"row": seat.row, "number": seat.number, "status": seat.status}
                for seat in theater.seat_matrix
            ]
        }
