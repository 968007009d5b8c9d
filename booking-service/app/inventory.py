"""Карта мест зала и счётчик свободных мест сеанса.

Функции меняют состояние только внутри Store.transaction(): проверка
и захват мест выполняются под одной блокировкой, поэтому место
переходит available -> booked только если до этого было свободно.
"""
import re
from typing import Dict, Iterable, List, Tuple

from app.exceptions import ConflictError, NotFoundError, ValidationError
from app.logger import logger
from app.models import BookingStatus, Seat, SeatStatus, Show
from app.storage import Store

SEAT_ID_RE = re.compile(r"^([A-Z])-([1-9]\d*)$")


def parse_seat_id(seat_id: str) -> Tuple[str, int]:
    """'A-1' -> ('A', 1)"""
    match = SEAT_ID_RE.match(seat_id.strip().upper()) if isinstance(seat_id, str) else None
    if not match:
        raise ValidationError(f"Invalid seat identifier '{seat_id}', expected format ROW-NUMBER")
    return match.group(1), int(match.group(2))


def _seat_index(store: Store, theater_id: int) -> Dict[Tuple[str, int], Seat]:
    theater = store.get_theater(theater_id)
    return {(seat.row, seat.number): seat for seat in theater.seat_matrix}


def is_available(store: Store, theater_id: int, seat_id: str) -> bool:
    row, number = parse_seat_id(seat_id)
    seat = _seat_index(store, theater_id).get((row, number))
    return seat is not None and seat.status == SeatStatus.AVAILABLE


def claim(store: Store, theater_id: int, seat_ids: Iterable[str]) -> List[Seat]:
    """Занять места целиком или не занять ни одного"""
    parsed = [(seat_id, parse_seat_id(seat_id)) for seat_id in seat_ids]

    with store.transaction():
        index = _seat_index(store, theater_id)
        requested = set()
        seats = []
        for seat_id, key in parsed:
            seat = index.get(key)
            if seat is None or seat.status != SeatStatus.AVAILABLE or key in requested:
                raise ConflictError(f"Seat {seat_id} is already booked or invalid.")
            requested.add(key)
            seats.append(seat)

        for seat in seats:
            seat.status = SeatStatus.BOOKED

    logger.info(f"Theater {theater_id}: claimed seats {[seat.seat_id for seat in seats]}")
    return seats


def release(store: Store, theater_id: int, seat_ids: Iterable[str]) -> List[Seat]:
    """Освободить места; уже свободные пропускаются"""
    parsed = [parse_seat_id(seat_id) for seat_id in seat_ids]

    with store.transaction():
        index = _seat_index(store, theater_id)
        released = []
        for key in parsed:
            seat = index.get(key)
            if seat is not None and seat.status == SeatStatus.BOOKED:
                seat.status = SeatStatus.AVAILABLE
                released.append(seat)

    logger.info(f"Theater {theater_id}: released seats {[seat.seat_id for seat in released]}")
    return released


def _counter_show(store: Store, show_id: int) -> Show:
    # счётчик снятого с показа сеанса тоже должен восстанавливаться при отмене
    show = store.shows.get(show_id)
    if not show:
        raise NotFoundError("Show not found")
    return show


def decrement(store: Store, show_id: int, n: int) -> int:
    with store.transaction():
        show = _counter_show(store, show_id)
        if n < 0 or show.available_seats - n < 0:
            raise ConflictError(
                f"Insufficient capacity: {show.available_seats} seats left, {n} requested"
            )
        show.available_seats -= n
        return show.available_seats


def increment(store: Store, show_id: int, n: int) -> int:
    with store.transaction():
        show = _counter_show(store, show_id)
        if n < 0 or show.available_seats + n > show.total_seats:
            raise ConflictError(
                f"Cannot restore {n} seats: show {show_id} would exceed {show.total_seats} total seats"
            )
        show.available_seats += n
        return show.available_seats


def recount(store: Store, show_id: int) -> dict:
    """Пересчитать счётчик сеанса по журналу броней"""
    with store.transaction():
        show = _counter_show(store, show_id)
        held = sum(
            len(booking.seats)
            for booking in store.bookings.values()
            if booking.show_id == show_id and booking.status != BookingStatus.CANCELLED
        )
        expected = max(show.total_seats - held, 0)
        drift = show.available_seats - expected
        if drift:
            logger.warning(
                f"Show {show_id} counter drift {drift}: counter {show.available_seats}, ledger says {expected}"
            )
            show.available_seats = expected

    return {
        "show_id": show_id,
        "total_seats": show.total_seats,
        "held_seats": held,
        "available_seats": expected,
        "drift": drift,
    }
