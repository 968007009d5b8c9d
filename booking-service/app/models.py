from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional


class SeatStatus(str, Enum):
    AVAILABLE = "available"
    BOOKED = "booked"


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


def show_datetime(show_date: str, show_time: str) -> datetime:
    """Дата (YYYY-MM-DD) и время (HH:MM) сеанса в одном datetime"""
    return datetime.strptime(f"{show_date} {show_time[:5]}", "%Y-%m-%d %H:%M")


@dataclass
class Seat:
    row: str
    number: int
    status: SeatStatus = SeatStatus.AVAILABLE

    @property
    def seat_id(self) -> str:
        return f"{self.row}-{self.number}"


@dataclass
class Movie:
    id: int
    title: str


@dataclass
class Theater:
    id: int
    name: str
    location: str = ""
    seat_matrix: List[Seat] = field(default_factory=list)


@dataclass
class Show:
    id: int
    movie_id: int
    theater_id: int
    date: str
    time: str
    price: float
    total_seats: int
    available_seats: int
    screen_number: int = 1
    is_active: bool = True

    @property
    def show_date(self) -> date:
        return date.fromisoformat(self.date)

    @property
    def starts_at(self) -> datetime:
        return show_datetime(self.date, self.time)


@dataclass
class BookedSeat:
    seat_number: str
    price: float


@dataclass
class Booking:
    booking_id: Optional[str]
    user_id: str
    show_id: int
    movie_id: int
    theater_id: int
    seats: List[BookedSeat]
    total_amount: float
    show_date: str
    show_time: str
    status: BookingStatus = BookingStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    booking_date: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def seat_numbers(self) -> List[str]:
        return [seat.seat_number for seat in self.seats]

    @property
    def show_starts_at(self) -> datetime:
        return show_datetime(self.show_date, self.show_time)


@dataclass
class User:
    id: str
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
