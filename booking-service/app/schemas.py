from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.models import BookingStatus, PaymentStatus, SeatStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SeatRequest(CamelModel):
    seat_number: str
    price: float


class CreateBookingRequest(CamelModel):
    show: int
    seats: List[SeatRequest]


class UpdateBookingStatusRequest(CamelModel):
    status: BookingStatus
    payment_status: PaymentStatus


class SeatSchema(CamelModel):
    row: str
    number: int
    status: SeatStatus


class MovieSummary(CamelModel):
    id: Optional[int] = None
    title: str


class TheaterSummary(CamelModel):
    id: Optional[int] = None
    name: str
    location: str = ""


class ShowSummary(CamelModel):
    id: Optional[int] = None
    date: Optional[str] = None
    time: str = ""
    screen_number: int = 0


class ShowDetailResponse(CamelModel):
    id: int
    movie: MovieSummary
    theater: TheaterSummary
    screen_number: int
    date: str
    time: str
    price: float
    total_seats: int
    available_seats: int
    seat_matrix: List[SeatSchema]


class BookedSeatSchema(CamelModel):
    seat_number: str
    price: float


class BookingResponse(CamelModel):
    booking_id: str
    user: str
    show: ShowSummary
    movie: MovieSummary
    theater: TheaterSummary
    seats: List[BookedSeatSchema]
    total_amount: float
    show_date: str
    show_time: str
    status: BookingStatus
    payment_status: PaymentStatus
    booking_date: str


class MessageResponse(BaseModel):
    message: str


class PaymentResponse(BaseModel):
    success: bool
    message: str


class ReconcileResponse(CamelModel):
    show_id: int
    total_seats: int
    held_seats: int
    available_seats: int
    drift: int
