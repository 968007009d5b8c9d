from datetime import datetime
from typing import List

from fastapi import Depends, FastAPI, Query, status
from fastapi.middleware.cors import CORSMiddleware

from app import bookings
from app.auth import get_current_user, require_admin
from app.config import get_settings
from app.exceptions import register_exception_handlers
from app.logger import logger
from app.logging_service import get_logs
from app.models import BookedSeat, Booking, User
from app.schemas import (
    BookingResponse,
    CreateBookingRequest,
    MessageResponse,
    PaymentResponse,
    ReconcileResponse,
    ShowDetailResponse,
    UpdateBookingStatusRequest,
)
from app.storage import Store, get_store

settings = get_settings()

app = FastAPI(
    title=settings.PROJECT_NAME,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# CORS для веб-интерфейса
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


def booking_response(store: Store, booking: Booking) -> BookingResponse:
    return BookingResponse.model_validate(bookings.describe_booking(store, booking))


@app.on_event("startup")
def startup():
    store = get_store()
    logger.info(f"Booking Service started, lifecycle={settings.LIFECYCLE}, data file {store.data_file}")


@app.get("/shows/{show_id}", response_model=ShowDetailResponse)
def get_show(show_id: int, store: Store = Depends(get_store)):
    """Сеанс с картой мест зала"""
    logger.info(f"GET /shows/{show_id}")
    return ShowDetailResponse.model_validate(bookings.describe_show(store, show_id))


@app.post("/bookings", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    request: CreateBookingRequest,
    user: User = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    """Забронировать места на сеанс"""
    logger.info(f"POST /bookings - user {user.id}, show {request.show}, seats {[s.seat_number for s in request.seats]}")

    seats = [BookedSeat(seat_number=seat.seat_number, price=seat.price) for seat in request.seats]
    booking = bookings.create_booking(store, user, request.show, seats)
    return booking_response(store, booking)


@app.post("/bookings/payment/dummy", response_model=PaymentResponse)
def dummy_payment(user: User = Depends(get_current_user)):
    """Фиктивная оплата - всегда успешна"""
    logger.info(f"POST /bookings/payment/dummy - user {user.id}")
    return PaymentResponse(success=True, message="Payment successful (dummy)")


@app.get("/bookings", response_model=List[BookingResponse])
def get_my_bookings(user: User = Depends(get_current_user), store: Store = Depends(get_store)):
    """Брони текущего пользователя"""
    logger.info(f"GET /bookings - user {user.id}")
    return [booking_response(store, booking) for booking in bookings.list_bookings(store, user)]


@app.get("/bookings/{booking_id}", response_model=BookingResponse)
def get_booking(booking_id: str, user: User = Depends(get_current_user), store: Store = Depends(get_store)):
    logger.info(f"GET /bookings/{booking_id}")
    return booking_response(store, bookings.get_booking(store, booking_id, user))


@app.put("/bookings/{booking_id}/cancel", response_model=MessageResponse)
def cancel_booking(booking_id: str, user: User = Depends(get_current_user), store: Store = Depends(get_store)):
    """Отменить бронь"""
    logger.info(f"PUT /bookings/{booking_id}/cancel - user {user.id}")
    _, message = bookings.cancel_booking(store, booking_id, user)
    return MessageResponse(message=message)


@app.put("/bookings/{booking_id}/status", response_model=BookingResponse)
def update_booking_status(
    booking_id: str,
    request: UpdateBookingStatusRequest,
    user: User = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    """Обновить статус брони (владелец или администратор)"""
    logger.info(f"PUT /bookings/{booking_id}/status - {request.status.value}/{request.payment_status.value}")
    booking = bookings.update_status(store, booking_id, request.status, request.payment_status, user)
    return booking_response(store, booking)


@app.post("/bookings/{booking_id}/approve", response_model=BookingResponse)
def approve_booking(booking_id: str, user: User = Depends(get_current_user), store: Store = Depends(get_store)):
    """Подтвердить бронь (администратор)"""
    logger.info(f"POST /bookings/{booking_id}/approve")
    return booking_response(store, bookings.approve_booking(store, booking_id, user))


@app.post("/bookings/{booking_id}/reject", response_model=BookingResponse)
def reject_booking(booking_id: str, user: User = Depends(get_current_user), store: Store = Depends(get_store)):
    """Отклонить бронь и освободить места (администратор)"""
    logger.info(f"POST /bookings/{booking_id}/reject")
    return booking_response(store, bookings.reject_booking(store, booking_id, user))


@app.get("/admin/bookings/pending", response_model=List[BookingResponse])
def get_pending_bookings(user: User = Depends(get_current_user), store: Store = Depends(get_store)):
    """Брони, ожидающие подтверждения"""
    logger.info("GET /admin/bookings/pending")
    return [booking_response(store, booking) for booking in bookings.list_pending(store, user)]


@app.post("/admin/shows/{show_id}/reconcile", response_model=ReconcileResponse)
def reconcile_show(show_id: int, user: User = Depends(get_current_user), store: Store = Depends(get_store)):
    """Сверить счётчик мест сеанса с журналом броней"""
    logger.info(f"POST /admin/shows/{show_id}/reconcile")
    return ReconcileResponse.model_validate(bookings.reconcile_show(store, show_id, user))


@app.get("/api/monitoring/user-actions")
def get_user_actions_logs(limit: int = Query(100, ge=1, le=1000), user: User = Depends(get_current_user)):
    """Получить логи действий пользователей"""
    logger.info("GET /api/monitoring/user-actions")
    require_admin(user)
    logs = get_logs(limit)
    return {
        "logs": logs,
        "total_lines": len(logs),
        "timestamp": datetime.now().isoformat()
    }
