import requests

from app import bookings, notification_client
from app.config import get_settings
from app.logging_service import get_logs
from app.models import BookedSeat, BookingStatus

from util_constant import NOW


class FakeResponse:
    def raise_for_status(self):
        return None


def test_disabled_without_url(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("must not be called")

    monkeypatch.setattr(notification_client.requests, "post", fail)

    assert notification_client.notify("BK1", "confirmed", "user-1") is False


def test_booking_triggers_notification(store, show, user, monkeypatch):
    monkeypatch.setenv("BOOKING_NOTIFICATION_SERVICE_URL", "http://notification-service:8003/")
    get_settings.cache_clear()
    sent = []

    def fake_post(url, json=None, timeout=None):
        sent.append((url, json, timeout))
        return FakeResponse()

    monkeypatch.setattr(notification_client.requests, "post", fake_post)

    booking = bookings.create_booking(store, user, show.id, [BookedSeat("A-1", 200.0)], now=NOW)

    assert sent == [(
        "http://notification-service:8003/notify",
        {
            "booking_id": booking.booking_id,
            "message": "Booking confirmed",
            "event_type": "confirmed",
            "user_id": "user-1",
        },
        3,
    )]


def test_notification_failure_does_not_break_booking(store, show, user, monkeypatch):
    monkeypatch.setenv("BOOKING_NOTIFICATION_SERVICE_URL", "http://notification-service:8003")
    get_settings.cache_clear()

    def unreachable(*args, **kwargs):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(notification_client.requests, "post", unreachable)

    booking = bookings.create_booking(store, user, show.id, [BookedSeat("A-1", 200.0)], now=NOW)

    assert booking.status == BookingStatus.CONFIRMED
    assert booking.booking_id in store.bookings


def test_actions_are_logged(store, show, user):
    booking = bookings.create_booking(store, user, show.id, [BookedSeat("A-1", 200.0)], now=NOW)
    bookings.cancel_booking(store, booking.booking_id, user, now=NOW)

    logs = get_logs()

    assert [entry["action"] for entry in logs] == ["CREATE_BOOKING", "CANCEL_BOOKING"]
    assert logs[0]["user_id"] == "user-1"
    assert logs[0]["details"]["seats"] == ["A-1"]
    assert logs[1]["details"]["status"] == "cancelled"


def test_non_positive_limit_returns_nothing(store, show, user):
    bookings.create_booking(store, user, show.id, [BookedSeat("A-1", 200.0)], now=NOW)

    assert get_logs(0) == []
    assert get_logs(-5) == []
    assert len(get_logs(1)) == 1
