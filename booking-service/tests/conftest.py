import os
import tempfile
from datetime import date, datetime, timedelta

# Каталоги данных и логов для тестов задаются до импорта приложения
_test_root = tempfile.mkdtemp(prefix="booking-service-test-")
os.environ["BOOKING_DATA_DIR"] = os.path.join(_test_root, "data")
os.environ["BOOKING_LOG_DIR"] = os.path.join(_test_root, "logs")
os.environ["BOOKING_SEED_DEMO_DATA"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.config import get_settings  # noqa: E402
from app.main import app  # noqa: E402
from app.models import User, UserRole  # noqa: E402
from app.storage import get_store, reset_store  # noqa: E402

from util_constant import NOW  # noqa: E402


@pytest.fixture(autouse=True)
def settings(tmp_path, monkeypatch):
    monkeypatch.setenv("BOOKING_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("BOOKING_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("BOOKING_SEED_DEMO_DATA", "false")
    monkeypatch.delenv("BOOKING_LIFECYCLE", raising=False)
    monkeypatch.delenv("BOOKING_NOTIFICATION_SERVICE_URL", raising=False)
    get_settings.cache_clear()
    reset_store()
    yield get_settings()
    get_settings.cache_clear()
    reset_store()


@pytest.fixture
def adjudication(monkeypatch):
    monkeypatch.setenv("BOOKING_LIFECYCLE", "adjudication")
    get_settings.cache_clear()
    return get_settings()


@pytest.fixture
def store():
    return get_store()


@pytest.fixture
def movie(store):
    return store.add_movie("Test Movie")


@pytest.fixture
def theater(store):
    return store.provision_theater("Test Theater", "Test City")


@pytest.fixture
def schedule(store, movie, theater):
    def _schedule(starts_at: datetime, price: float = 200.0):
        return store.schedule_show(
            movie.id,
            theater.id,
            starts_at.date().isoformat(),
            starts_at.strftime("%H:%M"),
            price
        )
    return _schedule


@pytest.fixture
def show(schedule):
    """Сеанс через 3 часа после NOW"""
    return schedule(NOW + timedelta(hours=3))


@pytest.fixture
def tomorrow_show(store, movie, theater):
    """Сеанс завтра в 18:00 по реальным часам, для HTTP тестов"""
    tomorrow = (date.today() + timedelta(days=1)).isoformat()
    return store.schedule_show(movie.id, theater.id, tomorrow, "18:00", 200.0)


@pytest.fixture
def user():
    return User(id="user-1")


@pytest.fixture
def other_user():
    return User(id="user-2")


@pytest.fixture
def admin():
    return User(id="admin-1", role=UserRole.ADMIN)


@pytest.fixture
def client(store):
    return TestClient(app)
