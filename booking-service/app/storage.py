import copy
import json
import os
import threading
from contextlib import contextmanager
from datetime import date, timedelta
from typing import Dict, List, Optional

from app.config import get_settings
from app.exceptions import ConflictError, NotFoundError, StorageError
from app.logger import logger
from app.models import (
    BookedSeat,
    Booking,
    BookingStatus,
    Movie,
    PaymentStatus,
    Seat,
    SeatStatus,
    Show,
    Theater,
)


def create_seat_matrix(rows: str = "ABCDEFGHIJ", seats_per_row: int = 10) -> List[Seat]:
    """Создает матрицу мест: ряды по буквам, места 1-N"""
    return [
        Seat(row=row_letter, number=number)
        for row_letter in rows
        for number in range(1, seats_per_row + 1)
    ]


def check_unique_seats(theater: Theater):
    seen = set()
    for seat in theater.seat_matrix:
        key = (seat.row, seat.number)
        if key in seen:
            raise StorageError(f"Theater {theater.id} has duplicate seat {seat.seat_id}")
        seen.add(key)


class Store:
    """Документное хранилище: фильмы, залы (с картой мест), сеансы (со счётчиком) и брони.

    Все изменения проходят через transaction(): один писатель за раз,
    снимок состояния до начала и откат при любой ошибке, запись на диск
    одним файлом через os.replace. Чтение для клиентов идёт через
    reading() под той же блокировкой и видит только зафиксированное состояние.
    """

    def __init__(self, data_dir: str, lock_timeout: float = 5.0):
        self.data_dir = data_dir
        self.lock_timeout = lock_timeout
        self.movies: Dict[int, Movie] = {}
        self.theaters: Dict[int, Theater] = {}
        self.shows: Dict[int, Show] = {}
        self.bookings: Dict[str, Booking] = {}
        self._lock = threading.RLock()
        self._depth = 0

    @property
    def data_file(self) -> str:
        return os.path.join(self.data_dir, "store.json")

    def _acquire(self):
        if not self._lock.acquire(timeout=self.lock_timeout):
            logger.warning("Store lock timeout")
            raise ConflictError("Seat inventory is busy, please retry")

    @contextmanager
    def reading(self):
        """Чтение только зафиксированного состояния: ждёт окончания текущей транзакции"""
        self._acquire()
        try:
            yield self
        finally:
            self._lock.release()

    @contextmanager
    def transaction(self):
        self._acquire()
        try:
            if self._depth:
                # вложенная транзакция - фиксирует внешняя
                self._depth += 1
                try:
                    yield self
                finally:
                    self._depth -= 1
                return

            snapshot = self._snapshot()
            self._depth = 1
            try:
                yield self
                self.save()
            except BaseException:
                self._restore(snapshot)
                raise
            finally:
                self._depth = 0
        finally:
            self._lock.release()

    def _snapshot(self):
        return copy.deepcopy((self.movies, self.theaters, self.shows, self.bookings))

    def _restore(self, snapshot):
        logger.info("Rolling back store transaction")
        self.movies, self.theaters, self.shows, self.bookings = snapshot

    # --- чтение ---

    def get_show(self, show_id: int) -> Show:
        show = self.shows.get(show_id)
        if not show or not show.is_active:
            raise NotFoundError("Show not found")
        return show

    def get_theater(self, theater_id: int) -> Theater:
        theater = self.theaters.get(theater_id)
        if not theater:
            raise NotFoundError("Theater not found")
        return theater

    def get_booking(self, booking_id: str) -> Booking:
        booking = self.bookings.get(booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    # --- каталог ---

    def add_movie(self, title: str) -> Movie:
        with self.transaction():
            new_id = max(self.movies.keys()) + 1 if self.movies else 1
            movie = Movie(id=new_id, title=title)
            self.movies[new_id] = movie
        logger.info(f"Movie created: {movie}")
        return movie

    def provision_theater(self, name: str, location: str = "", rows: str = None, seats_per_row: int = None) -> Theater:
        """Создать зал с картой мест по умолчанию"""
        settings = get_settings()
        with self.transaction():
            new_id = max(self.theaters.keys()) + 1 if self.theaters else 1
            theater = Theater(
                id=new_id,
                name=name,
                location=location,
                seat_matrix=create_seat_matrix(rows or settings.SEAT_ROWS, seats_per_row or settings.SEATS_PER_ROW)
            )
            self.theaters[new_id] = theater
        logger.info(f"Theater {theater.id} provisioned with {len(theater.seat_matrix)} seats")
        return theater

    def schedule_show(
        self,
        movie_id: int,
        theater_id: int,
        show_date: str,
        show_time: str,
        price: float,
        total_seats: Optional[int] = None,
        screen_number: int = 1,
    ) -> Show:
        """Создать сеанс, счётчик мест равен размеру карты зала"""
        with self.transaction():
            if movie_id not in self.movies:
                raise NotFoundError("Movie not found")
            theater = self.get_theater(theater_id)
            if total_seats is None:
                total_seats = len(theater.seat_matrix)
            new_id = max(self.shows.keys()) + 1 if self.shows else 1
            show = Show(
                id=new_id,
                movie_id=movie_id,
                theater_id=theater_id,
                date=show_date,
                time=show_time,
                price=price,
                total_seats=total_seats,
                available_seats=total_seats,
                screen_number=screen_number
            )
            self.shows[new_id] = show
        logger.info(f"Show created: {show}")
        return show

    def seed_demo_data(self):
        """Начальные данные: два фильма, два зала, сеансы на завтра"""
        tomorrow = (date.today() + timedelta(days=1)).isoformat()
        with self.transaction():
            first = self.add_movie("Interstellar")
            second = self.add_movie("Spirited Away")
            big = self.provision_theater("Premiere Hall", "Downtown")
            small = self.provision_theater("Art Cinema", "Old Town")
            self.schedule_show(first.id, big.id, tomorrow, "18:00", 250.0)
            self.schedule_show(second.id, small.id, tomorrow, "20:00", 200.0)
        logger.info("Demo catalog seeded")

    # --- сериализация ---

    def to_document(self) -> dict:
        return {
            "movies": {
                movie_id: {"id": movie.id, "title": movie.title}
                for movie_id, movie in self.movies.items()
            },
            "theaters": {
                theater_id: {
                    "id": theater.id,
                    "name": theater.name,
                    "location": theater.location,
                    "seat_matrix": [
                        {"row": seat.row, "number": seat.number, "status": seat.status.value}
                        for seat in theater.seat_matrix
                    ]
                }
                for theater_id, theater in self.theaters.items()
            },
            "shows": {
                show_id: {
                    "id": show.id,
                    "movie_id": show.movie_id,
                    "theater_id": show.theater_id,
                    "date": show.date,
                    "time": show.time,
                    "price": show.price,
                    "total_seats": show.total_seats,
                    "available_seats": show.available_seats,
                    "screen_number": show.screen_number,
                    "is_active": show.is_active
                }
                for show_id, show in self.shows.items()
            },
            "bookings": {
                booking_id: {
                    "booking_id": booking.booking_id,
                    "user_id": booking.user_id,
                    "show_id": booking.show_id,
                    "movie_id": booking.movie_id,
                    "theater_id": booking.theater_id,
                    "seats": [
                        {"seat_number": seat.seat_number, "price": seat.price}
                        for seat in booking.seats
                    ],
                    "total_amount": booking.total_amount,
                    "show_date": booking.show_date,
                    "show_time": booking.show_time,
                    "status": booking.status.value,
                    "payment_status": booking.payment_status.value,
                    "booking_date": booking.booking_date
                }
                for booking_id, booking in self.bookings.items()
            }
        }

    def load_document(self, data: dict):
        self.movies = {
            int(movie_id): Movie(**movie_data)
            for movie_id, movie_data in data.get("movies", {}).items()
        }

        self.theaters = {}
        for theater_id, theater_data in data.get("theaters", {}).items():
            theater = Theater(
                id=theater_data["id"],
                name=theater_data["name"],
                location=theater_data.get("location", ""),
                seat_matrix=[
                    Seat(row=seat["row"], number=seat["number"], status=SeatStatus(seat["status"]))
                    for seat in theater_data["seat_matrix"]
                ]
            )
            check_unique_seats(theater)
            self.theaters[int(theater_id)] = theater

        self.shows = {
            int(show_id): Show(**show_data)
            for show_id, show_data in data.get("shows", {}).items()
        }

        self.bookings = {}
        for booking_id, booking_data in data.get("bookings", {}).items():
            self.bookings[booking_id] = Booking(
                booking_id=booking_data["booking_id"],
                user_id=booking_data["user_id"],
                show_id=booking_data["show_id"],
                movie_id=booking_data["movie_id"],
                theater_id=booking_data["theater_id"],
                seats=[BookedSeat(**seat) for seat in booking_data["seats"]],
                total_amount=booking_data["total_amount"],
                show_date=booking_data["show_date"],
                show_time=booking_data["show_time"],
                status=BookingStatus(booking_data["status"]),
                payment_status=PaymentStatus(booking_data["payment_status"]),
                booking_date=booking_data["booking_date"]
            )

    def save(self):
        """Сохранить всё хранилище в файл"""
        tmp_file = self.data_file + ".tmp"
        try:
            os.makedirs(self.data_dir, exist_ok=True)
            with open(tmp_file, "w", encoding="utf-8") as f:
                json.dump(self.to_document(), f, ensure_ascii=False, indent=2)
            os.replace(tmp_file, self.data_file)
        except OSError as e:
            logger.error(f"Failed to save store to {self.data_file}: {e}")
            raise StorageError() from e
        logger.debug(f"Store saved to {self.data_file}")

    def load(self, seed: bool = False):
        """Загрузить хранилище из файла"""
        if not os.path.exists(self.data_file):
            logger.info("Store file not found, starting empty")
            if seed:
                self.seed_demo_data()
            return

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            self.load_document(data)
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error(f"Error loading store: {e}")
            raise StorageError(f"Cannot load store from {self.data_file}") from e

        logger.info(
            f"Loaded {len(self.theaters)} theaters, {len(self.shows)} shows, "
            f"{len(self.bookings)} bookings from file"
        )


_store: Optional[Store] = None
_store_lock = threading.Lock()


def get_store() -> Store:
    global _store
    with _store_lock:
        if _store is None:
            settings = get_settings()
            store = Store(settings.DATA_DIR, settings.LOCK_TIMEOUT_SECONDS)
            store.load(seed=settings.SEED_DEMO_DATA)
            _store = store
        return _store


def reset_store():
    global _store
    with _store_lock:
        _store = None
