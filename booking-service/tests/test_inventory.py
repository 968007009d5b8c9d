import pytest

from app import inventory
from app.exceptions import ConflictError, StorageError, ValidationError
from app.models import SeatStatus
from app.storage import Store, create_seat_matrix


def seat_status(store, theater_id, seat_id):
    row, number = inventory.parse_seat_id(seat_id)
    for seat in store.theaters[theater_id].seat_matrix:
        if (seat.row, seat.number) == (row, number):
            return seat.status
    return None


class TestSeatMatrix:

    def test_default_theater_has_100_unique_seats(self, theater):
        keys = [(seat.row, seat.number) for seat in theater.seat_matrix]
        assert len(keys) == 100
        assert len(set(keys)) == 100
        assert keys[0] == ("A", 1)
        assert keys[-1] == ("J", 10)
        assert all(seat.status == SeatStatus.AVAILABLE for seat in theater.seat_matrix)

    def test_custom_dimensions(self):
        seats = create_seat_matrix("AB", 3)
        assert [seat.seat_id for seat in seats] == ["A-1", "A-2", "A-3", "B-1", "B-2", "B-3"]

    def test_loading_duplicate_seats_is_rejected(self, store, theater):
        document = store.to_document()
        seats = document["theaters"][theater.id]["seat_matrix"]
        seats.append(dict(seats[0]))

        fresh = Store(store.data_dir)
        with pytest.raises(StorageError):
            fresh.load_document(document)


class TestParseSeatId:

    @pytest.mark.parametrize("seat_id,expected", [
        ("A-1", ("A", 1)),
        ("J-10", ("J", 10)),
        ("b-7", ("B", 7)),
    ])
    def test_valid(self, seat_id, expected):
        assert inventory.parse_seat_id(seat_id) == expected

    @pytest.mark.parametrize("seat_id", ["A1", "1-A", "A-0", "AA-1", "A-", "", "A-1-2"])
    def test_malformed_is_validation_error(self, seat_id):
        with pytest.raises(ValidationError):
            inventory.parse_seat_id(seat_id)


class TestClaim:

    def test_claim_marks_seats_booked(self, store, theater):
        inventory.claim(store, theater.id, ["A-1", "A-2"])

        assert seat_status(store, theater.id, "A-1") == SeatStatus.BOOKED
        assert seat_status(store, theater.id, "A-2") == SeatStatus.BOOKED
        assert not inventory.is_available(store, theater.id, "A-1")
        assert inventory.is_available(store, theater.id, "A-3")

    def test_claim_is_all_or_nothing(self, store, theater):
        inventory.claim(store, theater.id, ["A-1"])

        with pytest.raises(ConflictError) as exc:
            inventory.claim(store, theater.id, ["A-2", "A-1"])

        assert "A-1" in exc.value.message
        assert seat_status(store, theater.id, "A-2") == SeatStatus.AVAILABLE

    def test_seat_outside_map_is_conflict(self, store, theater):
        with pytest.raises(ConflictError) as exc:
            inventory.claim(store, theater.id, ["A-3", "K-1"])

        assert "K-1" in exc.value.message
        assert seat_status(store, theater.id, "A-3") == SeatStatus.AVAILABLE

    def test_repeated_seat_in_request_is_conflict(self, store, theater):
        with pytest.raises(ConflictError):
            inventory.claim(store, theater.id, ["C-4", "C-4"])
        assert seat_status(store, theater.id, "C-4") == SeatStatus.AVAILABLE

    def test_malformed_seat_is_validation_error(self, store, theater):
        with pytest.raises(ValidationError):
            inventory.claim(store, theater.id, ["A-1", "row one"])
        assert seat_status(store, theater.id, "A-1") == SeatStatus.AVAILABLE

    def test_release_is_idempotent(self, store, theater):
        inventory.claim(store, theater.id, ["D-5"])

        released = inventory.release(store, theater.id, ["D-5"])
        assert [seat.seat_id for seat in released] == ["D-5"]
        assert inventory.release(store, theater.id, ["D-5"]) == []
        assert seat_status(store, theater.id, "D-5") == SeatStatus.AVAILABLE


class TestShowCounter:

    def test_decrement_and_increment(self, store, show):
        assert inventory.decrement(store, show.id, 3) == 97
        assert inventory.increment(store, show.id, 2) == 99

    def test_decrement_below_zero_is_refused(self, store, show):
        inventory.decrement(store, show.id, 100)

        with pytest.raises(ConflictError):
            inventory.decrement(store, show.id, 1)
        assert store.shows[show.id].available_seats == 0

    def test_increment_above_total_is_refused(self, store, show):
        with pytest.raises(ConflictError):
            inventory.increment(store, show.id, 1)
        assert store.shows[show.id].available_seats == show.total_seats

    def test_recount_fixes_drift(self, store, show, user):
        from app.bookings import create_booking
        from app.models import BookedSeat
        from util_constant import NOW

        create_booking(store, user, show.id, [BookedSeat("A-1", 200.0), BookedSeat("A-2", 200.0)], now=NOW)
        store.shows[show.id].available_seats = 100

        report = inventory.recount(store, show.id)

        assert report["held_seats"] == 2
        assert report["drift"] == 2
        assert store.shows[show.id].available_seats == 98
        assert inventory.recount(store, show.id)["drift"] == 0
