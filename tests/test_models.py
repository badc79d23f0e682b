from datetime import datetime, timedelta, timezone

from roombook.models import (
    Booking,
    BookingStatus,
    Pagination,
    Role,
    Room,
    Schedule,
    Slot,
    User,
)


def test_enum_values_match_wire_strings():
    assert Role("admin") is Role.ADMIN
    assert BookingStatus("cancelled") is BookingStatus.CANCELLED


def test_user_hides_password_hash_and_omits_missing_time():
    user = User(id="user-1", email="user@example.com", role=Role.USER, password_hash="placeholder")
    assert user.to_dict() == {"id": "user-1", "email": "user@example.com", "role": "user"}


def test_room_optional_fields():
    bare = Room(id="room-1", name="Alpha")
    assert bare.to_dict() == {"id": "room-1", "name": "Alpha"}
    full = Room(id="room-1", name="Alpha", description="Test room", capacity=6)
    assert full.to_dict()["description"] == "Test room"
    assert full.to_dict()["capacity"] == 6


def test_schedule_omits_empty_id_and_keeps_days():
    schedule = Schedule(room_id="r1", days_of_week=[1, 2, 3], start_time="09:00", end_time="18:00")
    data = schedule.to_dict()
    assert "id" not in data
    assert data["daysOfWeek"] == [1, 2, 3]
    assert list(data) == ["roomId", "daysOfWeek", "startTime", "endTime"]


def test_schedule_with_id_and_missing_days():
    data = Schedule(id="s1", room_id="r1").to_dict()
    assert data["id"] == "s1"
    assert data["daysOfWeek"] is None


def test_slot_times_in_utc():
    slot = Slot(
        id="slot-1",
        room_id="room-1",
        start=datetime(2026, 3, 24, 9, 0, tzinfo=timezone.utc),
        end=datetime(2026, 3, 24, 9, 30, tzinfo=timezone.utc),
        created_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
    )
    data = slot.to_dict()
    assert data["start"] == "2026-03-24T09:00:00Z"
    assert "createdAt" not in data
    assert data["roomId"] == "room-1"


def test_slot_time_with_offset_and_fraction():
    zone = timezone(timedelta(hours=3))
    slot = Slot(
        id="s",
        room_id="r",
        start=datetime(2026, 3, 24, 9, 0, 0, 500000, tzinfo=zone),
        end=datetime(2026, 3, 24, 9, 30, tzinfo=zone),
    )
    data = slot.to_dict()
    assert data["start"] == "2026-03-24T09:00:00.5+03:00"
    assert data["end"].endswith("+03:00")


def test_naive_time_treated_as_utc():
    slot = Slot(id="s", room_id="r", start=datetime(2026, 3, 24, 9), end=datetime(2026, 3, 24, 9, 30))
    assert slot.to_dict()["start"].endswith("Z")


def test_booking_dict():
    booking = Booking(id="b1", slot_id="s1", user_id="u1", status=BookingStatus.CANCELLED)
    assert booking.to_dict() == {"id": "b1", "slotId": "s1", "userId": "u1", "status": "cancelled"}
    linked = Booking(id="b1", slot_id="s1", user_id="u1", conference_link="https://meet.example.com/b1")
    assert linked.to_dict()["conferenceLink"] == "https://meet.example.com/b1"
    assert linked.to_dict()["status"] == "active"


def test_pagination_dict():
    assert Pagination(page=1, page_size=20, total=3).to_dict() == {"page": 1, "pageSize": 20, "total": 3}