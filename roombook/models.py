"""Domain records of the booking service and their JSON shapes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"


class BookingStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _rfc3339(moment: datetime) -> str:
    """Format a timestamp as RFC 3339 with trailing fractional zeros dropped."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset()
    if not offset:
        return text + "Z"
    total = int(offset.total_seconds())
    sign = "+" if total >= 0 else "-"
    total = abs(total)
    return f"{text}{sign}{total // 3600:02d}:{total % 3600 // 60:02d}"


def _put_time(data: dict[str, Any], key: str, moment: datetime | None) -> None:
    if moment is not None:
        data[key] = _rfc3339(moment)


@dataclass
class User:
    id: str = ""
    email: str = ""
    role: Role | str = Role.USER
    password_hash: str | None = None
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "email": self.email,
            "role": _enum_value(self.role),
        }
        _put_time(data, "createdAt", self.created_at)
        return data


@dataclass
class Room:
    id: str = ""
    name: str = ""
    description: str | None = None
    capacity: int | None = None
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "name": self.name}
        if self.description is not None:
            data["description"] = self.description
        if self.capacity is not None:
            data["capacity"] = self.capacity
        _put_time(data, "createdAt", self.created_at)
        return data


@dataclass
class Schedule:
    id: str = ""
    room_id: str = ""
    days_of_week: list[int] | None = None
    start_time: str = ""
    end_time: str = ""
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.id:
            data["id"] = self.id
        data["roomId"] = self.room_id
        data["daysOfWeek"] = None if self.days_of_week is None else list(self.days_of_week)
        data["startTime"] = self.start_time
        data["endTime"] = self.end_time
        _put_time(data, "createdAt", self.created_at)
        return data


@dataclass
class Slot:
    id: str
    room_id: str
    start: datetime
    end: datetime
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "roomId": self.room_id,
            "start": _rfc3339(self.start),
            "end": _rfc3339(self.end),
        }


@dataclass
class Booking:
    id: str = ""
    slot_id: str = ""
    user_id: str = ""
    status: BookingStatus | str = BookingStatus.ACTIVE
    conference_link: str | None = None
    created_at: datetime | None = None
    slot_start: datetime | None = field(default=None, repr=False)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "slotId": self.slot_id,
            "userId": self.user_id,
            "status": _enum_value(self.status),
        }
        if self.conference_link is not None:
            data["conferenceLink"] = self.conference_link
        _put_time(data, "createdAt", self.created_at)
        return data


@dataclass
class Pagination:
    page: int = 0
    page_size: int = 0
    total: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"page": self.page, "pageSize": self.page_size, "total": self.total}