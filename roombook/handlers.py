"""HTTP handlers of the booking API and the request-decoding helpers they share."""

from __future__ import annotations

import functools
import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping, get_args, get_origin

from .errors import AppError
from .middleware import user_id_from_request
from .models import Schedule
from .web import Request, Response, write_error, write_json

_INVALID_REQUEST = "INVALID_REQUEST"
_JSON_WHITESPACE = " \t\n\r"
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_ATOI = re.compile(r"[+-]?[0-9]+")

_DUMMY_LOGIN_FIELDS: dict[str, Any] = {"role": str}
_REGISTER_FIELDS: dict[str, Any] = {"email": str, "password": str, "role": str}
_LOGIN_FIELDS: dict[str, Any] = {"email": str, "password": str}
_CREATE_ROOM_FIELDS: dict[str, Any] = {"name": str, "description": str, "capacity": int}
_CREATE_SCHEDULE_FIELDS: dict[str, Any] = {
    "roomId": str,
    "daysOfWeek": list[int],
    "startTime": str,
    "endTime": str,
}
_CREATE_BOOKING_FIELDS: dict[str, Any] = {"slotId": str, "createConferenceLink": bool}


class _FieldTypeError(ValueError):
    """A JSON value does not fit the type declared for its field."""


def _invalid_body() -> AppError:
    return AppError(_INVALID_REQUEST, "invalid request body", 400)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON literal {name}")


def _zero_value(spec: Any) -> Any:
    if spec is str:
        return ""
    if spec is bool:
        return False
    if spec is int:
        return 0
    return None


def _convert(value: Any, spec: Any) -> Any:
    if spec is str:
        if isinstance(value, str):
            return value
    elif spec is bool:
        if isinstance(value, bool):
            return value
    elif spec is int:
        if isinstance(value, int) and not isinstance(value, bool):
            if _INT64_MIN <= value <= _INT64_MAX:
                return value
    elif get_origin(spec) is list:
        if isinstance(value, list):
            (item_spec,) = get_args(spec)
            return [
                _zero_value(item_spec) if item is None else _convert(item, item_spec)
                for item in value
            ]
    raise _FieldTypeError(f"cannot decode {type(value).__name__} as {spec}")


def _match_field(key: str, fields: Mapping[str, Any]) -> str | None:
    if key in fields:
        return key
    folded = key.casefold()
    for name in fields:
        if name.casefold() == folded:
            return name
    return None


def decode_json(request: Request, fields: Mapping[str, Any]) -> dict[str, Any]:
    """Decode a body holding exactly one JSON object with only the given fields.

    ``fields`` maps each accepted key to ``str``, ``int``, ``bool`` or ``list[...]``.
    Keys match case-insensitively; null values count as absent. The result holds
    only the keys that were present, under their declared names.
    """
    text = request.body.decode("utf-8", errors="replace")
    decoder = json.JSONDecoder(parse_constant=_reject_constant)
    start = len(text) - len(text.lstrip(_JSON_WHITESPACE))
    try:
        value, end = decoder.raw_decode(text, start)
    except (ValueError, RecursionError) as exc:
        raise _invalid_body() from exc

    if value is None:
        value = {}
    if not isinstance(value, dict):
        raise _invalid_body()

    decoded: dict[str, Any] = {}
    for key, item in value.items():
        name = _match_field(key, fields)
        if name is None:
            raise _invalid_body()
        if item is None:
            decoded.pop(name, None)
            continue
        try:
            decoded[name] = _convert(item, fields[name])
        except _FieldTypeError as exc:
            raise _invalid_body() from exc

    if text[end:].strip(_JSON_WHITESPACE):
        raise AppError(
            _INVALID_REQUEST, "request body must contain a single JSON object", 400
        )
    return decoded


def _parse_int_param(raw: str, name: str) -> int:
    if _ATOI.fullmatch(raw):
        parsed = int(raw)
        if _INT64_MIN <= parsed <= _INT64_MAX:
            return parsed
    raise AppError(_INVALID_REQUEST, f"{name} must be integer", 400)


def page_params(request: Request) -> tuple[int, int]:
    """Read ``page`` (default 1) and ``pageSize`` (default 20) from the query string."""
    page = 1
    page_size = 20
    raw_page = request.query.get("page", "")
    if raw_page:
        page = _parse_int_param(raw_page, "page")
    raw_size = request.query.get("pageSize", "")
    if raw_size:
        page_size = _parse_int_param(raw_size, "pageSize")
    return page, page_size


def _room_id(request: Request) -> str:
    return request.path_params.get("roomId", "")


def _booking_id(request: Request) -> str:
    return request.path_params.get("bookingId", "")


def _responds(method: Callable[[Any, Request], Response]) -> Callable[[Any, Request], Response]:
    """Turn any exception raised by a handler into an error response."""

    @functools.wraps(method)
    def wrapper(self: Any, request: Request) -> Response:
        try:
            return method(self, request)
        except Exception as exc:
            return write_error(exc)

    return wrapper


@dataclass
class Handler:
    """The API endpoints, backed by the auth, room, schedule, slot and booking services."""

    auth: Any = None
    rooms: Any = None
    schedules: Any = None
    slots: Any = None
    bookings: Any = None

    @_responds
    def root(self, request: Request) -> Response:
        return write_json(200, {"status": "ok"})

    @_responds
    def info(self, request: Request) -> Response:
        return write_json(200, {"status": "ok"})

    @_responds
    def dummy_login(self, request: Request) -> Response:
        body = decode_json(request, _DUMMY_LOGIN_FIELDS)
        token = self.auth.dummy_login(body.get("role", ""))
        return write_json(200, {"token": token})

    @_responds
    def register(self, request: Request) -> Response:
        body = decode_json(request, _REGISTER_FIELDS)
        user = self.auth.register(
            body.get("email", ""), body.get("password", ""), body.get("role", "")
        )
        return write_json(201, {"user": user})

    @_responds
    def login(self, request: Request) -> Response:
        body = decode_json(request, _LOGIN_FIELDS)
        token = self.auth.login(body.get("email", ""), body.get("password", ""))
        return write_json(200, {"token": token})

    @_responds
    def create_booking(self, request: Request) -> Response:
        body = decode_json(request, _CREATE_BOOKING_FIELDS)
        booking = self.bookings.create(
            body.get("slotId", ""),
            user_id_from_request(request),
            body.get("createConferenceLink", False),
        )
        return write_json(201, {"booking": booking})

    @_responds
    def list_bookings(self, request: Request) -> Response:
        page, page_size = page_params(request)
        bookings, pagination = self.bookings.list_all(page, page_size)
        return write_json(200, {"bookings": bookings, "pagination": pagination})

    @_responds
    def list_my_bookings(self, request: Request) -> Response:
        bookings = self.bookings.list_future_by_user(user_id_from_request(request))
        return write_json(200, {"bookings": bookings})

    @_responds
    def cancel_booking(self, request: Request) -> Response:
        booking = self.bookings.cancel(_booking_id(request), user_id_from_request(request))
        return write_json(200, {"booking": booking})

    @_responds
    def list_rooms(self, request: Request) -> Response:
        rooms = self.rooms.list()
        return write_json(200, {"rooms": rooms})

    @_responds
    def create_room(self, request: Request) -> Response:
        body = decode_json(request, _CREATE_ROOM_FIELDS)
        room = self.rooms.create(
            body.get("name", ""), body.get("description"), body.get("capacity")
        )
        return write_json(201, {"room": room})

    @_responds
    def create_schedule(self, request: Request) -> Response:
        body = decode_json(request, _CREATE_SCHEDULE_FIELDS)
        path_room_id = _room_id(request)
        body_room_id = body.get("roomId", "")
        if not body_room_id or body_room_id != path_room_id:
            raise AppError(_INVALID_REQUEST, "roomId in path and body must match", 400)
        schedule = self.schedules.create(
            path_room_id,
            Schedule(
                room_id=body_room_id,
                days_of_week=body.get("daysOfWeek"),
                start_time=body.get("startTime", ""),
                end_time=body.get("endTime", ""),
            ),
        )
        return write_json(201, {"schedule": schedule})

    @_responds
    def list_slots(self, request: Request) -> Response:
        slots = self.slots.list_available_by_room_and_date(
            _room_id(request), request.query.get("date", "")
        )
        return write_json(200, {"slots": [] if slots is None else slots})