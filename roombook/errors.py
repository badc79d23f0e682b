"""Application errors that carry a machine-readable code and an HTTP status."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(eq=False)
class AppError(Exception):
    """An error meant to be reported to API clients."""

    code: str
    message: str
    http_status: int

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


ERR_INVALID_REQUEST = AppError("INVALID_REQUEST", "invalid request", 400)
ERR_UNAUTHORIZED = AppError("UNAUTHORIZED", "unauthorized", 401)
ERR_FORBIDDEN = AppError("FORBIDDEN", "forbidden", 403)
ERR_NOT_FOUND = AppError("NOT_FOUND", "not found", 404)
ERR_ROOM_NOT_FOUND = AppError("ROOM_NOT_FOUND", "room not found", 404)
ERR_SLOT_NOT_FOUND = AppError("SLOT_NOT_FOUND", "slot not found", 404)
ERR_SLOT_ALREADY_BOOKED = AppError("SLOT_ALREADY_BOOKED", "slot is already booked", 409)
ERR_BOOKING_NOT_FOUND = AppError("BOOKING_NOT_FOUND", "booking not found", 404)
ERR_SCHEDULE_EXISTS = AppError(
    "SCHEDULE_EXISTS",
    "schedule for this room already exists and cannot be changed",
    409,
)
ERR_INTERNAL = AppError("INTERNAL_ERROR", "internal server error", 500)


def _unwrap_app_error(err: BaseException | None) -> AppError | None:
    """Return the first AppError found along the explicit cause chain."""
    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        if isinstance(err, AppError):
            return err
        seen.add(id(err))
        err = err.__cause__
    return None


def is_app_error(err: BaseException | None, target: AppError) -> bool:
    """Tell whether ``err`` (or an error it was raised from) has the code of ``target``."""
    found = _unwrap_app_error(err)
    return found is not None and found.code == target.code