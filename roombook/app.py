"""Database migrations and the HTTP route table of the booking API."""

from __future__ import annotations

import itertools
import os
import socket
from dataclasses import replace
from pathlib import Path
from typing import Any, Protocol

from .handlers import Handler
from .middleware import AuthMiddleware, require_role
from .web import HandlerFunc, Request, Response, Router

_ENSURE_MIGRATIONS_TABLE = """
    CREATE TABLE IF NOT EXISTS schema_migrations (
        filename TEXT PRIMARY KEY,
        applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )"""

_MARK_MIGRATION = """
    INSERT INTO schema_migrations (filename)
    VALUES ($1)
    ON CONFLICT (filename) DO NOTHING
"""

DEFAULT_MIGRATIONS_DIR = Path("db") / "migrations"


class MigrationTransaction(Protocol):
    def execute(self, sql: str, *args: Any) -> int: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


class MigrationDatabase(Protocol):
    """A database that runs statements (returning affected rows) and opens transactions."""

    def execute(self, sql: str, *args: Any) -> int: ...

    def begin(self) -> MigrationTransaction: ...


def migration_files(migrations_dir: str | os.PathLike[str]) -> list[str]:
    """Paths of the ``*.up.sql`` files in ``migrations_dir``, sorted by name."""
    return sorted(str(path) for path in Path(migrations_dir).glob("*.up.sql"))


def _apply_one(db: MigrationDatabase, file: str) -> None:
    try:
        content = Path(file).read_bytes()
    except OSError as exc:
        raise RuntimeError(f"read migration {file}: {exc}") from exc

    try:
        tx = db.begin()
    except Exception as exc:
        raise RuntimeError(f"begin migration tx {file}: {exc}") from exc

    try:
        affected = tx.execute(_MARK_MIGRATION, os.path.basename(file))
    except Exception as exc:
        tx.rollback()
        raise RuntimeError(f"mark migration {file}: {exc}") from exc

    if affected == 0:
        try:
            tx.commit()
        except Exception as exc:
            raise RuntimeError(f"commit skipped migration {file}: {exc}") from exc
        return

    try:
        if content:
            try:
                tx.execute(content.decode("utf-8", errors="replace"))
            except Exception as exc:
                raise RuntimeError(f"apply migration {file}: {exc}") from exc
        try:
            tx.commit()
        except Exception as exc:
            raise RuntimeError(f"commit migration {file}: {exc}") from exc
    except Exception:
        tx.rollback()
        raise


def apply_migrations_from_dir(db: MigrationDatabase, migrations_dir: str | os.PathLike[str]) -> None:
    """Apply every migration in ``migrations_dir`` not yet recorded, each in its own transaction."""
    files = migration_files(migrations_dir)
    try:
        db.execute(_ENSURE_MIGRATIONS_TABLE)
    except Exception as exc:
        raise RuntimeError(f"ensure schema_migrations: {exc}") from exc
    for file in files:
        _apply_one(db, file)


def apply_migrations(db: MigrationDatabase) -> None:
    """Apply the migrations found in ``db/migrations``."""
    apply_migrations_from_dir(db, DEFAULT_MIGRATIONS_DIR)


_REQUEST_ID_PREFIX = f"{socket.gethostname() or 'localhost'}/{os.urandom(5).hex()}"
_request_counter = itertools.count(1)


def _request_id(handler: HandlerFunc) -> HandlerFunc:
    """Attach a request id, taken from ``X-Request-Id`` or generated."""

    def wrapped(request: Request) -> Response:
        request_id = request.headers.get("x-request-id") or (
            f"{_REQUEST_ID_PREFIX}-{next(_request_counter):06d}"
        )
        return handler(replace(request, context={**request.context, "request_id": request_id}))

    return wrapped


def new_router(handler: Handler, auth_middleware: AuthMiddleware) -> Router:
    """Build the router with public, authenticated and role-restricted routes."""
    router = Router(_request_id)
    router.add("GET", "/", handler.root)
    router.add("GET", "/_info", handler.info)
    router.add("POST", "/dummyLogin", handler.dummy_login)
    router.add("POST", "/register", handler.register)
    router.add("POST", "/login", handler.login)

    auth = auth_middleware.require_auth
    admin = require_role("admin")
    user = require_role("user")

    router.add("GET", "/rooms/list", handler.list_rooms, auth)
    router.add("GET", "/rooms/{roomId}/slots/list", handler.list_slots, auth)

    router.add("POST", "/rooms/create", handler.create_room, auth, admin)
    router.add("POST", "/rooms/{roomId}/schedule/create", handler.create_schedule, auth, admin)
    router.add("GET", "/bookings/list", handler.list_bookings, auth, admin)

    router.add("POST", "/bookings/create", handler.create_booking, auth, user)
    router.add("GET", "/bookings/my", handler.list_my_bookings, auth, user)
    router.add("POST", "/bookings/{bookingId}/cancel", handler.cancel_booking, auth, user)
    return router