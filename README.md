# roombook

The HTTP side of a meeting-room booking service. Administrators create rooms
and give each room a weekly schedule; users list free slots, book them, list
their bookings and cancel them. This package supplies the JSON API around
that: a WSGI router, bearer-token and role checks, one handler per endpoint,
a uniform error envelope, an SQL migration runner, and a stand-in
conference-link service. It has no dependencies outside the standard library.

## Modules

| Module | Contents |
| --- | --- |
| `roombook.errors` | `AppError(code, message, http_status)`, predefined errors such as `ERR_ROOM_NOT_FOUND`, and `is_app_error(err, target)`, which compares by code and follows `raise ... from` chains. |
| `roombook.models` | `Role`, `BookingStatus`, and the `User`, `Room`, `Schedule`, `Slot`, `Booking` and `Pagination` dataclasses; `to_dict()` gives each one's JSON shape (camelCase keys, RFC 3339 times, optional fields left out when unset). |
| `roombook.web` | `Request`, `Response` (with `json()`), `write_json(status, payload)`, `write_error(err)`, and `Router`. |
| `roombook.middleware` | `AuthMiddleware(verify_token)` with `require_auth`, `require_role(role)`, `user_id_from_request`, `role_from_request`. |
| `roombook.handlers` | `Handler`, `decode_json(request, fields)`, `page_params(request)`. |
| `roombook.app` | `migration_files`, `apply_migrations_from_dir`, `apply_migrations`, `new_router(handler, auth_middleware)`. |
| `roombook.runner` | `run_main(load, build)`. |
| `roombook.conference_mock` | `env`, `env_float`, `handle_conference_request`, `serve`, `main`. |

## Routes

`new_router` builds a `Router` with these routes:

| Method and path | Access | Handler method |
| --- | --- | --- |
| `GET /` | public | `root` |
| `GET /_info` | public | `info` |
| `POST /dummyLogin` | public | `dummy_login` |
| `POST /register` | public | `register` |
| `POST /login` | public | `login` |
| `GET /rooms/list` | any token | `list_rooms` |
| `GET /rooms/{roomId}/slots/list?date=...` | any token | `list_slots` |
| `POST /rooms/create` | `admin` | `create_room` |
| `POST /rooms/{roomId}/schedule/create` | `admin` | `create_schedule` |
| `GET /bookings/list?page=&pageSize=` | `admin` | `list_bookings` |
| `POST /bookings/create` | `user` | `create_booking` |
| `GET /bookings/my` | `user` | `list_my_bookings` |
| `POST /bookings/{bookingId}/cancel` | `user` | `cancel_booking` |

`GET /` and `GET /_info` answer `{"status":"ok"}`. Every request gets a
request id in `request.context["request_id"]`, taken from `X-Request-Id` or
generated. An unknown path gets `404 page not found`; a known path with the
wrong method gets 405 with an `Allow` header.

Protected routes need `Authorization: Bearer token`. `AuthMiddleware` hands
the token to the `verify_token` callable it was given, which returns
`(user_id, role)` or raises; a missing header or a rejected token gives 401
`UNAUTHORIZED`, a wrong role gives 403 `FORBIDDEN`.

Request bodies must hold exactly one JSON object whose keys are among those
the endpoint accepts (matched case-insensitively); anything else gives 400
`INVALID_REQUEST`. For a schedule, `roomId` in the body must be present and
equal the one in the path. `page` defaults to 1 and `pageSize` to 20; a
non-integer value gives 400.

Every error is answered as

```json
{"error":{"code":"ROOM_NOT_FOUND","message":"room not found"}}
```

with the error's HTTP status. An exception that is not an `AppError` (and was
not raised from one) becomes 500 `INTERNAL_ERROR`.

## Supplying the services

`Handler(auth, rooms, schedules, slots, bookings)` calls whatever objects it is
given, with these methods:

- `auth.dummy_login(role)`, `auth.login(email, password)` → token string;
  `auth.register(email, password, role)` → `User`
- `rooms.list()` → list of `Room`; `rooms.create(name, description, capacity)` → `Room`
- `schedules.create(room_id, schedule)` → `Schedule`
- `slots.list_available_by_room_and_date(room_id, date)` → list of `Slot` (or `None`, sent as `[]`)
- `bookings.create(slot_id, user_id, create_conference_link)` → `Booking`;
  `bookings.list_all(page, page_size)` → `(bookings, Pagination)`;
  `bookings.list_future_by_user(user_id)` → list of `Booking`;
  `bookings.cancel(booking_id, user_id)` → `Booking`

To report a failure to the client, these methods raise an `AppError`.

```python
from wsgiref.simple_server import make_server

from roombook.app import new_router
from roombook.handlers import Handler
from roombook.middleware import AuthMiddleware

handler = Handler(auth=my_auth, rooms=my_rooms, schedules=my_schedules,
                  slots=my_slots, bookings=my_bookings)
router = new_router(handler, AuthMiddleware(my_verify_token))
make_server("", 8080, router).serve_forever()
```

`Router.dispatch(Request(...))` runs a request without a server, which is
handy in tests.

## Migrations

`apply_migrations_from_dir(db, directory)` creates a `schema_migrations` table
if needed, then takes every `*.up.sql` file of the directory in name order.
Each file runs in its own transaction; its name is recorded first, and a file
already recorded is skipped, so running again applies nothing twice.
`apply_migrations(db)` does the same for `db/migrations`. Failures raise
`RuntimeError` naming the step and the file.

`db` needs `execute(sql, *args)` returning the number of affected rows and
`begin()` returning a transaction with `execute`, `commit` and `rollback`.

## Start-up

`run_main(load, build)` calls `load()` for the configuration, `build(config)`
for the application and then its `run()`; a failure in either step is raised
as `RuntimeError("app init failed: ...")` or `RuntimeError("app run failed: ...")`.

## Conference-link mock

```
roombook-conference-mock
```

serves `POST /conference-links`: a body `{"bookingId": "b1"}` is answered with
`{"url":"https://meet.mock.local/b1"}`, a body that is not a JSON object with
400 `{"error":"invalid json"}`. Settings come from the environment:

- `CONFERENCE_MOCK_PORT` — port to listen on, default `8090`;
- `CONFERENCE_MOCK_FAIL_RATE` — share of requests, from 0 to 1, answered with
  503 `{"error":"mock failure"}`, default `0`.

`handle_conference_request(body, fail_rate, rng)` gives the same answers
without a server.

## What this package does not do

- It stores nothing: there are no repositories or database driver. The
  migration runner works on any `db` object of the shape above.
- It has no auth, room, schedule, slot or booking services: no token issuing
  or verification, no password hashing, no slot generation from schedules,
  no conference-link client. The caller supplies them to `Handler` and
  `AuthMiddleware`.
- It reads no configuration and has no command that starts the booking API;
  the only command is the conference-link mock.