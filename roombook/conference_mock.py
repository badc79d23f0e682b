"""A stand-in conference service that hands out meeting links for bookings."""

from __future__ import annotations

import json
import logging
import os
import random
from http import HTTPStatus
from typing import Any, Callable, Iterable
from wsgiref.simple_server import make_server

from .web import Response, write_json

_LOG = logging.getLogger(__name__)
_JSON_WHITESPACE = " \t\n\r"


def env(key: str, fallback: str) -> str:
    """The environment variable ``key``, or ``fallback`` when unset or empty."""
    value = os.environ.get(key, "")
    return value if value else fallback


def env_float(key: str, fallback: float) -> float:
    """The environment variable ``key`` as a float, or ``fallback`` when unset or invalid."""
    value = os.environ.get(key, "")
    if value and value == value.strip() and "_" not in value:
        try:
            return float(value)
        except ValueError:
            pass
    return fallback


def _plain_error(message: str, status: int) -> Response:
    return Response(
        status=status,
        body=(message + "\n").encode("utf-8"),
        headers={
            "Content-Type": "text/plain; charset=utf-8",
            "X-Content-Type-Options": "nosniff",
        },
    )


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON literal {name}")


def _booking_id(body: bytes) -> str:
    """Read ``bookingId`` from the first JSON value of ``body``; raise ValueError if unusable."""
    text = body.decode("utf-8", errors="replace")
    start = len(text) - len(text.lstrip(_JSON_WHITESPACE))
    value, _ = json.JSONDecoder(parse_constant=_reject_constant).raw_decode(text, start)
    if value is None:
        return ""
    if not isinstance(value, dict):
        raise ValueError("request must be a JSON object")
    booking_id = ""
    for key, item in value.items():
        if key.casefold() != "bookingid" or item is None:
            continue
        if not isinstance(item, str):
            raise ValueError("bookingId must be a string")
        booking_id = item
    return booking_id


def handle_conference_request(
    body: bytes, fail_rate: float, rng: Callable[[], float] | None = None
) -> Response:
    """Answer one link request; fails with 503 with probability ``fail_rate``."""
    draw = (rng or random.random)()
    if draw < fail_rate:
        return _plain_error('{"error":"mock failure"}', 503)
    try:
        booking_id = _booking_id(body)
    except (ValueError, RecursionError):
        return _plain_error('{"error":"invalid json"}', 400)
    return write_json(200, {"url": f"https://meet.mock.local/{booking_id}"})


def _make_app(fail_rate: float, rng: Callable[[], float] | None = None) -> Callable[..., Iterable[bytes]]:
    def app(environ: dict[str, Any], start_response: Callable[..., Any]) -> Iterable[bytes]:
        if environ.get("PATH_INFO", "") != "/conference-links":
            response = _plain_error("404 page not found", 404)
        else:
            try:
                length = int(environ.get("CONTENT_LENGTH") or 0)
            except ValueError:
                length = 0
            stream = environ.get("wsgi.input")
            body = stream.read(length) if stream is not None and length > 0 else b""
            response = handle_conference_request(body, fail_rate, rng)
        phrase = HTTPStatus(response.status).phrase
        headers = list(response.headers.items())
        headers.append(("Content-Length", str(len(response.body))))
        start_response(f"{response.status} {phrase}", headers)
        return [response.body]

    return app


def serve(port: str, fail_rate: float) -> None:
    """Serve ``/conference-links`` on ``port`` until interrupted."""
    with make_server("", int(port), _make_app(fail_rate)) as server:
        _LOG.info("conference mock listening on :%s", port)
        server.serve_forever()


def main(argv: list[str] | None = None) -> None:
    """Start the mock with settings from the environment."""
    logging.basicConfig(level=logging.INFO)
    port = env("CONFERENCE_MOCK_PORT", "8090")
    fail_rate = env_float("CONFERENCE_MOCK_FAIL_RATE", 0)
    serve(port, fail_rate)


if __name__ == "__main__":
    main()