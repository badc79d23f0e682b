"""A small request/response layer with a pattern router usable as a WSGI app."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from http import HTTPStatus
from typing import Any, Callable, Iterable
from urllib.parse import parse_qs

from .errors import ERR_INTERNAL, _unwrap_app_error

HandlerFunc = Callable[["Request"], "Response"]
Middleware = Callable[[HandlerFunc], HandlerFunc]


@dataclass
class Request:
    """An incoming HTTP request; header names are stored in lower case."""

    method: str = "GET"
    path: str = "/"
    headers: dict[str, str] = field(default_factory=dict)
    query: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    path_params: dict[str, str] = field(default_factory=dict)
    context: dict[str, Any] = field(default_factory=dict)
    remote_addr: str = ""

    def __post_init__(self) -> None:
        self.method = self.method.upper()
        self.headers = {name.lower(): value for name, value in self.headers.items()}
        if isinstance(self.body, str):
            self.body = self.body.encode("utf-8")


@dataclass
class Response:
    """An outgoing HTTP response."""

    status: int = 200
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)

    def json(self) -> Any:
        """Decode the body as JSON."""
        return json.loads(self.body)


_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _jsonable(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return _jsonable(to_dict())
    if isinstance(value, Enum):
        return _jsonable(value.value)
    if isinstance(value, dict):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


def write_json(status: int, payload: Any) -> Response:
    """Build a JSON response; objects with ``to_dict`` are serialised through it."""
    text = json.dumps(_jsonable(payload), separators=(",", ":"), ensure_ascii=False)
    for char, escaped in _HTML_ESCAPES.items():
        text = text.replace(char, escaped)
    return Response(
        status=status,
        body=(text + "\n").encode("utf-8"),
        headers={"Content-Type": "application/json"},
    )


def write_error(err: BaseException) -> Response:
    """Build the error envelope for ``err``; unknown errors become internal errors."""
    app_err = _unwrap_app_error(err) or ERR_INTERNAL
    payload = {"error": {"code": app_err.code, "message": app_err.message}}
    return write_json(app_err.http_status, payload)


@dataclass
class _Route:
    method: str
    regex: re.Pattern[str]
    names: list[str]
    handler: HandlerFunc


_PATTERN_PART = re.compile(r"(\{[^/{}]+\}|\*$)")


def _compile(pattern: str) -> tuple[re.Pattern[str], list[str]]:
    parts: list[str] = []
    names: list[str] = []
    for piece in _PATTERN_PART.split(pattern):
        if piece == "*":
            parts.append("(.*)")
            names.append("*")
        elif piece.startswith("{") and piece.endswith("}"):
            parts.append("([^/]+)")
            names.append(piece[1:-1])
        else:
            parts.append(re.escape(piece))
    return re.compile("".join(parts)), names


class Router:
    """Routes requests by method and path pattern (``{name}`` segments, trailing ``*``)."""

    def __init__(self, *middlewares: Middleware) -> None:
        self._middlewares = list(middlewares)
        self._routes: list[_Route] = []

    def add(self, method: str, pattern: str, handler: HandlerFunc, *args: Middleware) -> None:
        """Register ``handler``; extra middlewares wrap it, the first one outermost."""
        for middleware in reversed(args):
            handler = middleware(handler)
        regex, names = _compile(pattern)
        self._routes.append(_Route(method.upper(), regex, names, handler))

    def _route(self, request: Request) -> Response:
        allowed: set[str] = set()
        for route in self._routes:
            match = route.regex.fullmatch(request.path)
            if match is None:
                continue
            if route.method != request.method:
                allowed.add(route.method)
                continue
            params = {**request.path_params, **dict(zip(route.names, match.groups()))}
            return route.handler(replace(request, path_params=params))
        if allowed:
            return Response(status=405, headers={"Allow": ", ".join(sorted(allowed))})
        return Response(
            status=404,
            body=b"404 page not found\n",
            headers={"Content-Type": "text/plain; charset=utf-8"},
        )

    def dispatch(self, request: Request) -> Response:
        """Run the request through the router's middlewares and the matching route."""
        handler: HandlerFunc = self._route
        for middleware in reversed(self._middlewares):
            handler = middleware(handler)
        try:
            return handler(request)
        except Exception as exc:  # a failing handler must not take the server down
            return write_error(exc)

    def __call__(self, environ: dict[str, Any], start_response: Callable[..., Any]) -> Iterable[bytes]:
        response = self.dispatch(_request_from_environ(environ))
        try:
            phrase = HTTPStatus(response.status).phrase
        except ValueError:
            phrase = "Unknown"
        headers = list(response.headers.items())
        headers.append(("Content-Length", str(len(response.body))))
        start_response(f"{response.status} {phrase}", headers)
        return [response.body]


def _request_from_environ(environ: dict[str, Any]) -> Request:
    headers: dict[str, str] = {}
    for key, value in environ.items():
        if key.startswith("HTTP_"):
            headers[key[5:].replace("_", "-").lower()] = value
    for key in ("CONTENT_TYPE", "CONTENT_LENGTH"):
        if environ.get(key):
            headers[key.replace("_", "-").lower()] = environ[key]

    try:
        length = int(environ.get("CONTENT_LENGTH") or 0)
    except ValueError:
        length = 0
    stream = environ.get("wsgi.input")
    body = stream.read(length) if stream is not None and length > 0 else b""

    parsed = parse_qs(environ.get("QUERY_STRING", ""), keep_blank_values=True)
    query = {name: values[0] for name, values in parsed.items()}

    raw_path = environ.get("PATH_INFO", "") or "/"
    path = raw_path.encode("latin-1").decode("utf-8", "replace")

    remote = environ.get("REMOTE_ADDR", "")
    if headers.get("true-client-ip"):
        remote = headers["true-client-ip"]
    elif headers.get("x-real-ip"):
        remote = headers["x-real-ip"]
    elif headers.get("x-forwarded-for"):
        remote = headers["x-forwarded-for"].split(",")[0].strip()

    return Request(
        method=environ.get("REQUEST_METHOD", "GET"),
        path=path,
        headers=headers,
        query=query,
        body=body,
        remote_addr=remote,
    )