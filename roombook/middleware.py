"""Bearer-token authentication and role checks for routes."""

from __future__ import annotations

from dataclasses import replace
from typing import Callable

from .errors import ERR_UNAUTHORIZED, AppError
from .web import HandlerFunc, Middleware, Request, Response, write_error

TokenVerifier = Callable[[str], "tuple[str, str]"]

_USER_ID_KEY = "user_id"
_ROLE_KEY = "role"
_BEARER_PREFIX = "Bearer "
_FORBIDDEN = "FORBIDDEN"


class AuthMiddleware:
    """Checks the bearer token of a request.

    ``verify_token`` takes the raw token and returns ``(user_id, role)``;
    any exception it raises means the token is rejected.
    """

    def __init__(self, verify_token: TokenVerifier) -> None:
        self._verify_token = verify_token

    def require_auth(self, handler: HandlerFunc) -> HandlerFunc:
        """Wrap ``handler`` so it only runs for requests with a valid token."""

        def wrapped(request: Request) -> Response:
            header = request.headers.get("authorization", "")
            if not header.startswith(_BEARER_PREFIX):
                return write_error(ERR_UNAUTHORIZED)
            token = header[len(_BEARER_PREFIX):]
            try:
                user_id, role = self._verify_token(token)
            except Exception:
                return write_error(ERR_UNAUTHORIZED)
            context = {**request.context, _USER_ID_KEY: user_id, _ROLE_KEY: role}
            return handler(replace(request, context=context))

        return wrapped


def require_role(role: str) -> Middleware:
    """Middleware that answers 403 unless the authenticated role equals ``role``."""

    def middleware(handler: HandlerFunc) -> HandlerFunc:
        def wrapped(request: Request) -> Response:
            if role_from_request(request) != role:
                return write_error(AppError(_FORBIDDEN, "forbidden", 403))
            return handler(request)

        return wrapped

    return middleware


def user_id_from_request(request: Request) -> str:
    """The authenticated user id, or an empty string."""
    value = request.context.get(_USER_ID_KEY)
    return value if isinstance(value, str) else ""


def role_from_request(request: Request) -> str:
    """The authenticated role, or an empty string."""
    value = request.context.get(_ROLE_KEY)
    return value if isinstance(value, str) else ""