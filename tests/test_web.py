import io

import pytest

from roombook.errors import ERR_NOT_FOUND, AppError
from roombook.models import Pagination
from roombook.web import Request, Response, Router, write_error, write_json


def echo_params(request):
    return write_json(200, request.path_params)


def test_write_json_status_headers_and_body():
    response = write_json(201, {"a": 1})
    assert response.status == 201
    assert response.headers["Content-Type"] == "application/json"
    assert response.body == b'{"a":1}\n'


def test_write_json_uses_to_dict():
    response = write_json(200, {"pagination": Pagination(page=1, page_size=20, total=3)})
    assert response.json() == {"pagination": {"page": 1, "pageSize": 20, "total": 3}}


def test_write_json_escapes_html_but_round_trips():
    response = write_json(200, {"text": "<b>&"})
    assert b"\\u003c" in response.body
    assert b"<" not in response.body
    assert response.json() == {"text": "<b>&"}


def test_write_error_app_error():
    response = write_error(ERR_NOT_FOUND)
    assert response.status == 404
    assert response.json() == {"error": {"code": "NOT_FOUND", "message": "not found"}}


def test_write_error_unknown_becomes_internal():
    response = write_error(ValueError("boom"))
    assert response.status == 500
    assert response.json()["error"]["code"] == "INTERNAL_ERROR"


def test_write_error_follows_cause():
    with pytest.raises(RuntimeError) as info:
        try:
            raise AppError("ROOM_NOT_FOUND", "room not found", 404)
        except AppError as exc:
            raise RuntimeError("wrapped") from exc
    response = write_error(info.value)
    assert response.status == 404
    assert response.json()["error"]["code"] == "ROOM_NOT_FOUND"


def test_request_lowercases_headers_and_method():
    request = Request(method="post", headers={"Content-Type": "application/json"})
    assert request.method == "POST"
    assert request.headers["content-type"] == "application/json"


def test_router_extracts_path_params():
    router = Router()
    router.add("GET", "/rooms/{roomId}/slots/list", echo_params)
    response = router.dispatch(Request(method="GET", path="/rooms/room-1/slots/list"))
    assert response.status == 200
    assert response.json() == {"roomId": "room-1"}


def test_router_not_found():
    router = Router()
    router.add("GET", "/rooms/list", echo_params)
    assert router.dispatch(Request(path="/nothing")).status == 404


def test_router_method_not_allowed():
    router = Router()
    router.add("POST", "/rooms/create", echo_params)
    response = router.dispatch(Request(method="GET", path="/rooms/create"))
    assert response.status == 405
    assert response.headers["Allow"] == "POST"


def test_router_wildcard():
    router = Router()
    router.add("GET", "/swagger/*", echo_params)
    response = router.dispatch(Request(path="/swagger/index.html"))
    assert response.json() == {"*": "index.html"}


def test_route_middlewares_run_outer_first():
    calls = []

    def tag(name):
        def middleware(handler):
            def wrapped(request):
                calls.append(name)
                return handler(request)
            return wrapped
        return middleware

    router = Router()
    router.add("GET", "/x", lambda request: Response(status=204), tag("outer"), tag("inner"))
    response = router.dispatch(Request(path="/x"))
    assert response.status == 204
    assert calls == ["outer", "inner"]


def test_global_middleware_sees_unmatched_requests():
    seen = []

    def record(handler):
        def wrapped(request):
            seen.append(request.path)
            return handler(request)
        return wrapped

    router = Router(record)
    response = router.dispatch(Request(path="/missing"))
    assert response.status == 404
    assert seen == ["/missing"]


def test_raised_app_error_is_reported():
    def failing(request):
        raise AppError("SLOT_NOT_FOUND", "slot not found", 404)

    router = Router()
    router.add("GET", "/x", failing)
    response = router.dispatch(Request(path="/x"))
    assert response.status == 404
    assert response.json()["error"]["code"] == "SLOT_NOT_FOUND"


def test_unexpected_exception_gives_500():
    def failing(request):
        raise KeyError("boom")

    router = Router()
    router.add("GET", "/x", failing)
    assert router.dispatch(Request(path="/x")).status == 500


def test_wsgi_call():
    def echo(request):
        return write_json(
            200,
            {
                "page": request.query.get("page"),
                "auth": request.headers.get("authorization"),
                "body": request.body.decode(),
                "ip": request.remote_addr,
            },
        )

    router = Router()
    router.add("POST", "/echo", echo)
    body = b'{"x":1}'
    environ = {
        "REQUEST_METHOD": "POST",
        "PATH_INFO": "/echo",
        "QUERY_STRING": "page=2&page=3",
        "CONTENT_LENGTH": str(len(body)),
        "CONTENT_TYPE": "application/json",
        "HTTP_AUTHORIZATION": "Bearer token",
        "HTTP_X_FORWARDED_FOR": "203.0.113.5, 10.0.0.1",
        "REMOTE_ADDR": "127.0.0.1",
        "wsgi.input": io.BytesIO(body),
    }
    captured = {}

    def start_response(status, headers):
        captured["status"] = status
        captured["headers"] = dict(headers)

    chunks = router(environ, start_response)
    assert captured["status"] == "200 OK"
    assert captured["headers"]["Content-Length"] == str(len(b"".join(chunks)))
    assert Response(body=b"".join(chunks)).json() == {
        "page": "2",
        "auth": "Bearer token",
        "body": '{"x":1}',
        "ip": "203.0.113.5",
    }