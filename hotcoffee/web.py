"""HTTP plumbing: requests, responses, routing and the server glue."""

from __future__ import annotations

import json
import logging
import posixpath
from dataclasses import dataclass, field, replace
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler
from typing import Any, Callable
from urllib.parse import unquote, urlsplit

_log = logging.getLogger(__name__)

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}

JSON_CONTENT_TYPE = "application/json"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"


@dataclass
class Request:
    """An incoming HTTP request as the handlers see it."""

    method: str
    path: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    query: str = ""
    path_params: dict[str, str] = field(default_factory=dict)

    def header(self, name: str) -> str:
        """Return the value of header ``name`` (case-insensitive), or an empty string."""
        lowered = name.lower()
        return next(
            (value for key, value in self.headers.items() if key.lower() == lowered),
            "",
        )


@dataclass
class Response:
    """An HTTP response produced by a handler."""

    status: int
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)


Handler = Callable[[Request], Response]


def _encode_json(value: Any) -> bytes:
    text = json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    for char, escape in _HTML_ESCAPES.items():
        text = text.replace(char, escape)
    return (text + "\n").encode("utf-8")


def error_response(status: int, message: str) -> Response:
    """A JSON error body holding the status code and the message."""
    return Response(
        int(status),
        _encode_json({"code": int(status), "message": message}),
        {"Content-Type": JSON_CONTENT_TYPE},
    )


def json_response(status: int, body: bytes | None) -> Response:
    """A response that sends ``body`` as JSON."""
    return Response(int(status), body or b"", {"Content-Type": JSON_CONTENT_TYPE})


def not_found(request: Request) -> Response:
    """Answer any request with a JSON 404."""
    return error_response(HTTPStatus.NOT_FOUND, "Not found")


@dataclass(frozen=True)
class _Route:
    pattern: str
    segments: tuple[str, ...]
    prefix: bool
    handler: Handler

    @staticmethod
    def _wildcard(segment: str) -> str | None:
        if len(segment) > 2 and segment.startswith("{") and segment.endswith("}"):
            return segment[1:-1]
        return None

    def match(self, segments: list[str]) -> dict[str, str] | None:
        if self.prefix:
            if len(segments) <= len(self.segments):
                return None
        elif len(segments) != len(self.segments):
            return None
        params: dict[str, str] = {}
        for expected, actual in zip(self.segments, segments):
            name = self._wildcard(expected)
            if name is None:
                if expected != actual:
                    return None
            elif not actual:
                return None
            else:
                params[name] = actual
        return params

    @property
    def specificity(self) -> tuple[Any, ...]:
        literals = tuple(self._wildcard(segment) is None for segment in self.segments)
        if self.prefix:
            return (0, len(self.segments), literals)
        return (1, 0, literals)


def _parse_pattern(pattern: str, handler: Handler) -> _Route:
    if not pattern.startswith("/"):
        raise ValueError(f"invalid pattern {pattern!r}: must start with '/'")
    body = pattern[1:]
    prefix = pattern.endswith("/")
    if prefix:
        body = body[:-1]
    segments = tuple(body.split("/")) if body else ()
    for segment in segments:
        if not segment:
            raise ValueError(f"invalid pattern {pattern!r}: empty segment")
        name = _Route._wildcard(segment)
        if ("{" in segment or "}" in segment) and (name is None or not name.isidentifier()):
            raise ValueError(f"invalid pattern {pattern!r}: bad wildcard {segment!r}")
    return _Route(pattern, segments, prefix, handler)


def _clean_path(path: str) -> str:
    if not path:
        return "/"
    if not path.startswith("/"):
        path = "/" + path
    cleaned = posixpath.normpath(path)
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    if path.endswith("/") and cleaned != "/":
        cleaned += "/"
    return cleaned


class Router:
    """Dispatches requests to the handler of the most specific matching pattern.

    ``{name}`` matches one non-empty path segment; a pattern ending in ``/``
    matches every path below it.
    """

    def __init__(self) -> None:
        self._routes: list[_Route] = []

    def add(self, pattern: str, handler: Handler) -> None:
        """Register ``handler`` for ``pattern``."""
        route = _parse_pattern(pattern, handler)
        if any(
            existing.segments == route.segments and existing.prefix == route.prefix
            for existing in self._routes
        ):
            raise ValueError(f"pattern {pattern!r} conflicts with a registered pattern")
        self._routes.append(route)

    def dispatch(self, request: Request) -> Response:
        """Run the matching handler, redirecting unclean paths first."""
        cleaned = _clean_path(request.path)
        if cleaned != request.path:
            location = cleaned + (f"?{request.query}" if request.query else "")
            return Response(HTTPStatus.MOVED_PERMANENTLY, b"", {"Location": location})

        segments = [unquote(segment) for segment in request.path[1:].split("/")]
        best: tuple[_Route, dict[str, str]] | None = None
        for route in self._routes:
            params = route.match(segments)
            if params is None:
                continue
            if best is None or route.specificity > best[0].specificity:
                best = (route, params)
        if best is None:
            return not_found(request)
        route, params = best
        return route.handler(replace(request, path_params=params))


_BODYLESS = {HTTPStatus.NO_CONTENT, HTTPStatus.NOT_MODIFIED}


def make_request_handler(router: Router) -> type[BaseHTTPRequestHandler]:
    """Build a request-handler class for http.server that serves ``router``."""

    class _RequestHandler(BaseHTTPRequestHandler):
        protocol_version = "HTTP/1.1"

        def _send(self, response: Response) -> None:
            status = int(response.status)
            self.send_response(status)
            headers = dict(response.headers)
            body_allowed = status >= 200 and status not in _BODYLESS
            if body_allowed:
                if response.body and not any(
                    key.lower() == "content-type" for key in headers
                ):
                    headers["Content-Type"] = TEXT_CONTENT_TYPE
                headers["Content-Length"] = str(len(response.body))
            for key, value in headers.items():
                self.send_header(key, value)
            self.end_headers()
            if body_allowed and self.command != "HEAD" and response.body:
                self.wfile.write(response.body)

        def _serve(self) -> None:
            parts = urlsplit(self.path)
            try:
                length = int(self.headers.get("Content-Length") or 0)
            except ValueError:
                self.close_connection = True
                self._send(error_response(HTTPStatus.BAD_REQUEST, "Invalid Content-Length"))
                return
            body = self.rfile.read(length) if length > 0 else b""
            headers: dict[str, str] = {}
            for key, value in self.headers.items():
                headers.setdefault(key, value)
            request = Request(
                method=self.command,
                path=parts.path or "/",
                headers=headers,
                body=body,
                query=parts.query,
            )
            try:
                response = router.dispatch(request)
            except Exception:  # noqa: BLE001 - a failing handler must not kill the server
                _log.exception("handler failed for %s %s", self.command, self.path)
                self.close_connection = True
                response = error_response(
                    HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error"
                )
            self._send(response)

        do_GET = _serve
        do_HEAD = _serve
        do_POST = _serve
        do_PUT = _serve
        do_PATCH = _serve
        do_DELETE = _serve
        do_OPTIONS = _serve

        def log_message(self, format: str, *args: Any) -> None:
            """Send access-log lines to the module logger instead of stderr."""
            _log.debug("%s - %s", self.address_string(), format % args)

    return _RequestHandler