"""HTTP handlers for orders and the sales reports."""

from __future__ import annotations

import functools
import json
import logging
from http import HTTPStatus
from typing import Any, Callable

from hotcoffee.domain import ServiceError
from hotcoffee.logger import Loggers
from hotcoffee.orders import Application
from hotcoffee.web import Request, Response, error_response, json_response

_log = logging.getLogger(__name__)

_Method = Callable[["OrderHandlers", Request], Response]

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _wire_number(value: float) -> float | int:
    """Render integral floats without a fractional part."""
    if value.is_integer() and abs(value) < 1e21:
        return int(value)
    return value


def _encode(value: Any) -> bytes:
    text = json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    for char, escape in _HTML_ESCAPES.items():
        text = text.replace(char, escape)
    return (text + "\n").encode("utf-8")


def _json_only(method: _Method) -> _Method:
    """Refuse requests whose Content-Type is not exactly application/json."""

    @functools.wraps(method)
    def wrapper(self: OrderHandlers, request: Request) -> Response:
        if request.header("Content-Type") != "application/json":
            return error_response(
                HTTPStatus.UNSUPPORTED_MEDIA_TYPE, "Content-Type must be application/json"
            )
        return method(self, request)

    return wrapper


def _not_allowed() -> Response:
    return error_response(HTTPStatus.METHOD_NOT_ALLOWED, "Method not allowed")


class OrderHandlers:
    """Routes order and report requests to the application service."""

    def __init__(self, service: Application, loggers: Loggers | None = None) -> None:
        self.service = service
        self._info = loggers.info if loggers is not None else _log
        self._error = loggers.error if loggers is not None else _log

    # Orders

    def orders(self, request: Request) -> Response:
        """GET lists the orders, POST adds one."""
        if request.method == "GET":
            return self._get_all_orders(request)
        if request.method == "POST":
            return self._add_order(request)
        return _not_allowed()

    def order_by_id(self, request: Request) -> Response:
        """GET, PUT and DELETE one order."""
        if request.method == "GET":
            return self._get_order_by_id(request)
        if request.method == "PUT":
            return self._update_order_by_id(request)
        if request.method == "DELETE":
            return self._delete_order_by_id(request)
        return _not_allowed()

    def close_order(self, request: Request) -> Response:
        """POST closes one order."""
        if request.method == "POST":
            return self._close_order_by_id(request)
        return _not_allowed()

    @_json_only
    def _get_all_orders(self, request: Request) -> Response:
        try:
            data = self.service.get_all_orders()
        except ServiceError as err:
            return error_response(err.status, err.message)
        return json_response(HTTPStatus.OK, data)

    @_json_only
    def _add_order(self, request: Request) -> Response:
        try:
            status = self.service.add_order(request.body)
        except ServiceError as err:
            return error_response(err.status, err.message)
        return json_response(status, None)

    @_json_only
    def _get_order_by_id(self, request: Request) -> Response:
        order_id = request.path_params.get("id", "")
        try:
            data = self.service.get_order(order_id)
        except ServiceError as err:
            return error_response(err.status, err.message)
        return json_response(HTTPStatus.OK, data)

    @_json_only
    def _update_order_by_id(self, request: Request) -> Response:
        order_id = request.path_params.get("id", "")
        try:
            status = self.service.update_order(order_id, request.body)
        except ServiceError as err:
            return error_response(err.status, err.message)
        return json_response(status, None)

    @_json_only
    def _delete_order_by_id(self, request: Request) -> Response:
        order_id = request.path_params.get("id", "")
        try:
            status = self.service.delete_order(order_id)
        except ServiceError as err:
            return error_response(err.status, err.message)
        return json_response(status, None)

    @_json_only
    def _close_order_by_id(self, request: Request) -> Response:
        order_id = request.path_params.get("id", "")
        try:
            status = self.service.close_order(order_id)
        except ServiceError as err:
            return error_response(err.status, err.message)
        return json_response(status, None)

    # Reports

    def total_sales(self, request: Request) -> Response:
        """Report the total value of completed orders."""
        self._info.info("GetTotalSalesHandler - Received request to get total sales.")
        try:
            total = self.service.total_sales()
        except ServiceError as err:
            self._error.error("Error getting total sales: %s", err.message)
            return error_response(err.status, err.message)
        body = _encode({"total_sales": _wire_number(float(total))})
        self._info.info("GetTotalSalesHandler - Successfully responded with total sales.")
        return json_response(HTTPStatus.OK, body)

    def popular_items(self, request: Request) -> Response:
        """Report units sold per product across completed orders."""
        self._info.info("GetPopularItemsHandler - Received request to get popular items.")
        try:
            items = self.service.popular_items()
        except ServiceError as err:
            self._error.error("Error getting popular items: %s", err.message)
            return error_response(err.status, err.message)
        body = _encode([item.to_dict() for item in items])
        self._info.info("GetPopularItemsHandler - Successfully responded with popular items.")
        return json_response(HTTPStatus.OK, body)