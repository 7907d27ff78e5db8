"""HTTP handlers for the inventory and the menu."""

from __future__ import annotations

import functools
import logging
from http import HTTPStatus
from typing import Callable

from hotcoffee.catalog import CatalogService
from hotcoffee.domain import ServiceError
from hotcoffee.logger import Loggers
from hotcoffee.web import (
    TEXT_CONTENT_TYPE,
    Request,
    Response,
    error_response,
    json_response,
)

_log = logging.getLogger(__name__)

_Method = Callable[["CatalogHandlers", Request], Response]


def _json_only(method: _Method) -> _Method:
    """Refuse requests whose Content-Type is not exactly application/json."""

    @functools.wraps(method)
    def wrapper(self: CatalogHandlers, request: Request) -> Response:
        if request.header("Content-Type") != "application/json":
            return error_response(
                HTTPStatus.UNSUPPORTED_MEDIA_TYPE, "Content-Type must be application/json"
            )
        return method(self, request)

    return wrapper


def _text(status: int, message: str) -> Response:
    return Response(int(status), message.encode("utf-8"), {"Content-Type": TEXT_CONTENT_TYPE})


class CatalogHandlers:
    """Routes inventory and menu requests to the catalog service."""

    def __init__(self, service: CatalogService, loggers: Loggers | None = None) -> None:
        self.service = service
        self._info = loggers.info if loggers is not None else _log
        self._error = loggers.error if loggers is not None else _log

    def _failure(self, err: ServiceError, prefix: str = "") -> Response:
        self._error.error("%s%s", prefix, err.message)
        return error_response(err.status, err.message)

    def _not_allowed(self, name: str, request: Request) -> Response:
        self._error.error("%s - Method %s not allowed", name, request.method)
        return error_response(HTTPStatus.METHOD_NOT_ALLOWED, "Method not allowed")

    # Inventory

    def inventory(self, request: Request) -> Response:
        """GET lists the inventory, POST adds an item."""
        self._info.info("InventoryHandler - %s request received", request.method)
        if request.method == "GET":
            return self._get_all_inventory(request)
        if request.method == "POST":
            return self._add_inventory(request)
        return self._not_allowed("InventoryHandler", request)

    def inventory_by_id(self, request: Request) -> Response:
        """GET, PUT and DELETE one inventory item."""
        self._info.info("InventoryByIDHandler - %s request received", request.method)
        if request.method == "GET":
            return self._get_inventory_by_id(request)
        if request.method == "PUT":
            return self._update_inventory_by_id(request)
        if request.method == "DELETE":
            return self._delete_inventory_by_id(request)
        return self._not_allowed("InventoryByIDHandler", request)

    @_json_only
    def _get_all_inventory(self, request: Request) -> Response:
        self._info.info("getAllInventory - Fetching all inventory items")
        try:
            data = self.service.get_all_inventory_items()
        except ServiceError as err:
            return self._failure(err)
        return json_response(HTTPStatus.OK, data)

    @_json_only
    def _add_inventory(self, request: Request) -> Response:
        self._info.info("addInventory - Adding new inventory item")
        try:
            self.service.add_inventory_item(request.body)
        except ServiceError as err:
            return self._failure(err, "Service error: ")
        self._info.info("addInventory - Inventory item added successfully")
        return Response(HTTPStatus.CREATED)

    @_json_only
    def _get_inventory_by_id(self, request: Request) -> Response:
        item_id = request.path_params.get("id", "")
        self._info.info("getInventoryByID - Fetching inventory item with ID: %s", item_id)
        try:
            data = self.service.get_inventory_item(item_id)
        except ServiceError as err:
            return self._failure(err)
        return json_response(HTTPStatus.OK, data)

    @_json_only
    def _update_inventory_by_id(self, request: Request) -> Response:
        item_id = request.path_params.get("id", "")
        self._info.info("updateInventoryByID - Updating inventory item with ID: %s", item_id)
        try:
            self.service.update_inventory_item(item_id, request.body)
        except ServiceError as err:
            return self._failure(err)
        self._info.info(
            "updateInventoryByID - Inventory item with ID %s updated successfully", item_id
        )
        return _text(HTTPStatus.OK, "Inventory item updated successfully")

    @_json_only
    def _delete_inventory_by_id(self, request: Request) -> Response:
        item_id = request.path_params.get("id", "")
        self._info.info("deleteInventoryByID - Deleting inventory item with ID: %s", item_id)
        try:
            self.service.delete_inventory_item(item_id)
        except ServiceError as err:
            return self._failure(err)
        self._info.info(
            "deleteInventoryByID - Inventory item with ID %s deleted successfully", item_id
        )
        return _text(HTTPStatus.OK, "Inventory item deleted successfully")

    # Menu

    def menu(self, request: Request) -> Response:
        """GET lists the menu, POST adds an item."""
        self._info.info("MenuHandler - %s request received", request.method)
        if request.method == "GET":
            return self._get_all_menu(request)
        if request.method == "POST":
            return self._add_menu(request)
        return self._not_allowed("MenuHandler", request)

    def menu_by_id(self, request: Request) -> Response:
        """GET, PUT and DELETE one menu item."""
        self._info.info("MenuByIDHandler - %s request received", request.method)
        if request.method == "GET":
            return self._get_menu_by_id(request)
        if request.method == "PUT":
            return self._update_menu_by_id(request)
        if request.method == "DELETE":
            return self._delete_menu_by_id(request)
        return self._not_allowed("MenuByIDHandler", request)

    @_json_only
    def _get_all_menu(self, request: Request) -> Response:
        self._info.info("getAllMenu - Fetching all menu items")
        try:
            data = self.service.get_all_menu_items()
        except ServiceError as err:
            return self._failure(err)
        return json_response(HTTPStatus.OK, data)

    @_json_only
    def _add_menu(self, request: Request) -> Response:
        self._info.info("addMenu - Adding new menu item")
        try:
            self.service.add_menu_item(request.body)
        except ServiceError as err:
            return self._failure(err, "Service error: ")
        self._info.info("addMenu - Menu item added successfully")
        return Response(HTTPStatus.CREATED)

    @_json_only
    def _get_menu_by_id(self, request: Request) -> Response:
        item_id = request.path_params.get("id", "")
        self._info.info("getMenuByID - Fetching menu item with ID: %s", item_id)
        try:
            data = self.service.get_menu_item(item_id)
        except ServiceError as err:
            return self._failure(err)
        return json_response(HTTPStatus.OK, data)

    @_json_only
    def _update_menu_by_id(self, request: Request) -> Response:
        item_id = request.path_params.get("id", "")
        self._info.info("updateMenuByID - Updating menu item with ID: %s", item_id)
        try:
            status = self.service.update_menu_item(item_id, request.body)
        except ServiceError as err:
            return self._failure(err)
        self._info.info("updateMenuByID - Menu item with ID %s updated successfully", item_id)
        return Response(int(status))

    @_json_only
    def _delete_menu_by_id(self, request: Request) -> Response:
        item_id = request.path_params.get("id", "")
        self._info.info("deleteMenuByID - Deleting menu item with ID: %s", item_id)
        try:
            status = self.service.delete_menu_item(item_id)
        except ServiceError as err:
            return self._failure(err)
        self._info.info("deleteMenuByID - Menu item with ID %s deleted successfully", item_id)
        return Response(int(status))