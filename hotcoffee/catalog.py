"""Business rules for the menu, the inventory and the sales reports."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from http import HTTPStatus
from typing import Iterator

from hotcoffee.domain import InventoryItem, MenuItem, ProductSales, ServiceError
from hotcoffee.jsondb import JsonDB

_log = logging.getLogger(__name__)

_STORAGE_ERRORS = (OSError, ValueError, LookupError)


@contextmanager
def _reported_as(status: int) -> Iterator[None]:
    """Turn storage and decoding failures into a ServiceError with ``status``."""
    try:
        yield
    except ServiceError:
        raise
    except _STORAGE_ERRORS as err:
        raise ServiceError(status, str(err)) from err


def _is_empty(data: bytes) -> bool:
    """True when a stored collection holds nothing beyond ``[]``."""
    return len(data) <= 2


def validate_inventory_item(item: InventoryItem) -> None:
    """Raise ValueError naming the first required field that is missing or invalid."""
    if not item.ingredient_id:
        raise ValueError("ingredient ID is required")
    if not item.name:
        raise ValueError("name is required")
    if item.quantity <= 0:
        raise ValueError("quantity must be greater than zero")
    if not item.unit:
        raise ValueError("unit is required")


def check_menu_item_fields(item: MenuItem) -> None:
    """Raise ValueError if the menu item or one of its ingredients is incomplete."""
    if not item.id:
        raise ValueError("menu item ID is required")
    if not item.name:
        raise ValueError("menu item name is required")
    if item.price <= 0:
        raise ValueError(f"menu item {item.id} must have a positive price")
    for ingredient in item.ingredients:
        if not ingredient.ingredient_id:
            raise ValueError(f"ingredient ID is required for menu item {item.id}")
        if ingredient.quantity <= 0:
            raise ValueError(
                f"ingredient {ingredient.ingredient_id} in menu item {item.id} "
                "must have a positive quantity"
            )


class CatalogService:
    """Inventory, menu and report operations over a repository.

    Operations that change data return the HTTP status to answer with;
    operations that read data return the JSON bytes to send. Failures raise
    ServiceError carrying their status.
    """

    def __init__(self, repository: JsonDB) -> None:
        self.repository = repository

    # Inventory

    def _load_inventory(self) -> list[InventoryItem]:
        with _reported_as(HTTPStatus.INTERNAL_SERVER_ERROR):
            data = self.repository.read_inventory_items()
            return self.repository.parse_inventory_items(data)

    def _store_inventory(self, items: list[InventoryItem]) -> None:
        with _reported_as(HTTPStatus.INTERNAL_SERVER_ERROR):
            self.repository.write_inventory_items(self.repository.dump_inventory_items(items))

    def _parse_valid_inventory_item(self, data: bytes | str) -> InventoryItem:
        try:
            item = self.repository.parse_inventory_item(data)
        except ValueError as err:
            raise ServiceError(HTTPStatus.BAD_REQUEST, "invalid inventory item data") from err
        try:
            validate_inventory_item(item)
        except ValueError as err:
            raise ServiceError(HTTPStatus.BAD_REQUEST, str(err)) from err
        return item

    def add_inventory_item(self, data: bytes | str) -> int:
        """Store a new inventory item unless its ID or name is already taken."""
        item = self._parse_valid_inventory_item(data)
        items = self._load_inventory()
        for existing in items:
            if existing.ingredient_id == item.ingredient_id:
                raise ServiceError(
                    HTTPStatus.CONFLICT,
                    f"inventory item with Ingredient ID {item.ingredient_id} already exists",
                )
            if existing.name == item.name:
                raise ServiceError(
                    HTTPStatus.CONFLICT,
                    f"inventory item with name {item.name} already exists",
                )
        items.append(item)
        _log.info("Validated and ready for storage: %s", item)
        self._store_inventory(items)
        return HTTPStatus.OK

    def get_all_inventory_items(self) -> bytes:
        """Return the stored inventory as JSON."""
        with _reported_as(HTTPStatus.NO_CONTENT):
            data = self.repository.read_inventory_items()
        if _is_empty(data):
            raise ServiceError(HTTPStatus.NOT_FOUND, "no inventory items found")
        return data

    def get_inventory_item(self, item_id: str) -> bytes:
        """Return one inventory item as JSON."""
        for item in self._load_inventory():
            if item.ingredient_id == item_id:
                with _reported_as(HTTPStatus.INTERNAL_SERVER_ERROR):
                    return self.repository.dump_inventory_item(item)
        raise ServiceError(
            HTTPStatus.NOT_FOUND, f"inventory item with Ingredient ID {item_id} not found"
        )

    def update_inventory_item(self, item_id: str, data: bytes | str) -> int:
        """Replace the inventory item with ``item_id``; an unknown ID changes nothing."""
        replacement = self._parse_valid_inventory_item(data)
        items = self._load_inventory()
        for index, item in enumerate(items):
            if item.ingredient_id == item_id:
                items[index] = replacement
                break
        self._store_inventory(items)
        return HTTPStatus.OK

    def delete_inventory_item(self, item_id: str) -> int:
        """Remove the inventory item with ``item_id`` if there is one."""
        with _reported_as(HTTPStatus.INTERNAL_SERVER_ERROR):
            data = self.repository.read_inventory_items()
        if _is_empty(data):
            raise ServiceError(HTTPStatus.BAD_REQUEST, "Data is empty")
        with _reported_as(HTTPStatus.INTERNAL_SERVER_ERROR):
            items = self.repository.parse_inventory_items(data)
        for index, item in enumerate(items):
            if item.ingredient_id == item_id:
                del items[index]
                break
        self._store_inventory(items)
        return HTTPStatus.NO_CONTENT

    # Menu

    def _load_menu(self) -> list[MenuItem]:
        with _reported_as(HTTPStatus.INTERNAL_SERVER_ERROR):
            data = self.repository.read_menu_items()
            return self.repository.parse_menu_items(data)

    def _store_menu(self, items: list[MenuItem]) -> None:
        with _reported_as(HTTPStatus.INTERNAL_SERVER_ERROR):
            self.repository.write_menu_items(self.repository.dump_menu_items(items))

    @staticmethod
    def _check_menu_item(item: MenuItem) -> None:
        try:
            check_menu_item_fields(item)
        except ValueError as err:
            raise ServiceError(HTTPStatus.BAD_REQUEST, str(err)) from err

    def add_menu_item(self, data: bytes | str) -> int:
        """Store a new menu item unless its ID or name is already taken."""
        try:
            item = self.repository.parse_menu_item(data)
        except ValueError as err:
            raise ServiceError(HTTPStatus.BAD_REQUEST, "invalid menu data") from err
        self._check_menu_item(item)
        items = self._load_menu()
        for existing in items:
            if existing.id == item.id:
                raise ServiceError(
                    HTTPStatus.BAD_REQUEST, f"menu item with ID {item.id} already exists"
                )
            if existing.name == item.name:
                raise ServiceError(
                    HTTPStatus.BAD_REQUEST, f"menu item with name {item.name} already exists"
                )
        items.append(item)
        self._store_menu(items)
        return HTTPStatus.OK

    def get_all_menu_items(self) -> bytes:
        """Return the stored menu as JSON."""
        with _reported_as(HTTPStatus.NO_CONTENT):
            data = self.repository.read_menu_items()
        if _is_empty(data):
            raise ServiceError(HTTPStatus.NOT_FOUND, "no menu items found")
        return data

    def get_menu_item(self, item_id: str) -> bytes:
        """Return one menu item as JSON."""
        for item in self._load_menu():
            if item.id == item_id:
                with _reported_as(HTTPStatus.INTERNAL_SERVER_ERROR):
                    return self.repository.dump_menu_item(item)
        raise ServiceError(HTTPStatus.NOT_FOUND, f"menu item with ID {item_id} not found")

    def update_menu_item(self, item_id: str, data: bytes | str) -> int:
        """Replace the menu item with ``item_id``; an unknown ID changes nothing."""
        with _reported_as(HTTPStatus.INTERNAL_SERVER_ERROR):
            replacement = self.repository.parse_menu_item(data)
        self._check_menu_item(replacement)
        items = self._load_menu()
        for index, item in enumerate(items):
            if item.id == item_id:
                items[index] = replacement
                break
        self._store_menu(items)
        return HTTPStatus.OK

    def delete_menu_item(self, item_id: str) -> int:
        """Remove the menu item with ``item_id`` if there is one."""
        with _reported_as(HTTPStatus.INTERNAL_SERVER_ERROR):
            data = self.repository.read_menu_items()
        if _is_empty(data):
            raise ServiceError(HTTPStatus.BAD_REQUEST, "Data is empty")
        with _reported_as(HTTPStatus.INTERNAL_SERVER_ERROR):
            items = self.repository.parse_menu_items(data)
        for index, item in enumerate(items):
            if item.id == item_id:
                del items[index]
                break
        self._store_menu(items)
        return HTTPStatus.NO_CONTENT

    # Reports

    def total_sales(self) -> float:
        """Total value of completed orders."""
        try:
            return self.repository.total_sales()
        except _STORAGE_ERRORS as err:
            raise ServiceError(
                HTTPStatus.INTERNAL_SERVER_ERROR, f"error fetching total sales: {err}"
            ) from err

    def popular_items(self) -> list[ProductSales]:
        """Units sold per product across completed orders."""
        try:
            return self.repository.popular_items()
        except _STORAGE_ERRORS as err:
            raise ServiceError(
                HTTPStatus.INTERNAL_SERVER_ERROR, f"error fetching popular items: {err}"
            ) from err