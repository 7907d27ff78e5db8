"""Order rules: taking, changing, removing and closing orders against stock."""

from __future__ import annotations

import random
import time
from contextlib import contextmanager
from datetime import datetime
from http import HTTPStatus
from typing import Iterable, Iterator

from hotcoffee.catalog import CatalogService
from hotcoffee.domain import (
    InventoryItem,
    MenuItem,
    MenuItemIngredient,
    Order,
    OrderStatus,
    ServiceError,
)

_STORAGE_ERRORS = (OSError, ValueError, LookupError)


@contextmanager
def _failing_with(status: int, message: str | None = None) -> Iterator[None]:
    """Turn storage and decoding failures into a ServiceError.

    The error text is ``message`` when given, otherwise the original error's.
    """
    try:
        yield
    except ServiceError:
        raise
    except _STORAGE_ERRORS as err:
        raise ServiceError(status, message if message is not None else str(err)) from err


def _status_text(status: OrderStatus | str) -> str:
    return status.value if isinstance(status, OrderStatus) else status


def find_menu_item(product_id: str, menu_items: Iterable[MenuItem]) -> MenuItem | None:
    """Return the menu item with ``product_id``, or None."""
    return next((item for item in menu_items if item.id == product_id), None)


def ingredients_available(
    quantity: int,
    ingredients: Iterable[MenuItemIngredient],
    inventory_items: Iterable[InventoryItem],
) -> bool:
    """False if any stocked ingredient of the item holds less than ``quantity``."""
    stock = list(inventory_items)
    return not any(
        ingredient.ingredient_id == stocked.ingredient_id
        and stocked.quantity < float(quantity)
        for ingredient in ingredients
        for stocked in stock
    )


def has_ingredient(
    ingredients: Iterable[MenuItemIngredient], inventory_items: Iterable[InventoryItem]
) -> bool:
    """True if at least one of the ingredients is kept in the inventory."""
    stocked_ids = {stocked.ingredient_id for stocked in inventory_items}
    return any(ingredient.ingredient_id in stocked_ids for ingredient in ingredients)


def decrement_inventory(
    ingredient: MenuItemIngredient,
    order_quantity: int,
    inventory_items: Iterable[InventoryItem],
) -> None:
    """Take what ``order_quantity`` units need of ``ingredient`` out of stock.

    Raises ValueError when too little is in stock and LookupError when the
    ingredient is not stocked at all.
    """
    required = ingredient.quantity * float(order_quantity)
    for stocked in inventory_items:
        if stocked.ingredient_id == ingredient.ingredient_id:
            if stocked.quantity < required:
                raise ValueError(
                    f"insufficient quantity for ingredient {ingredient.ingredient_id}"
                )
            stocked.quantity -= required
            return
    raise LookupError(f"ingredient {ingredient.ingredient_id} not found in inventory")


def generate_order_id() -> str:
    """Build an order ID from the current time and a random number."""
    identifier = f"ORD-{time.time_ns()}-{random.randrange(10000):04d}"
    return identifier.replace("/", "")


def check_order_fields(order: Order) -> None:
    """Raise ValueError naming the first field of the order that is missing or invalid."""
    if not order.id:
        raise ValueError("order ID is required")
    if not order.customer_name:
        raise ValueError("customer name is required")
    if order.status != OrderStatus.PENDING:
        raise ValueError(f"invalid order status: {_status_text(order.status)}")
    if not order.items:
        raise ValueError("order must contain at least one item")
    for item in order.items:
        if not item.product_id:
            raise ValueError("product ID is required for each item")
        if item.quantity <= 0:
            raise ValueError(
                f"quantity for product {item.product_id} must be greater than zero"
            )


class Application(CatalogService):
    """All shop operations: catalog and reports together with orders.

    Operations that change data return the HTTP status to answer with;
    operations that read data return the JSON bytes to send. Failures raise
    ServiceError carrying their status.
    """

    def _parse_new_order(self, data: bytes | str, order_id: str) -> Order:
        try:
            order = self.repository.parse_order(data)
        except ValueError as err:
            raise ServiceError(HTTPStatus.BAD_REQUEST, "invalid order data") from err
        order.id = order_id
        order.status = OrderStatus.PENDING
        order.created_at = datetime.now().astimezone()
        try:
            check_order_fields(order)
        except ValueError as err:
            raise ServiceError(HTTPStatus.BAD_REQUEST, str(err)) from err
        return order

    def _check_stock(self, order: Order) -> None:
        with _failing_with(HTTPStatus.INTERNAL_SERVER_ERROR, "error getting menu items"):
            menu_data = self.repository.read_menu_items()
        with _failing_with(HTTPStatus.INTERNAL_SERVER_ERROR, "error unmarshalling menu items"):
            menu_items = self.repository.parse_menu_items(menu_data)
        with _failing_with(HTTPStatus.INTERNAL_SERVER_ERROR, "error getting inventory items"):
            inventory_data = self.repository.read_inventory_items()
        with _failing_with(
            HTTPStatus.INTERNAL_SERVER_ERROR, "error unmarshalling inventory items"
        ):
            inventory_items = self.repository.parse_inventory_items(inventory_data)

        for item in order.items:
            menu_item = find_menu_item(item.product_id, menu_items)
            if menu_item is None:
                raise ServiceError(
                    HTTPStatus.BAD_REQUEST, f"menu item {item.product_id} not found"
                )
            if not has_ingredient(menu_item.ingredients, inventory_items):
                raise ServiceError(
                    HTTPStatus.CONFLICT,
                    f"ingredient for menu item {menu_item.id} not found in inventory",
                )
            if not ingredients_available(item.quantity, menu_item.ingredients, inventory_items):
                raise ServiceError(
                    HTTPStatus.CONFLICT, f"insufficient ingredients for menu item {menu_item.id}"
                )

    def _load_orders(self) -> list[Order]:
        with _failing_with(HTTPStatus.INTERNAL_SERVER_ERROR):
            return self.repository.parse_orders(self.repository.read_orders())

    def _store_orders(self, orders: list[Order]) -> None:
        with _failing_with(HTTPStatus.INTERNAL_SERVER_ERROR):
            self.repository.write_orders(self.repository.dump_orders(orders))

    def add_order(self, data: bytes | str) -> int:
        """Validate a new order against menu and stock and store it as pending."""
        order = self._parse_new_order(data, generate_order_id())
        self._check_stock(order)
        with _failing_with(HTTPStatus.INTERNAL_SERVER_ERROR, "error getting orders"):
            stored = self.repository.read_orders()
        with _failing_with(HTTPStatus.INTERNAL_SERVER_ERROR, "error unmarshalling orders"):
            orders = self.repository.parse_orders(stored)
        orders.append(order)
        with _failing_with(HTTPStatus.INTERNAL_SERVER_ERROR, "error marshalling orders"):
            encoded = self.repository.dump_orders(orders)
        with _failing_with(HTTPStatus.INTERNAL_SERVER_ERROR, "error saving orders"):
            self.repository.write_orders(encoded)
        return HTTPStatus.CREATED

    def get_all_orders(self) -> bytes:
        """Return the stored orders as JSON."""
        with _failing_with(HTTPStatus.INTERNAL_SERVER_ERROR):
            data = self.repository.read_orders()
        if len(data) <= 2:
            raise ServiceError(HTTPStatus.NOT_FOUND, "no orders found")
        return data

    def get_order(self, order_id: str) -> bytes:
        """Return one order as JSON."""
        for order in self._load_orders():
            if order.id == order_id:
                with _failing_with(HTTPStatus.INTERNAL_SERVER_ERROR):
                    return self.repository.dump_order(order)
        raise ServiceError(HTTPStatus.NOT_FOUND, f"order with ID {order_id} not found")

    def update_order(self, order_id: str, data: bytes | str) -> int:
        """Replace a pending order; a completed one cannot be changed."""
        replacement = self._parse_new_order(data, order_id)
        self._check_stock(replacement)
        orders = self._load_orders()
        for index, order in enumerate(orders):
            if order.id == order_id:
                if order.status != OrderStatus.PENDING:
                    raise ServiceError(
                        HTTPStatus.CONFLICT, f"order {order_id} is already completed"
                    )
                orders[index] = replacement
                break
        self._store_orders(orders)
        return HTTPStatus.OK

    def delete_order(self, order_id: str) -> int:
        """Remove the order with ``order_id`` if there is one."""
        orders = self._load_orders()
        for index, order in enumerate(orders):
            if order.id == order_id:
                del orders[index]
                break
        self._store_orders(orders)
        return HTTPStatus.NO_CONTENT

    def close_order(self, order_id: str) -> int:
        """Complete a pending order and take its ingredients out of stock."""
        orders = self._load_orders()
        target = next(
            (o for o in orders if o.id == order_id and o.status == OrderStatus.PENDING),
            None,
        )
        if target is None:
            raise ServiceError(
                HTTPStatus.NOT_FOUND, f"order {order_id} not found or already completed"
            )
        target.status = OrderStatus.COMPLETED

        with _failing_with(HTTPStatus.INTERNAL_SERVER_ERROR):
            menu_items = self.repository.parse_menu_items(self.repository.read_menu_items())
        with _failing_with(HTTPStatus.INTERNAL_SERVER_ERROR):
            inventory_items = self.repository.parse_inventory_items(
                self.repository.read_inventory_items()
            )

        for order_item in target.items:
            menu_item = find_menu_item(order_item.product_id, menu_items)
            if menu_item is None:
                raise ServiceError(
                    HTTPStatus.BAD_REQUEST, f"menu item {order_item.product_id} not found"
                )
            for ingredient in menu_item.ingredients:
                try:
                    decrement_inventory(ingredient, order_item.quantity, inventory_items)
                except (ValueError, LookupError) as err:
                    raise ServiceError(
                        HTTPStatus.CONFLICT,
                        f"insufficient ingredients for menu item {menu_item.id}",
                    ) from err

        with _failing_with(HTTPStatus.INTERNAL_SERVER_ERROR):
            self.repository.write_inventory_items(
                self.repository.dump_inventory_items(inventory_items)
            )
        self._store_orders(orders)
        return HTTPStatus.OK