"""Storage of orders, menu items and inventory in JSON files of a data directory."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Iterable, TypeVar

from hotcoffee.domain import (
    InventoryItem,
    MenuItem,
    Order,
    OrderStatus,
    ProductSales,
)

_T = TypeVar("_T")

ORDERS_FILE = "order.json"
MENU_FILE = "menu.json"
INVENTORY_FILE = "inventory.json"

_JSON_WHITESPACE = " \t\n\r"
_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid character {name!r} looking for beginning of value")


def _text(data: bytes | str) -> str:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data).decode("utf-8", errors="replace")
    return data


def _loads(data: bytes | str, *, first_value_only: bool = False) -> Any:
    """Decode JSON, refusing NaN and infinities; optionally ignore trailing data."""
    text = _text(data)
    decoder = json.JSONDecoder(parse_constant=_reject_constant)
    if first_value_only:
        start = len(text) - len(text.lstrip(_JSON_WHITESPACE))
        value, _ = decoder.raw_decode(text, start)
        return value
    return decoder.decode(text)


def _dumps(value: Any) -> bytes:
    """Encode compactly, escaping HTML-sensitive characters."""
    text = json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    for char, escape in _HTML_ESCAPES.items():
        text = text.replace(char, escape)
    return text.encode("utf-8")


def _parse_list(data: bytes | str, factory: Callable[[Any], _T], **options: bool) -> list[_T]:
    value = _loads(data, **options)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError("cannot unmarshal JSON value into an array")
    return [factory({} if entry is None else entry) for entry in value]


def _parse_one(data: bytes | str, factory: Callable[[Any], _T]) -> _T:
    value = _loads(data)
    return factory({} if value is None else value)


def _dump_list(records: Iterable[Any]) -> bytes:
    return _dumps([record.to_dict() for record in records])


class JsonDB:
    """Repository that keeps each collection in its own JSON file."""

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)

    def _read(self, name: str) -> bytes:
        return (self.data_dir / name).read_bytes()

    def _write(self, name: str, data: bytes | str) -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        (self.data_dir / name).write_bytes(bytes(data))

    # Orders

    def read_orders(self) -> bytes:
        """Return the raw contents of the orders file."""
        return self._read(ORDERS_FILE)

    def write_orders(self, data: bytes | str) -> None:
        """Replace the orders file with ``data``."""
        self._write(ORDERS_FILE, data)

    def parse_orders(self, data: bytes | str) -> list[Order]:
        return _parse_list(data, Order.from_dict)

    def dump_orders(self, orders: Iterable[Order]) -> bytes:
        return _dump_list(orders)

    def parse_order(self, data: bytes | str) -> Order:
        return _parse_one(data, Order.from_dict)

    def dump_order(self, order: Order) -> bytes:
        return _dumps(order.to_dict())

    # Menu

    def read_menu_items(self) -> bytes:
        """Return the raw contents of the menu file."""
        return self._read(MENU_FILE)

    def write_menu_items(self, data: bytes | str) -> None:
        """Replace the menu file with ``data``."""
        self._write(MENU_FILE, data)

    def parse_menu_items(self, data: bytes | str) -> list[MenuItem]:
        return _parse_list(data, MenuItem.from_dict)

    def dump_menu_items(self, items: Iterable[MenuItem]) -> bytes:
        return _dump_list(items)

    def parse_menu_item(self, data: bytes | str) -> MenuItem:
        return _parse_one(data, MenuItem.from_dict)

    def dump_menu_item(self, item: MenuItem) -> bytes:
        return _dumps(item.to_dict())

    # Inventory

    def read_inventory_items(self) -> bytes:
        """Return the raw contents of the inventory file."""
        return self._read(INVENTORY_FILE)

    def write_inventory_items(self, data: bytes | str) -> None:
        """Replace the inventory file with ``data``."""
        self._write(INVENTORY_FILE, data)

    def parse_inventory_items(self, data: bytes | str) -> list[InventoryItem]:
        return _parse_list(data, InventoryItem.from_dict)

    def dump_inventory_items(self, items: Iterable[InventoryItem]) -> bytes:
        return _dump_list(items)

    def parse_inventory_item(self, data: bytes | str) -> InventoryItem:
        return _parse_one(data, InventoryItem.from_dict)

    def dump_inventory_item(self, item: InventoryItem) -> bytes:
        return _dumps(item.to_dict())

    # Aggregations

    def _completed_orders(self) -> list[Order]:
        orders = _parse_list(self.read_orders(), Order.from_dict, first_value_only=True)
        return [order for order in orders if order.status == OrderStatus.COMPLETED]

    def _item_price(self, product_id: str) -> float:
        menu = _parse_list(self.read_menu_items(), MenuItem.from_dict, first_value_only=True)
        for item in menu:
            if item.id == product_id:
                return item.price
        raise LookupError("item not found")

    def total_sales(self) -> float:
        """Sum the value of every item in completed orders at current menu prices."""
        total = 0.0
        for order in self._completed_orders():
            for item in order.items:
                try:
                    price = self._item_price(item.product_id)
                except LookupError as err:
                    raise LookupError(
                        f"could not get price for item {item.product_id}: {err}"
                    ) from err
                total += float(item.quantity) * price
        return total

    def popular_items(self) -> list[ProductSales]:
        """Count units sold per product across completed orders."""
        sales: dict[str, int] = {}
        for order in self._completed_orders():
            for item in order.items:
                sales[item.product_id] = sales.get(item.product_id, 0) + item.quantity
        return [ProductSales(product_id, quantity) for product_id, quantity in sales.items()]