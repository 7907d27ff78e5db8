"""Domain records of the coffee shop and their JSON representations."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, TypeVar

_T = TypeVar("_T")

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_TIMESTAMP_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})"
    r"(?:\.(\d{1,9}))?"
    r"(Z|[+-]\d{2}:\d{2})"
)


class OrderStatus(str, Enum):
    """Lifecycle state of an order."""

    PENDING = "pending"
    COMPLETED = "completed"


class ServiceError(Exception):
    """A failure that carries the HTTP status it should be reported with."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.status, "message": self.message}


def _require_object(data: Any, kind: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ValueError(f"{kind} must be a JSON object")
    return data


def _field(data: dict[str, Any], key: str) -> Any:
    """Look a key up the way JSON decoding matches struct fields: exact first, then ignoring case."""
    if key in data:
        return data[key]
    lowered = key.lower()
    return next(
        (value for name, value in data.items() if name.lower() == lowered),
        None,
    )


def _string(data: dict[str, Any], key: str) -> str:
    value = _field(data, key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string")
    return value


def _float(data: dict[str, Any], key: str) -> float:
    value = _field(data, key)
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"field {key!r} must be a number")
    result = float(value)
    if not math.isfinite(result):
        raise ValueError(f"field {key!r} is out of range")
    return result


def _integer(data: dict[str, Any], key: str) -> int:
    value = _field(data, key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"field {key!r} must be an integer")
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f"field {key!r} is out of range")
    return value


def _records(
    data: dict[str, Any], key: str, factory: Callable[[Any], _T]
) -> list[_T]:
    value = _field(data, key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"field {key!r} must be an array")
    return [factory({} if entry is None else entry) for entry in value]


def _number(value: float) -> float | int:
    """Render integral floats as integers, as the JSON wire format expects."""
    if value.is_integer() and abs(value) < 1e21:
        return int(value)
    return value


def format_timestamp(moment: datetime) -> str:
    """Format a moment as RFC 3339 with trailing fractional zeros dropped."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    fraction = f"{moment.microsecond:06d}".rstrip("0")
    if fraction:
        text += "." + fraction
    offset = moment.utcoffset() or timedelta(0)
    if not offset:
        return text + "Z"
    sign = "-" if offset < timedelta(0) else "+"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def parse_timestamp(text: str) -> datetime:
    """Parse an RFC 3339 timestamp; sub-microsecond digits are truncated."""
    match = _TIMESTAMP_RE.fullmatch(text)
    if match is None:
        raise ValueError(f"invalid timestamp: {text!r}")
    year, month, day, hour, minute, second, fraction, zone = match.groups()
    if zone == "Z":
        tz = timezone.utc
    else:
        hours, minutes = int(zone[1:3]), int(zone[4:6])
        if hours >= 24 or minutes >= 60:
            raise ValueError(f"invalid time zone offset in {text!r}")
        delta = timedelta(hours=hours, minutes=minutes)
        tz = timezone.utc if not delta else timezone(-delta if zone[0] == "-" else delta)
    microsecond = int((fraction or "").ljust(6, "0")[:6])
    return datetime(
        int(year),
        int(month),
        int(day),
        int(hour),
        int(minute),
        int(second),
        microsecond,
        tzinfo=tz,
    )


@dataclass
class ProductSales:
    """How many units of a product were sold."""

    product_id: str
    quantity: int

    def to_dict(self) -> dict[str, Any]:
        return {"product_id": self.product_id, "quantity": self.quantity}


@dataclass
class InventoryItem:
    """An ingredient kept in stock."""

    ingredient_id: str = ""
    name: str = ""
    quantity: float = 0.0
    unit: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> InventoryItem:
        data = _require_object(data, "inventory item")
        return cls(
            ingredient_id=_string(data, "ingredient_id"),
            name=_string(data, "name"),
            quantity=_float(data, "quantity"),
            unit=_string(data, "unit"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "ingredient_id": self.ingredient_id,
            "name": self.name,
            "quantity": _number(self.quantity),
            "unit": self.unit,
        }


@dataclass
class MenuItemIngredient:
    """How much of an ingredient one unit of a menu item uses."""

    ingredient_id: str = ""
    quantity: float = 0.0

    @classmethod
    def from_dict(cls, data: Any) -> MenuItemIngredient:
        data = _require_object(data, "menu item ingredient")
        return cls(
            ingredient_id=_string(data, "ingredient_id"),
            quantity=_float(data, "quantity"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "ingredient_id": self.ingredient_id,
            "quantity": _number(self.quantity),
        }


@dataclass
class MenuItem:
    """A product on the menu."""

    id: str = ""
    name: str = ""
    description: str = ""
    price: float = 0.0
    ingredients: list[MenuItemIngredient] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> MenuItem:
        data = _require_object(data, "menu item")
        return cls(
            id=_string(data, "product_id"),
            name=_string(data, "name"),
            description=_string(data, "description"),
            price=_float(data, "price"),
            ingredients=_records(data, "ingredients", MenuItemIngredient.from_dict),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "product_id": self.id,
            "name": self.name,
            "description": self.description,
            "price": _number(self.price),
            "ingredients": [ingredient.to_dict() for ingredient in self.ingredients],
        }


@dataclass
class OrderItem:
    """A product and how many of it were ordered."""

    product_id: str = ""
    quantity: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> OrderItem:
        data = _require_object(data, "order item")
        return cls(
            product_id=_string(data, "product_id"),
            quantity=_integer(data, "quantity"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"product_id": self.product_id, "quantity": self.quantity}


@dataclass
class Order:
    """A customer's order."""

    id: str = ""
    customer_name: str = ""
    items: list[OrderItem] = field(default_factory=list)
    status: OrderStatus | str = ""
    created_at: datetime = ZERO_TIME

    @classmethod
    def from_dict(cls, data: Any) -> Order:
        data = _require_object(data, "order")
        raw_status = _string(data, "status")
        try:
            status: OrderStatus | str = OrderStatus(raw_status)
        except ValueError:
            status = raw_status
        created = _field(data, "created_at")
        if created is None:
            created_at = ZERO_TIME
        elif isinstance(created, str):
            created_at = parse_timestamp(created)
        else:
            raise ValueError("field 'created_at' must be a timestamp string")
        return cls(
            id=_string(data, "order_id"),
            customer_name=_string(data, "customer_name"),
            items=_records(data, "items", OrderItem.from_dict),
            status=status,
            created_at=created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        status = self.status.value if isinstance(self.status, OrderStatus) else self.status
        return {
            "order_id": self.id,
            "customer_name": self.customer_name,
            "items": [item.to_dict() for item in self.items],
            "status": status,
            "created_at": format_timestamp(self.created_at),
        }