import json
from datetime import datetime, timezone

import pytest

from hotcoffee.domain import (
    InventoryItem,
    MenuItem,
    MenuItemIngredient,
    Order,
    OrderItem,
    OrderStatus,
    ProductSales,
)
from hotcoffee.jsondb import JsonDB


@pytest.fixture
def db(tmp_path):
    for name in ("order.json", "menu.json", "inventory.json"):
        (tmp_path / name).write_text("[]", encoding="utf-8")
    return JsonDB(tmp_path)


def _menu():
    return [
        MenuItem(
            id="latte",
            name="Caffe Latte",
            description="Espresso with steamed milk",
            price=3.5,
            ingredients=[MenuItemIngredient("espresso_shot", 1), MenuItemIngredient("milk", 200)],
        ),
        MenuItem(id="muffin", name="Blueberry Muffin", description="", price=2.0),
    ]


def _order(order_id, status, items):
    return Order(
        id=order_id,
        customer_name="Alice",
        items=[OrderItem(product_id, quantity) for product_id, quantity in items],
        status=status,
        created_at=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
    )


def test_read_returns_raw_file_contents(db, tmp_path):
    (tmp_path / "menu.json").write_bytes(b'[ {"product_id": "x"} ]')
    assert db.read_menu_items() == b'[ {"product_id": "x"} ]'


def test_write_then_read_round_trip(db):
    db.write_orders(b'[{"order_id":"o1"}]')
    db.write_menu_items(b"[]")
    db.write_inventory_items(b'[{"ingredient_id":"milk"}]')
    assert db.read_orders() == b'[{"order_id":"o1"}]'
    assert db.read_menu_items() == b"[]"
    assert db.read_inventory_items() == b'[{"ingredient_id":"milk"}]'


def test_write_truncates_previous_contents(db):
    db.write_inventory_items(b"[" + b" " * 100 + b"]")
    db.write_inventory_items(b"[]")
    assert db.read_inventory_items() == b"[]"


def test_read_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        JsonDB(tmp_path).read_orders()


def test_write_creates_missing_file(tmp_path):
    db = JsonDB(tmp_path)
    db.write_menu_items(b"[]")
    assert (tmp_path / "menu.json").read_bytes() == b"[]"


def test_dump_inventory_item_wire_format(db):
    item = InventoryItem("espresso_shot", "Espresso Shot", 500, "shots")
    assert db.dump_inventory_item(item) == (
        b'{"ingredient_id":"espresso_shot","name":"Espresso Shot","quantity":500,"unit":"shots"}'
    )


def test_dump_escapes_html_characters(db):
    item = InventoryItem("a&b", "<tag>", 1, "g")
    dumped = db.dump_inventory_item(item)
    assert b"\\u003c" in dumped and b"\\u003e" in dumped and b"\\u0026" in dumped
    assert db.parse_inventory_item(dumped) == item


def test_inventory_list_round_trip(db):
    items = [InventoryItem("milk", "Milk", 5000, "ml"), InventoryItem("sugar", "Sugar", 12.5, "g")]
    assert db.parse_inventory_items(db.dump_inventory_items(items)) == items


def test_menu_round_trip(db):
    menu = _menu()
    assert db.parse_menu_items(db.dump_menu_items(menu)) == menu
    assert db.parse_menu_item(db.dump_menu_item(menu[0])) == menu[0]


def test_order_round_trip(db):
    orders = [_order("o1", OrderStatus.PENDING, [("latte", 2)])]
    assert db.parse_orders(db.dump_orders(orders)) == orders
    assert db.parse_order(db.dump_order(orders[0])) == orders[0]


def test_dump_order_uses_json_field_names(db):
    dumped = json.loads(db.dump_order(_order("o1", OrderStatus.COMPLETED, [("latte", 1)])))
    assert dumped == {
        "order_id": "o1",
        "customer_name": "Alice",
        "items": [{"product_id": "latte", "quantity": 1}],
        "status": "completed",
        "created_at": "2024-01-02T03:04:05Z",
    }


def test_dump_empty_list(db):
    assert db.dump_orders([]) == b"[]"


def test_parse_null_list_is_empty(db):
    assert db.parse_menu_items(b"null") == []


def test_parse_null_item_is_blank(db):
    assert db.parse_inventory_item(b"null") == InventoryItem()


def test_parse_accepts_str(db):
    assert db.parse_order('{"order_id":"o9"}').id == "o9"


@pytest.mark.parametrize("data", [b"", b"{", b"[1,", b"[NaN]", b"[] []"])
def test_parse_invalid_json_raises(db, data):
    with pytest.raises(ValueError):
        db.parse_inventory_items(data)


def test_parse_object_where_array_expected_raises(db):
    with pytest.raises(ValueError):
        db.parse_orders(b'{"order_id":"o1"}')


def test_parse_wrong_field_type_raises(db):
    with pytest.raises(ValueError):
        db.parse_menu_item(b'{"product_id": 5}')


def test_total_sales_counts_only_completed(db):
    db.write_menu_items(db.dump_menu_items(_menu()))
    db.write_orders(
        db.dump_orders(
            [
                _order("o1", OrderStatus.COMPLETED, [("latte", 2)]),
                _order("o2", OrderStatus.PENDING, [("muffin", 10)]),
            ]
        )
    )
    assert db.total_sales() == pytest.approx(7.0)


def test_total_sales_empty(db):
    assert db.total_sales() == 0.0


def test_total_sales_unknown_product_raises(db):
    db.write_orders(db.dump_orders([_order("o1", OrderStatus.COMPLETED, [("ghost", 1)])]))
    with pytest.raises(LookupError, match="could not get price for item ghost: item not found"):
        db.total_sales()


def test_total_sales_ignores_unknown_product_in_pending(db):
    db.write_orders(db.dump_orders([_order("o1", OrderStatus.PENDING, [("ghost", 1)])]))
    assert db.total_sales() == 0.0


def test_total_sales_missing_orders_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        JsonDB(tmp_path).total_sales()


def test_popular_items_aggregates_completed(db):
    db.write_orders(
        db.dump_orders(
            [
                _order("o1", OrderStatus.COMPLETED, [("latte", 2), ("muffin", 1)]),
                _order("o2", OrderStatus.COMPLETED, [("latte", 3)]),
                _order("o3", OrderStatus.PENDING, [("muffin", 7)]),
            ]
        )
    )
    result = {sale.product_id: sale.quantity for sale in db.popular_items()}
    assert result == {"latte": 5, "muffin": 1}


def test_popular_items_empty(db):
    assert db.popular_items() == []


def test_popular_items_single_order(db):
    db.write_orders(db.dump_orders([_order("o1", OrderStatus.COMPLETED, [("latte", 4)])]))
    assert db.popular_items() == [ProductSales("latte", 4)]


def test_aggregation_rejects_malformed_orders_file(db):
    db.write_orders(b"not json")
    with pytest.raises(ValueError):
        db.popular_items()