import json
import re

import pytest

from hotcoffee.domain import (
    InventoryItem,
    MenuItem,
    MenuItemIngredient,
    Order,
    OrderItem,
    OrderStatus,
    ServiceError,
)
from hotcoffee.jsondb import JsonDB
from hotcoffee.orders import (
    Application,
    check_order_fields,
    decrement_inventory,
    find_menu_item,
    generate_order_id,
    has_ingredient,
    ingredients_available,
)


def _menu():
    return [
        MenuItem(
            id="latte",
            name="Latte",
            description="Milk coffee",
            price=3.5,
            ingredients=[
                MenuItemIngredient("espresso", 10),
                MenuItemIngredient("milk", 20),
            ],
        ),
        MenuItem(
            id="tea",
            name="Tea",
            description="Leaf tea",
            price=2.0,
            ingredients=[MenuItemIngredient("leaves", 5)],
        ),
    ]


def _make_app(tmp_path, espresso=100.0, milk=200.0):
    db = JsonDB(tmp_path)
    db.write_menu_items(db.dump_menu_items(_menu()))
    db.write_inventory_items(
        db.dump_inventory_items(
            [
                InventoryItem("espresso", "Espresso", espresso, "g"),
                InventoryItem("milk", "Milk", milk, "ml"),
            ]
        )
    )
    db.write_orders(b"[]")
    return Application(db), db


def _order_body(product="latte", quantity=2, customer="Alice"):
    return json.dumps(
        {"customer_name": customer, "items": [{"product_id": product, "quantity": quantity}]}
    ).encode()


@pytest.fixture
def app_db(tmp_path):
    return _make_app(tmp_path)


def test_add_order_stores_pending_order(app_db):
    app, db = app_db
    assert app.add_order(_order_body()) == 201
    orders = db.parse_orders(db.read_orders())
    assert len(orders) == 1
    assert orders[0].customer_name == "Alice"
    assert orders[0].status == OrderStatus.PENDING
    assert orders[0].id.startswith("ORD-")


def test_add_order_invalid_json(app_db):
    app, _ = app_db
    with pytest.raises(ServiceError) as info:
        app.add_order(b"{not json")
    assert info.value.status == 400
    assert info.value.message == "invalid order data"


def test_add_order_missing_customer(app_db):
    app, _ = app_db
    with pytest.raises(ServiceError) as info:
        app.add_order(_order_body(customer=""))
    assert info.value.status == 400
    assert info.value.message == "customer name is required"


def test_add_order_unknown_product(app_db):
    app, _ = app_db
    with pytest.raises(ServiceError) as info:
        app.add_order(_order_body(product="mocha"))
    assert info.value.status == 400
    assert info.value.message == "menu item mocha not found"


def test_add_order_ingredient_not_stocked(app_db):
    app, _ = app_db
    with pytest.raises(ServiceError) as info:
        app.add_order(_order_body(product="tea"))
    assert info.value.status == 409
    assert info.value.message == "ingredient for menu item tea not found in inventory"


def test_add_order_insufficient_stock(tmp_path):
    app, db = _make_app(tmp_path, espresso=1.0)
    with pytest.raises(ServiceError) as info:
        app.add_order(_order_body(quantity=5))
    assert info.value.status == 409
    assert info.value.message == "insufficient ingredients for menu item latte"
    assert db.read_orders() == b"[]"


def test_get_all_orders_empty(app_db):
    app, _ = app_db
    with pytest.raises(ServiceError) as info:
        app.get_all_orders()
    assert info.value.status == 404
    assert info.value.message == "no orders found"


def test_get_all_orders_returns_stored_bytes(app_db):
    app, db = app_db
    app.add_order(_order_body())
    assert app.get_all_orders() == db.read_orders()


def test_get_order_found_and_missing(app_db):
    app, db = app_db
    app.add_order(_order_body())
    order_id = db.parse_orders(db.read_orders())[0].id
    fetched = db.parse_order(app.get_order(order_id))
    assert fetched.id == order_id
    assert fetched.items == [OrderItem("latte", 2)]
    with pytest.raises(ServiceError) as info:
        app.get_order("nope")
    assert info.value.status == 404
    assert info.value.message == "order with ID nope not found"


def test_update_pending_order_keeps_id(app_db):
    app, db = app_db
    app.add_order(_order_body())
    order_id = db.parse_orders(db.read_orders())[0].id
    assert app.update_order(order_id, _order_body(quantity=1, customer="Bob")) == 200
    orders = db.parse_orders(db.read_orders())
    assert [(o.id, o.customer_name) for o in orders] == [(order_id, "Bob")]
    assert orders[0].items == [OrderItem("latte", 1)]


def test_update_completed_order_conflicts(app_db):
    app, db = app_db
    app.add_order(_order_body())
    order_id = db.parse_orders(db.read_orders())[0].id
    app.close_order(order_id)
    with pytest.raises(ServiceError) as info:
        app.update_order(order_id, _order_body(customer="Bob"))
    assert info.value.status == 409
    assert info.value.message == f"order {order_id} is already completed"


def test_delete_order(app_db):
    app, db = app_db
    app.add_order(_order_body())
    app.add_order(_order_body(customer="Bob"))
    first, second = db.parse_orders(db.read_orders())
    assert app.delete_order(first.id) == 204
    assert [o.id for o in db.parse_orders(db.read_orders())] == [second.id]


def test_close_order_decrements_inventory(app_db):
    app, db = app_db
    app.add_order(_order_body(quantity=2))
    order_id = db.parse_orders(db.read_orders())[0].id
    assert app.close_order(order_id) == 200
    stock = {i.ingredient_id: i.quantity for i in db.parse_inventory_items(db.read_inventory_items())}
    assert stock == {"espresso": 100.0 - 2 * 10, "milk": 200.0 - 2 * 20}
    assert db.parse_orders(db.read_orders())[0].status == OrderStatus.COMPLETED


def test_close_order_twice_is_not_found(app_db):
    app, db = app_db
    app.add_order(_order_body())
    order_id = db.parse_orders(db.read_orders())[0].id
    app.close_order(order_id)
    with pytest.raises(ServiceError) as info:
        app.close_order(order_id)
    assert info.value.status == 404
    assert info.value.message == f"order {order_id} not found or already completed"


def test_close_order_insufficient_leaves_data_unchanged(tmp_path):
    app, db = _make_app(tmp_path, espresso=15.0)
    app.add_order(_order_body(quantity=2))
    order_id = db.parse_orders(db.read_orders())[0].id
    inventory_before = db.read_inventory_items()
    with pytest.raises(ServiceError) as info:
        app.close_order(order_id)
    assert info.value.status == 409
    assert db.read_inventory_items() == inventory_before
    assert db.parse_orders(db.read_orders())[0].status == OrderStatus.PENDING


def test_generate_order_id_format():
    first = generate_order_id()
    assert re.fullmatch(r"ORD-\d+-\d{4}", first)
    assert "/" not in first


@pytest.mark.parametrize(
    "order, message",
    [
        (Order(id="", customer_name="A", items=[OrderItem("x", 1)], status=OrderStatus.PENDING),
         "order ID is required"),
        (Order(id="1", customer_name="", items=[OrderItem("x", 1)], status=OrderStatus.PENDING),
         "customer name is required"),
        (Order(id="1", customer_name="A", items=[OrderItem("x", 1)], status="done"),
         "invalid order status: done"),
        (Order(id="1", customer_name="A", items=[], status=OrderStatus.PENDING),
         "order must contain at least one item"),
        (Order(id="1", customer_name="A", items=[OrderItem("", 1)], status=OrderStatus.PENDING),
         "product ID is required for each item"),
        (Order(id="1", customer_name="A", items=[OrderItem("x", 0)], status=OrderStatus.PENDING),
         "quantity for product x must be greater than zero"),
    ],
)
def test_check_order_fields_errors(order, message):
    with pytest.raises(ValueError) as info:
        check_order_fields(order)
    assert str(info.value) == message


def test_decrement_inventory_errors_and_success():
    stock = [InventoryItem("milk", "Milk", 50.0, "ml")]
    with pytest.raises(ValueError):
        decrement_inventory(MenuItemIngredient("milk", 30), 2, stock)
    assert stock[0].quantity == 50.0
    with pytest.raises(LookupError):
        decrement_inventory(MenuItemIngredient("sugar", 1), 1, stock)
    decrement_inventory(MenuItemIngredient("milk", 10), 2, stock)
    assert stock[0].quantity == 50.0 - 20


def test_has_ingredient_and_availability():
    stock = [InventoryItem("milk", "Milk", 3.0, "ml")]
    assert has_ingredient([], stock) is False
    assert has_ingredient([MenuItemIngredient("milk", 1)], stock) is True
    assert has_ingredient([MenuItemIngredient("sugar", 1)], stock) is False
    assert ingredients_available(3, [MenuItemIngredient("milk", 1)], stock) is True
    assert ingredients_available(4, [MenuItemIngredient("milk", 1)], stock) is False


def test_find_menu_item():
    menu = _menu()
    assert find_menu_item("tea", menu) is menu[1]
    assert find_menu_item("mocha", menu) is None