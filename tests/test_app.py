import json

import pytest

from hotcoffee.app import build_router, main
from hotcoffee.jsondb import JsonDB
from hotcoffee.orders import Application
from hotcoffee.web import Request

JSON = {"Content-Type": "application/json"}


@pytest.fixture
def router(tmp_path):
    for name in ("menu.json", "order.json", "inventory.json"):
        (tmp_path / name).write_text("[]")
    return build_router(Application(JsonDB(tmp_path)), None)


def test_unknown_path_is_not_found(router):
    response = router.dispatch(Request("GET", "/unknown"))
    assert response.status == 404
    assert json.loads(response.body) == {"code": 404, "message": "Not found"}


def test_root_is_not_found(router):
    response = router.dispatch(Request("GET", "/"))
    assert response.status == 404


def test_menu_route_checks_content_type(router):
    response = router.dispatch(Request("GET", "/menu"))
    assert response.status == 415


def test_inventory_add_then_get_by_id(router):
    body = json.dumps(
        {"ingredient_id": "milk", "name": "Milk", "quantity": 5, "unit": "l"}
    ).encode()
    created = router.dispatch(Request("POST", "/inventory", dict(JSON), body))
    assert created.status == 201
    fetched = router.dispatch(Request("GET", "/inventory/milk", dict(JSON)))
    assert fetched.status == 200
    assert json.loads(fetched.body)["name"] == "Milk"


def test_close_route_reaches_order_service(router):
    response = router.dispatch(Request("POST", "/order/abc/close", dict(JSON)))
    assert response.status == 404
    assert json.loads(response.body)["message"] == "order abc not found or already completed"


def test_reports_routes(router):
    total = router.dispatch(Request("GET", "/reports/total-sales"))
    assert json.loads(total.body) == {"total_sales": 0}
    popular = router.dispatch(Request("GET", "/reports/popular-items"))
    assert json.loads(popular.body) == []


def test_main_rejects_bad_port(tmp_path, capsys):
    with pytest.raises(SystemExit) as info:
        main(["--port", "80", "--dir", str(tmp_path)])
    assert info.value.code == 1
    assert "Port number must be in the range [1024, 49151]" in capsys.readouterr().err


def test_main_rejects_missing_dir(tmp_path, capsys):
    missing = tmp_path / "missing"
    with pytest.raises(SystemExit) as info:
        main(["--dir", str(missing)])
    assert info.value.code == 1
    assert "Invalid data directory" in capsys.readouterr().err


def test_main_help(capsys):
    with pytest.raises(SystemExit) as info:
        main(["--help"])
    assert info.value.code == 0
    assert "Coffee Shop Management System" in capsys.readouterr().out