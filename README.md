# hotcoffee

A small coffee shop management server. It keeps the menu, the inventory
and the orders in three JSON files inside a data directory and serves
them over a plain HTTP API. It uses only the Python standard library.

## Installation

```
pip install .
```

## Running

```
hot-coffee [--port N] [--dir S]
hot-coffee --help
```

- `--port N`: port to listen on, between 1024 and 49151 (default 8080).
- `--dir S`: data directory (default `./data`). It must already exist;
  `menu.json`, `order.json` and `inventory.json` are created in it with
  an empty list (`[]`) if they are missing.
- `--help` prints the help text and exits; `-h` prints the short usage.

Flags may be written `--port 9000` or `--port=9000`. Stray positional
arguments, a port outside the range or a missing data directory stop
the program with a message and a non-zero exit status.

Logs are appended to `logs/info.log`, `logs/error.log` and
`logs/debug.log`, relative to the working directory. The `logs`
directory has to exist before the server starts.

The server runs until interrupted with Ctrl-C.

## API

Every request to the order, menu and inventory endpoints must carry
`Content-Type: application/json`; otherwise the server answers 415.
Errors come back as JSON: `{"code": <status>, "message": "<text>"}`.

| Path                      | Methods            |
|---------------------------|--------------------|
| `/order`                  | GET, POST          |
| `/order/{id}`             | GET, PUT, DELETE   |
| `/order/{id}/close`       | POST               |
| `/menu`                   | GET, POST          |
| `/menu/{id}`              | GET, PUT, DELETE   |
| `/inventory`              | GET, POST          |
| `/inventory/{id}`         | GET, PUT, DELETE   |
| `/reports/total-sales`    | GET                |
| `/reports/popular-items`  | GET                |

Any other method on these paths answers 405. Any other path answers 404.
Paths with `.`, `..` or doubled slashes are redirected (301) to their
cleaned form.

Listing an empty collection answers 404. Adding an order, a menu item or
an inventory item answers 201; adding a menu or inventory item whose ID
or name is already taken is refused.

### Example documents

Inventory item:

```json
{"ingredient_id": "espresso_shot", "name": "Espresso Shot", "quantity": 500, "unit": "shots"}
```

Menu item:

```json
{
  "product_id": "latte",
  "name": "Caffe Latte",
  "description": "Espresso with steamed milk",
  "price": 3.5,
  "ingredients": [
    {"ingredient_id": "espresso_shot", "quantity": 1},
    {"ingredient_id": "milk", "quantity": 200}
  ]
}
```

Order (the server assigns the id, the `pending` status and the creation
time):

```json
{"customer_name": "Alice", "items": [{"product_id": "latte", "quantity": 2}]}
```

A new or updated order is checked against the menu and the inventory.
Only pending orders can be updated. Closing an order marks it
`completed` and takes its ingredients out of the inventory.

Reports count completed orders only. `/reports/total-sales` answers
`{"total_sales": <number>}`, the sum of item quantity times current menu
price. `/reports/popular-items` answers a list of
`{"product_id": ..., "quantity": ...}` with the units sold per product.

## Using it as a library

```python
from pathlib import Path

from hotcoffee.config import Config, init_config
from hotcoffee.domain import ServiceError
from hotcoffee.jsondb import JsonDB
from hotcoffee.orders import Application

config = Config(data_dir=Path("./data"), port=8080)
init_config(config)
service = Application(JsonDB(config.data_dir))

try:
    service.add_order(b'{"customer_name": "Alice", "items": [{"product_id": "latte", "quantity": 1}]}')
except ServiceError as err:
    print(err.status, err.message)

print(service.total_sales())
```

`Application` holds all operations: inventory and menu
(`add_inventory_item`, `get_menu_item`, ...), orders (`add_order`,
`update_order`, `close_order`, ...) and reports (`total_sales`,
`popular_items`). Failures raise `ServiceError`, which carries the HTTP
status to report. `hotcoffee.app.build_router` wires a service to a
`hotcoffee.web.Router`, and `hotcoffee.app.serve` runs it on
`http.server`.

## What it does not do

There is no authentication and no locking: every request reads and
rewrites whole JSON files, so concurrent writes may overwrite each
other. There is no database back end other than the JSON files.