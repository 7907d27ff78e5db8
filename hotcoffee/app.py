"""Server entry point: configuration, routing and the HTTP server."""

from __future__ import annotations

import sys
from http.server import ThreadingHTTPServer
from typing import Sequence

from hotcoffee.catalog_handlers import CatalogHandlers
from hotcoffee.config import Config, ConfigError, init_config, parse_args
from hotcoffee.jsondb import JsonDB
from hotcoffee.logger import Loggers, create_loggers
from hotcoffee.order_handlers import OrderHandlers
from hotcoffee.orders import Application
from hotcoffee.web import Router, make_request_handler, not_found


def build_router(service: Application, loggers: Loggers | None) -> Router:
    """Register every endpoint of the shop on a new router."""
    catalog = CatalogHandlers(service, loggers)
    orders = OrderHandlers(service, loggers)
    router = Router()

    router.add("/order", orders.orders)
    router.add("/order/{id}", orders.order_by_id)
    router.add("/order/{id}/close", orders.close_order)

    router.add("/menu", catalog.menu)
    router.add("/menu/{id}", catalog.menu_by_id)

    router.add("/inventory", catalog.inventory)
    router.add("/inventory/{id}", catalog.inventory_by_id)

    router.add("/reports/total-sales", orders.total_sales)
    router.add("/reports/popular-items", orders.popular_items)

    router.add("/", not_found)
    return router


def serve(config: Config, router: Router) -> None:
    """Serve ``router`` on the configured port until interrupted."""
    server = ThreadingHTTPServer(("", config.port), make_request_handler(router))
    print(f"The server is running on port http://localhost:{config.port}", file=sys.stderr)
    with server:
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass


def main(argv: Sequence[str] | None = None) -> None:
    """Start the coffee shop server."""
    try:
        config = parse_args(argv)
    except ConfigError as err:
        print(err, file=sys.stderr)
        raise SystemExit(2) from err
    try:
        init_config(config)
    except ConfigError as err:
        print(f"Failed to init config: {err}", file=sys.stderr)
        raise SystemExit(1) from err

    loggers = create_loggers(config.info_log_path, config.error_log_path, config.debug_log_path)
    loggers.info.info("Configuration initialized successfully")

    repository = JsonDB(config.data_dir)
    loggers.info.info("Initialized JSON DB repository")
    service = Application(repository)
    loggers.info.info("Application service initialized")
    router = build_router(service, loggers)
    loggers.info.info("HTTP Handler created")

    try:
        serve(config, router)
    except OSError as err:
        print(f"Failed to start server: {err}", file=sys.stderr)
        raise SystemExit(1) from err