"""Marketstock Load Testing — Locust entry point.

Discovers all user classes from the scenarios package.
Run specific scenarios with Locust's class selection.

Usage:
    # All scenarios (web UI):
    locust -f loadtests/locustfile.py

    # Reservation contention only:
    locust -f loadtests/locustfile.py InventoryContentionUser

    # Headless (CI mode):
    locust -f loadtests/locustfile.py InventoryContentionUser --headless \
           -u 50 -r 10 -t 120s --host http://localhost:8000 --csv=results/loadtest
"""

import logging
import time

import requests
from locust import events

# Import all user classes so Locust discovers them
from loadtests.helpers.response import extract_error_detail
from loadtests.scenarios.catalogue import CatalogueUser  # noqa: F401
from loadtests.scenarios.inventory import HOT_ENTITY_ID, InventoryContentionUser  # noqa: F401
from loadtests.scenarios.ordering import ShopperUser  # noqa: F401

logger = logging.getLogger("loadtest")


@events.request.add_listener
def on_request(request_type, name, response, exception, **_kw):
    """Log error details for every failed request.

    Fires globally for all scenarios — no per-task wiring needed.
    """
    if exception:
        logger.error("[EXCEPTION] %s %s: %s", request_type, name, exception)
    elif response is not None and response.status_code >= 400 and response.status_code != 409:
        detail = extract_error_detail(response)
        logger.error("[%s] %s %s: %s", response.status_code, request_type, name, detail)


@events.test_start.add_listener
def on_test_start(environment, **_kwargs):
    """Log a marker when load test begins."""
    print(f"\n[LOADTEST] Started at {time.strftime('%H:%M:%S')}")
    print(f"[LOADTEST] Target host: {environment.host}")
    print()


@events.test_stop.add_listener
def on_test_stop(environment, **_kwargs):
    """Print the hot item's final levels and flag any oversell."""
    print(f"\n[LOADTEST] Stopped at {time.strftime('%H:%M:%S')}")
    if not environment.host:
        return
    try:
        levels = requests.get(f"{environment.host}/inventory/{HOT_ENTITY_ID}", timeout=5).json()
    except requests.RequestException as exc:
        print(f"[LOADTEST] Could not fetch final stock levels: {exc}\n")
        return

    print(
        "[LOADTEST] Hot item: "
        f"total={levels.get('quantity')} available={levels.get('quantity_available')} "
        f"on_hold={levels.get('quantity_on_hold')} committed={levels.get('quantity_committed')}"
    )
    in_flight = levels.get("quantity_on_hold", 0) + levels.get("quantity_committed", 0)
    if in_flight > levels.get("quantity", 0):
        print("[LOADTEST] OVERSOLD: more units held or committed than stocked")
        environment.process_exit_code = 1
    print()
