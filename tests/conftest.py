import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Selects the config environment before any domain module is imported, so
    logging is configured for tests (WARNING level unless LOG_LEVEL is set).
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        # Get the test file path relative to the tests directory
        test_path = Path(item.fspath)

        # Mark tests based on their directory
        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture()
def stock_ledger(tmp_path):
    """A file-backed SQLite ledger, private to the test.

    File-backed so that several threads see the same database.
    """
    from inventory.stock.ledger import StockLedger

    ledger = StockLedger.from_url(f"sqlite:///{tmp_path / 'stock.db'}", lock_timeout=30)
    ledger.create_schema()
    yield ledger
    ledger.dispose()


@pytest.fixture()
def reservation_engine(stock_ledger):
    """The process-wide reservation engine, pointed at the test ledger."""
    from inventory.stock.engine import StockReservationEngine, configure_stock_engine

    engine = StockReservationEngine(stock_ledger)
    previous = configure_stock_engine(engine)
    yield engine
    configure_stock_engine(previous)
