"""Fixtures for end-to-end tests through the assembled FastAPI application.

The application pushes the catalogue, inventory or ordering domain context
per request based on the URL prefix. The stock ledger is a private SQLite
file per test.
"""

import pytest


@pytest.fixture(scope="session")
def application():
    from app import app

    return app


@pytest.fixture()
def client(application, reservation_engine):
    from fastapi.testclient import TestClient

    yield TestClient(application)

    from catalogue.domain import catalogue
    from catalogue.utils.db import reset_data
    from inventory.domain import inventory
    from ordering.domain import ordering

    for domain in (catalogue, inventory, ordering):
        with domain.domain_context():
            reset_data(domain)
