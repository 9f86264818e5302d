# backend-services/stock-service/tests/conftest.py
"""
Pytest configuration and shared fixtures for stock-service tests.
The Flask app is wired to an in-memory mongomock collection; the scheduler is
never started, ticks are driven directly through run_tick().
"""

import os
import sys
import random

import pytest
import mongomock

# Service root (for app/config/database/services) and backend-services (for shared)
_SERVICE_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, os.path.abspath(os.path.join(_SERVICE_ROOT, '..')))
sys.path.insert(0, _SERVICE_ROOT)

from config import Settings
from database.stock_store import StockStore
from services.price_refresher import PriceRefresher
from services.stock_service import StockService


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def collection():
    client = mongomock.MongoClient()
    yield client.stock_tracker.stocks
    client.close()


@pytest.fixture
def store(collection):
    return StockStore(collection)


@pytest.fixture
def refresher(store):
    # Single worker: mongomock is not built for concurrent writers
    refresher = PriceRefresher(store, interval_seconds=5, max_workers=1, rng=random.Random(1234))
    yield refresher
    refresher.shutdown()


@pytest.fixture
def service(store, refresher):
    return StockService(store, refresher)


@pytest.fixture
def app(service, settings):
    from app import create_app
    flask_app = create_app(service, settings)
    flask_app.config["TESTING"] = True
    yield flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def acme():
    return {"symbol": "ACME", "name": "Acme Corp", "price": 10}
