# backend-services/stock-service/tests/test_connection.py
"""
Tests for database/connection.py: connect/retry/close behaviour with a mocked
MongoClient factory.
"""
from unittest.mock import MagicMock, patch

import pytest
from pymongo.errors import ConnectionFailure

from database.connection import DatabaseManager


def _factory(client):
    return MagicMock(return_value=client)


class TestDatabaseManager:

    def test_connect_returns_stocks_collection(self):
        client = MagicMock()
        factory = _factory(client)
        manager = DatabaseManager("mongodb://db:27017/", "stock_tracker", client_factory=factory)

        collection = manager.connect()

        factory.assert_called_once_with("mongodb://db:27017/", serverSelectionTimeoutMS=5000)
        client.admin.command.assert_called_once_with("ping")
        client.__getitem__.assert_called_once_with("stock_tracker")
        assert collection is client["stock_tracker"]["stocks"]

    def test_connect_is_cached(self):
        factory = _factory(MagicMock())
        manager = DatabaseManager("mongodb://db:27017/", "stock_tracker", client_factory=factory)

        first = manager.connect()
        second = manager.connect()

        assert first is second
        factory.assert_called_once()

    @patch("database.connection.time.sleep")
    def test_retries_then_succeeds(self, mock_sleep):
        client = MagicMock()
        client.admin.command.side_effect = [ConnectionFailure("down"), {"ok": 1}]
        manager = DatabaseManager(
            "mongodb://db:27017/", "stock_tracker", max_retries=3, retry_delay=2, client_factory=_factory(client)
        )

        assert manager.connect() is not None
        mock_sleep.assert_called_once_with(2)

    @patch("database.connection.time.sleep")
    def test_raises_after_last_attempt(self, mock_sleep):
        client = MagicMock()
        client.admin.command.side_effect = ConnectionFailure("down")
        manager = DatabaseManager(
            "mongodb://db:27017/", "stock_tracker", max_retries=3, retry_delay=1, client_factory=_factory(client)
        )

        with pytest.raises(ConnectionFailure):
            manager.connect()

        assert client.admin.command.call_count == 3
        assert mock_sleep.call_count == 2
        assert manager.collection is None

    def test_close_releases_client(self):
        client = MagicMock()
        manager = DatabaseManager("mongodb://db:27017/", "stock_tracker", client_factory=_factory(client))
        manager.connect()

        manager.close()
        manager.close()

        client.close.assert_called_once()
        assert manager.client is None
