# backend-services/stock-service/database/connection.py

import logging
import time

from pymongo import MongoClient, errors


logger = logging.getLogger(__name__)


class DatabaseManager:
    """
    Single responsibility: own the Mongo connection lifecycle and hand out the
    stocks collection. One instance is built by the entry point and shared by
    the Flask handlers and the price refresher.
    """

    COLLECTION_NAME = "stocks"

    def __init__(
        self,
        mongo_uri: str,
        db_name: str,
        server_selection_timeout_ms: int = 5000,
        max_retries: int = 3,
        retry_delay: float = 5,
        client_factory=MongoClient,
    ) -> None:
        self._mongo_uri = mongo_uri
        self._db_name = db_name
        self._server_selection_timeout_ms = server_selection_timeout_ms
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._client_factory = client_factory

        self.client = None
        self.db = None
        self.collection = None

    def connect(self):
        """
        Establishes the connection if not already connected and returns the
        stocks collection.

        Raises:
            ConnectionFailure: if every attempt fails.
        """
        if self.collection is not None:
            return self.collection

        last_error = None
        for attempt in range(self._max_retries):
            try:
                self.client = self._client_factory(
                    self._mongo_uri,
                    serverSelectionTimeoutMS=self._server_selection_timeout_ms,
                )
                self.client.admin.command("ping")

                self.db = self.client[self._db_name]
                self.collection = self.db[self.COLLECTION_NAME]
                logger.info(f"MongoDB connection successful (db={self._db_name}).")
                return self.collection
            except errors.ConnectionFailure as e:
                last_error = e
                logger.error(f"MongoDB connection attempt {attempt + 1}/{self._max_retries} failed: {e}")
                self._reset()
                if attempt < self._max_retries - 1:
                    logger.info(f"Retrying in {self._retry_delay} seconds...")
                    time.sleep(self._retry_delay)

        logger.error("All MongoDB connection attempts failed.")
        raise errors.ConnectionFailure(f"Could not connect to MongoDB: {last_error}")

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
            logger.info("MongoDB connection closed.")
        self._reset()

    def _reset(self) -> None:
        """Drops the client and collection handles."""
        self.client = None
        self.db = None
        self.collection = None
