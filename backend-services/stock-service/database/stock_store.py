# backend-services/stock-service/database/stock_store.py
"""
MongoDB CRUD operations for the stocks collection.

Absence is reported as None, never as an exception. Driver failures propagate
as pymongo.errors.PyMongoError so callers can decide how to surface them.
There are no transactions and no uniqueness constraints: duplicate symbols
coexist and each write is independent.
"""

import logging
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, ReturnDocument

from shared.contracts import StockRecord

logger = logging.getLogger(__name__)

_SYMBOL_INDEX = "symbol_idx"


def _to_object_id(record_id: Any) -> Any:
    """Converts a hex string id back to an ObjectId; other values pass through."""
    if isinstance(record_id, ObjectId):
        return record_id
    try:
        return ObjectId(record_id)
    except (InvalidId, TypeError):
        return record_id


def _to_record(doc: Optional[Dict[str, Any]]) -> Optional[StockRecord]:
    if doc is None:
        return None
    return StockRecord.model_validate(doc)


class StockStore:
    """Record store backed by a single pymongo (or API-compatible) collection."""

    def __init__(self, collection: Any) -> None:
        self._collection = collection

    def ensure_indexes(self) -> None:
        """
        Creates the non-unique symbol index used by lookup-by-symbol.
        Idempotent, safe to call on every startup.
        """
        self._collection.create_index([("symbol", ASCENDING)], name=_SYMBOL_INDEX)
        logger.info("Ensured indexes for stocks collection.")

    def find(self, query: Optional[Dict[str, Any]] = None) -> List[StockRecord]:
        """
        Returns every record matching `query` as a fully materialized list.

        The order is whatever the store iterates in and is not guaranteed
        to be stable between calls.
        """
        return [_to_record(doc) for doc in self._collection.find(query or {})]

    def find_one(self, query: Dict[str, Any]) -> Optional[StockRecord]:
        return _to_record(self._collection.find_one(query))

    def insert(self, symbol: str, name: str, price: float) -> StockRecord:
        """
        Inserts a new stock document.

        Args:
            symbol: Stock ticker symbol (not checked for duplicates)
            name: Display name
            price: Initial price

        Returns:
            StockRecord: The stored record including its assigned identity
        """
        doc = {"symbol": symbol, "name": name, "price": price}
        result = self._collection.insert_one(doc)
        return StockRecord(_id=result.inserted_id, symbol=symbol, name=name, price=price)

    def update_by_id(self, record_id: Any, fields: Dict[str, Any]) -> Optional[StockRecord]:
        """
        Overwrites `fields` on the record with identity `record_id`.

        Returns:
            StockRecord: The record after the update, or None if it no longer exists
        """
        doc = self._collection.find_one_and_update(
            {"_id": _to_object_id(record_id)},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        return _to_record(doc)

    def delete_one(self, query: Dict[str, Any]) -> Optional[StockRecord]:
        """
        Removes the first record matching `query`.

        Returns:
            StockRecord: The removed record, or None if nothing matched
        """
        return _to_record(self._collection.find_one_and_delete(query))
