# backend-services/stock-service/services/stock_service.py

"""
Stock service business logic.

Owns the record store and the price refresher so that the HTTP layer receives
one explicitly constructed object instead of reaching for module globals.

- Lookups return None when nothing matches; routes turn that into 404.
- Invalid create payloads raise ValueError; routes turn that into 400.
- Store failures (PyMongoError) propagate; routes turn them into 500.
"""
import logging
import math
from typing import Any, Dict, List, Optional

from shared.contracts import RefreshSummary, StockNameOption, StockPrice, StockRecord

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("symbol", "name", "price")


def _coerce_text(value: Any, field: str) -> str:
    if isinstance(value, (dict, list)):
        raise ValueError(f"Field '{field}' must be a string")
    if isinstance(value, bool):
        # JSON spelling, as the document schema casts it
        return "true" if value else "false"
    return str(value)


def _coerce_price(value: Any) -> float:
    if isinstance(value, (dict, list)):
        raise ValueError("Field 'price' must be a number")
    try:
        price = float(value)
    except (TypeError, ValueError, OverflowError):
        raise ValueError("Field 'price' must be a number")
    if not math.isfinite(price):
        raise ValueError("Field 'price' must be a finite number")
    return price


def validate_new_stock(payload: Any) -> Dict[str, Any]:
    """
    Checks a create payload and returns the normalized fields.

    Every required field must be present and truthy, so a price of exactly 0
    is rejected just like a missing one. Values are cast the way the document
    schema stores them (text, text, float).

    Raises:
        ValueError: if a field is missing, falsy, or cannot be cast
    """
    if not isinstance(payload, dict):
        raise ValueError("Invalid stock data")

    missing = [f for f in REQUIRED_FIELDS if not payload.get(f)]
    if missing:
        raise ValueError(f"Missing or empty fields: {', '.join(missing)}")

    return {
        "symbol": _coerce_text(payload["symbol"], "symbol"),
        "name": _coerce_text(payload["name"], "name"),
        "price": _coerce_price(payload["price"]),
    }


class StockService:
    def __init__(self, store, refresher=None) -> None:
        self.store = store
        self.refresher = refresher

    def get_price(self, symbol: str) -> Optional[StockPrice]:
        """Exact-match lookup; the first matching record wins when symbols repeat."""
        record = self.store.find_one({"symbol": symbol})
        if record is None:
            return None
        return StockPrice(symbol=record.symbol, price=record.price)

    def list_stock_names(self) -> List[StockNameOption]:
        # Store iteration order; callers must not rely on it being stable.
        return [StockNameOption(label=r.name, value=r.symbol) for r in self.store.find({})]

    def add_stock(self, payload: Any) -> StockRecord:
        fields = validate_new_stock(payload)
        record = self.store.insert(**fields)
        logger.info(f"Added stock {record.symbol} ({record.id}).")
        return record

    def delete_stock(self, symbol: str) -> Optional[StockRecord]:
        deleted = self.store.delete_one({"symbol": symbol})
        if deleted is not None:
            logger.info(f"Deleted stock {deleted.symbol} ({deleted.id}).")
        return deleted

    def refresh_prices(self) -> RefreshSummary:
        if self.refresher is None:
            raise RuntimeError("Price refresher is not configured")
        return self.refresher.run_tick()

    def start(self) -> None:
        if self.refresher is not None:
            self.refresher.start()

    def shutdown(self) -> None:
        if self.refresher is not None:
            self.refresher.shutdown()
