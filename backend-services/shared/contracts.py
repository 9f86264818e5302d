# backend-services/shared/contracts.py
"""
This module defines the Pydantic models that serve as the formal data contracts
for the JSON documents exchanged by the stock tracker backend.

These models ensure data consistency, provide automatic validation, and act as
living documentation for the shapes returned by the HTTP API and the
price refresher.
"""

from typing import List, TypeAlias
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Upper bound (exclusive) of the simulated price range.
MAX_SIMULATED_PRICE: float = 100.0

# --- Contract 1: StockRecord ---
class StockRecord(BaseModel):
    """A stored stock document. `id` is the store-assigned identity, emitted as `_id`."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias='_id')
    symbol: str
    name: str
    price: float

    @field_validator('id', mode='before')
    @classmethod
    def _stringify_object_id(cls, value):
        # ObjectId (and anything else the store hands back) is rendered as its string form
        return str(value) if value is not None else value

    def to_api(self) -> dict:
        return self.model_dump(by_alias=True)


# --- Contract 2: StockPrice ---
class StockPrice(BaseModel):
    """Response body of GET /api/stock/<symbol>."""
    symbol: str
    price: float


# --- Contract 3: StockNameOption ---
class StockNameOption(BaseModel):
    """One entry of GET /api/stock_names, shaped for a select/dropdown widget."""
    label: str
    value: str

StockNameList: TypeAlias = List[StockNameOption]


# --- Contract 4: RefreshSummary ---
class RefreshSummary(BaseModel):
    """Outcome of a single refresh tick."""
    total: int = 0
    updated: int = 0
    missing: int = 0  # deleted between snapshot and update
    failed: int = 0
    skipped: bool = False  # another tick was still running
