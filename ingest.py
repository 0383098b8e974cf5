import logging
from datetime import datetime
from typing import Any, Optional

import numpy as np
import pandas as pd
import requests
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from sqlalchemy.exc import SQLAlchemyError

from config import FETCH_TIMEOUT, SOURCE_URL
from errors import StoreOperationError, UpstreamFetchError
from models import Transaction

logger = logging.getLogger(__name__)


# ---------------------------
# Source schema
# ---------------------------

def _to_number(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if np.isfinite(number) else None


class SourceTransaction(BaseModel):
    """
    One element of the upstream JSON array (snake_case keys).
    Every field is optional; missing text fields become "" and a missing price becomes 0.
    """

    model_config = ConfigDict(extra="ignore")

    transaction_id: Optional[str] = None
    product_id: Optional[str] = None
    user_id: Optional[str] = None
    amount: Optional[float] = None
    date: Any = None
    title: str = ""
    description: str = ""
    price: float = 0
    category: str = ""

    @field_validator("transaction_id", "product_id", "user_id", mode="before")
    @classmethod
    def _stringify_id(cls, v):
        return None if v is None else str(v)

    @field_validator("title", "description", "category", mode="before")
    @classmethod
    def _text_or_empty(cls, v):
        return str(v) if v else ""

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_or_none(cls, v):
        return _to_number(v)

    @field_validator("price", mode="before")
    @classmethod
    def _price_or_zero(cls, v):
        return _to_number(v) or 0


# ---------------------------
# Helpers: fetch + normalize
# ---------------------------

def parse_date(value) -> Optional[datetime]:
    """
    Parse an upstream date into a naive UTC datetime.
    Returns None for anything unparseable instead of raising.
    Numbers are read as epoch milliseconds.
    """
    try:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            ts = pd.to_datetime(value, unit="ms", errors="coerce", utc=True)
        elif isinstance(value, str) and value.strip():
            ts = pd.to_datetime(value.strip(), errors="coerce", utc=True)
        else:
            return None
    except (TypeError, ValueError, OverflowError):
        return None

    if pd.isna(ts):
        return None
    return ts.tz_convert(None).to_pydatetime()


def fetch_source(url: str = SOURCE_URL, timeout: float = FETCH_TIMEOUT) -> list:
    """Download the raw dataset. It must be a JSON array."""
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except requests.RequestException as e:
        raise UpstreamFetchError(f"Failed to fetch {url}: {e}") from e
    except ValueError as e:
        raise UpstreamFetchError(f"Response from {url} is not JSON: {e}") from e

    if not isinstance(data, list):
        raise UpstreamFetchError("Invalid data format", status_code=400)
    return data


def normalize_records(items: list) -> list[dict]:
    """
    Map raw upstream objects to Transaction column values.
    Records without a parseable date are dropped.
    """
    rows = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning("Skipping element %d: not a JSON object", index)
            continue

        try:
            source = SourceTransaction.model_validate(item)
        except ValidationError as e:
            logger.warning("Skipping element %d: %s", index, e)
            continue

        date = parse_date(source.date)
        if date is None:
            continue

        rows.append(
            {
                "transaction_id": source.transaction_id,
                "product_id": source.product_id,
                "user_id": source.user_id,
                "amount": source.amount,
                "date": date,
                "title": source.title,
                "description": source.description,
                "price": source.price,
                "category": source.category,
            }
        )
    return rows


# ---------------------------
# Store: clear + bulk load
# ---------------------------

def replace_all(session_factory, rows: list[dict]) -> int:
    """
    Delete every stored transaction and insert `rows`, in a single DB transaction.
    On failure nothing is changed.
    """
    session = session_factory()
    try:
        deleted = session.query(Transaction).delete(synchronize_session=False)
        session.add_all([Transaction(**row) for row in rows])
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise StoreOperationError(f"Failed to replace transactions: {e}") from e
    finally:
        session.close()

    logger.info("Replaced %d stored transactions with %d", deleted, len(rows))
    return len(rows)


def initialize_database(
    session_factory, url: str = SOURCE_URL, timeout: float = FETCH_TIMEOUT
) -> int:
    data = fetch_source(url, timeout)
    rows = normalize_records(data)
    logger.info(
        "Fetched %d records, %d kept, %d dropped", len(data), len(rows), len(data) - len(rows)
    )
    return replace_all(session_factory, rows)
