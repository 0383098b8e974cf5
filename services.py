import math
from datetime import datetime, timezone

import numpy as np
from sqlalchemy import case, func, or_
from sqlalchemy.exc import SQLAlchemyError

from errors import InvalidParameterError, StoreOperationError
from models import Transaction

PRICE_RANGES = [
    (0, 100),
    (101, 200),
    (201, 300),
    (301, 400),
    (401, 500),
    (501, 600),
    (601, 700),
    (701, 800),
    (801, 900),
    (901, np.inf),
]

MAX_SQL_INT = 2**63 - 1


# ---------------------------
# Helpers: params + month window
# ---------------------------

def parse_int(value, message: str, default: int = None) -> int:
    """Query-string value -> int, or InvalidParameterError(message)."""
    if value is None or value == "":
        if default is None:
            raise InvalidParameterError(message)
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidParameterError(message) from None


def parse_month(value, message: str = "Invalid month") -> int:
    month = parse_int(value, message)
    if month < 1 or month > 12:
        raise InvalidParameterError(message)
    return month


def parse_number(value):
    """Float for a finite numeric string, else None."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if np.isfinite(number) else None


def month_window(year: int, month: int):
    """[first instant of month, first instant of next month)"""
    start = datetime(year, month, 1)
    if month == 12:
        end = datetime(year + 1, 1, 1)
    else:
        end = datetime(year, month + 1, 1)
    return start, end


def current_year() -> int:
    return datetime.now(timezone.utc).year


def _in_window(start, end):
    return [Transaction.date >= start, Transaction.date < end]


def _format_bound(value) -> str:
    if np.isinf(value):
        return "Infinity"
    return str(value)


# ---------------------------
# Transactions: search + pagination
# ---------------------------

def list_transactions(session_factory, page=None, per_page=None, search=None):
    message = "Invalid pagination parameters"
    page = parse_int(page, message, default=1)
    per_page = parse_int(per_page, message, default=10)
    if page < 1 or per_page < 1:
        raise InvalidParameterError(message)
    # offset and limit are bound as 64-bit integers
    if per_page > MAX_SQL_INT or (page - 1) * per_page > MAX_SQL_INT:
        raise InvalidParameterError(message)
    search = search or ""

    conditions = [
        Transaction.title.icontains(search, autoescape=True),
        Transaction.description.icontains(search, autoescape=True),
    ]
    price = parse_number(search)
    if price is not None:
        conditions.append(Transaction.price == price)
    criteria = or_(*conditions)

    session = session_factory()
    try:
        query = session.query(Transaction).filter(criteria)
        total_count = query.count()
        txns = (
            query.order_by(Transaction.id)
            .offset((page - 1) * per_page)
            .limit(per_page)
            .all()
        )
        transactions = [t.to_dict() for t in txns]
    except SQLAlchemyError as e:
        raise StoreOperationError(str(e)) from e
    finally:
        session.close()

    return {
        "transactions": transactions,
        "totalCount": total_count,
        "totalPages": math.ceil(total_count / per_page),
        "currentPage": page,
        "perPage": per_page,
    }


# ---------------------------
# Analytics: month statistics
# ---------------------------

def get_statistics(session_factory, month=None, year=None):
    """
    Sale total plus sold / not-sold counts for one calendar month.
    The three numbers are computed independently over the same rows.
    """
    message = "Invalid month or year"
    month = parse_month(month, message)
    year = parse_int(year, message)
    try:
        start, end = month_window(year, month)
    except (ValueError, OverflowError):
        raise InvalidParameterError(message) from None

    session = session_factory()
    try:
        total, sold, not_sold = (
            session.query(
                func.coalesce(func.sum(Transaction.amount), 0),
                func.count(case((Transaction.sold.is_(True), 1))),
                func.count(case((Transaction.sold.is_(False), 1))),
            )
            .filter(*_in_window(start, end))
            .one()
        )
    except SQLAlchemyError as e:
        raise StoreOperationError(str(e)) from e
    finally:
        session.close()

    return {
        "totalSaleAmount": total,
        "totalSoldItems": sold,
        "totalNotSoldItems": not_sold,
    }


def get_price_ranges(session_factory, month=None, year: int = None):
    """Count of the month's transactions in each of the ten fixed price bands."""
    month = parse_month(month)
    start, end = month_window(year or current_year(), month)

    session = session_factory()
    try:
        result = []
        for low, high in PRICE_RANGES:
            query = session.query(Transaction).filter(
                *_in_window(start, end), Transaction.price >= low
            )
            if not np.isinf(high):
                query = query.filter(Transaction.price <= high)
            result.append(
                {
                    "range": f"{_format_bound(low)} - {_format_bound(high)}",
                    "count": query.count(),
                }
            )
    except SQLAlchemyError as e:
        raise StoreOperationError(str(e)) from e
    finally:
        session.close()

    return result


def get_category_stats(session_factory, month=None, year: int = None):
    month = parse_month(month)
    start, end = month_window(year or current_year(), month)

    session = session_factory()
    try:
        rows = (
            session.query(Transaction.category, func.count(Transaction.id))
            .filter(*_in_window(start, end))
            .group_by(Transaction.category)
            .all()
        )
    except SQLAlchemyError as e:
        raise StoreOperationError(str(e)) from e
    finally:
        session.close()

    return [{"category": category, "count": count} for category, count in rows]
