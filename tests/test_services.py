from datetime import datetime

import pytest

from errors import InvalidParameterError
from services import (
    PRICE_RANGES,
    get_price_ranges,
    get_statistics,
    list_transactions,
    month_window,
    parse_int,
    parse_month,
    parse_number,
)


def test_month_window_regular_month():
    assert month_window(2024, 3) == (datetime(2024, 3, 1), datetime(2024, 4, 1))


def test_month_window_december_rolls_over():
    assert month_window(2023, 12) == (datetime(2023, 12, 1), datetime(2024, 1, 1))


def test_parse_int_default_and_errors():
    assert parse_int(None, "bad", default=1) == 1
    assert parse_int("", "bad", default=10) == 10
    assert parse_int("7", "bad") == 7

    with pytest.raises(InvalidParameterError, match="bad"):
        parse_int("1.5", "bad")
    with pytest.raises(InvalidParameterError):
        parse_int(None, "bad")


@pytest.mark.parametrize("value", ["0", "13", "-1", "abc", None])
def test_parse_month_rejects_out_of_range(value):
    with pytest.raises(InvalidParameterError):
        parse_month(value)


@pytest.mark.parametrize(
    "value, expected",
    [("42", 42.0), ("3.5", 3.5), ("-2", -2.0), ("abc", None), ("", None), ("nan", None), ("inf", None)],
)
def test_parse_number(value, expected):
    assert parse_number(value) == expected


def test_price_ranges_are_ten_ordered_bands():
    assert len(PRICE_RANGES) == 10
    assert PRICE_RANGES[0] == (0, 100)
    assert PRICE_RANGES[8] == (801, 900)
    lows = [low for low, _ in PRICE_RANGES]
    assert lows == sorted(lows)


def test_list_transactions_rejects_non_positive_pagination(session_factory):
    with pytest.raises(InvalidParameterError):
        list_transactions(session_factory, page="0")
    with pytest.raises(InvalidParameterError):
        list_transactions(session_factory, per_page="-5")


def test_list_transactions_search_is_literal(session_factory, seed):
    seed(
        {"date": datetime(2024, 1, 1), "title": "100% cotton"},
        {"date": datetime(2024, 1, 2), "title": "cotton blend"},
    )

    result = list_transactions(session_factory, search="%")

    assert [t["title"] for t in result["transactions"]] == ["100% cotton"]


def test_statistics_with_explicit_year(session_factory, seed):
    seed(
        {"date": datetime(2023, 12, 31, 23, 59), "amount": 5.0, "sold": True},
        {"date": datetime(2024, 1, 1), "amount": 7.5, "sold": True},
    )

    assert get_statistics(session_factory, month="12", year="2023") == {
        "totalSaleAmount": 5.0,
        "totalSoldItems": 1,
        "totalNotSoldItems": 0,
    }


def test_statistics_rejects_year_out_of_datetime_range(session_factory):
    with pytest.raises(InvalidParameterError):
        get_statistics(session_factory, month="1", year="0")


def test_price_ranges_for_explicit_year(session_factory, seed):
    seed({"date": datetime(2022, 5, 10), "price": 250})

    result = get_price_ranges(session_factory, month="5", year=2022)

    assert result[2] == {"range": "201 - 300", "count": 1}
    assert sum(r["count"] for r in result) == 1
