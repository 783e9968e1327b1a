from datetime import date, datetime
from types import SimpleNamespace

import pytest

from lifecycle.services.expiry import (
    ExpiryStatus,
    InvalidExpiryDateError,
    classify_days,
    days_until_expiry,
    earliest_batch,
    earliest_expiry_date,
    evaluate_expiry,
    get_expiry_status,
    is_expired,
    parse_expiry_date,
    sort_by_expiry,
    total_quantity,
)
from tests.conftest import TODAY, days


@pytest.mark.parametrize(
    "offset, expected",
    [
        (-30, ExpiryStatus.EXPIRED),
        (-1, ExpiryStatus.EXPIRED),
        (0, ExpiryStatus.URGENT),
        (7, ExpiryStatus.URGENT),
        (8, ExpiryStatus.WARNING),
        (30, ExpiryStatus.WARNING),
        (31, ExpiryStatus.OK),
        (365, ExpiryStatus.OK),
    ],
)
def test_status_boundaries(offset, expected):
    assert get_expiry_status(days(offset), today=TODAY) == expected


def test_classify_days_matches_status():
    assert classify_days(-1) == ExpiryStatus.EXPIRED
    assert classify_days(0) == ExpiryStatus.URGENT


def test_days_until_expiry_is_signed():
    assert days_until_expiry(days(5), today=TODAY) == 5
    assert days_until_expiry(days(-3), today=TODAY) == -3
    assert days_until_expiry(TODAY, today=TODAY) == 0


def test_time_of_day_is_ignored():
    late = datetime(2026, 3, 10, 23, 59)
    early = datetime(2026, 3, 11, 0, 1)
    assert days_until_expiry(early, today=late) == 1
    assert days_until_expiry(datetime(2026, 3, 10, 8, 0), today=datetime(2026, 3, 10, 20, 0)) == 0


def test_evaluate_expiry_returns_both_values():
    result = evaluate_expiry(days(3), today=TODAY)
    assert result.status == ExpiryStatus.URGENT
    assert result.days_until_expiry == 3


def test_is_expired():
    assert is_expired(days(-1), today=TODAY)
    assert not is_expired(TODAY, today=TODAY)


def test_parse_accepts_iso_strings():
    assert parse_expiry_date("2026-04-01") == date(2026, 4, 1)
    assert parse_expiry_date("2026-04-01T15:30:00") == date(2026, 4, 1)
    assert parse_expiry_date(date(2026, 4, 1)) == date(2026, 4, 1)


@pytest.mark.parametrize("value", [None, "", "   ", "not-a-date", "2026-13-40", 42])
def test_parse_rejects_invalid_values(value):
    with pytest.raises(InvalidExpiryDateError):
        parse_expiry_date(value)


def test_invalid_expiry_error_is_value_error():
    with pytest.raises(ValueError):
        get_expiry_status("garbage", today=TODAY)


def _product(*batches):
    return SimpleNamespace(batches=list(batches))


def _batch(expiry, quantity=5):
    return SimpleNamespace(expiry_date=expiry, quantity=quantity)


def test_earliest_batch_and_sorting():
    late = _batch(days(20))
    soon = _batch(days(2))
    broken = _batch(None)
    product = _product(late, broken, soon)

    assert sort_by_expiry(product.batches) == [soon, late]
    assert earliest_batch(product) is soon
    assert earliest_expiry_date(product) == days(2)


def test_earliest_batch_without_batches():
    assert earliest_batch(_product()) is None
    assert earliest_expiry_date(_product()) is None


def test_total_quantity_treats_missing_as_zero():
    product = _product(_batch(days(1), 4), _batch(days(2), None), _batch(days(3), 6))
    assert total_quantity(product) == 10
