"""
Expiry status engine.

Pure functions turning a batch's expiry date into a status classification
and a signed day distance. No I/O; "today" may be injected for determinism.

Both today and the expiry date are reduced to calendar days (midnight, local
time) before differencing, so the time of day at which either value was read
never shifts the result.
"""
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable, List, Optional, Union

DateLike = Union[date, datetime, str]

URGENT_WITHIN_DAYS = 7
WARNING_WITHIN_DAYS = 30


class ExpiryStatus(str, Enum):
    EXPIRED = "expired"
    URGENT = "urgent"
    WARNING = "warning"
    OK = "ok"


class InvalidExpiryDateError(ValueError):
    """Raised when a batch's expiry date is missing or unparseable."""
    pass


@dataclass(frozen=True)
class ExpiryResult:
    status: ExpiryStatus
    days_until_expiry: int


def _local_midnight(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone()  # local time
    return value.replace(hour=0, minute=0, second=0, microsecond=0, tzinfo=None)


def parse_expiry_date(value: Optional[DateLike]) -> date:
    """
    Normalize a stored expiry value to a calendar date.

    Accepts date, datetime (converted to local time first) and ISO-8601
    strings, either date-only or full timestamps.
    """
    if value is None:
        raise InvalidExpiryDateError("Expiry date is missing")

    if isinstance(value, datetime):
        return _local_midnight(value).date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidExpiryDateError("Expiry date is empty")
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            return _local_midnight(datetime.fromisoformat(text.replace("Z", "+00:00"))).date()
        except ValueError as e:
            raise InvalidExpiryDateError(f"Unparseable expiry date {value!r}") from e

    raise InvalidExpiryDateError(f"Unsupported expiry date type: {type(value).__name__}")


def _today(today: Optional[DateLike]) -> date:
    if today is None:
        return date.today()
    return parse_expiry_date(today)


def days_until_expiry(expiry: DateLike, today: Optional[DateLike] = None) -> int:
    """Signed whole days from today to the expiry date; negative once expired."""
    expiry_midnight = datetime.combine(parse_expiry_date(expiry), datetime.min.time())
    today_midnight = datetime.combine(_today(today), datetime.min.time())
    return math.ceil((expiry_midnight - today_midnight) / timedelta(days=1))


def classify_days(days: int) -> ExpiryStatus:
    """A batch expiring today is urgent, not expired."""
    if days < 0:
        return ExpiryStatus.EXPIRED
    if days <= URGENT_WITHIN_DAYS:
        return ExpiryStatus.URGENT
    if days <= WARNING_WITHIN_DAYS:
        return ExpiryStatus.WARNING
    return ExpiryStatus.OK


def evaluate_expiry(expiry: DateLike, today: Optional[DateLike] = None) -> ExpiryResult:
    days = days_until_expiry(expiry, today)
    return ExpiryResult(status=classify_days(days), days_until_expiry=days)


def get_expiry_status(expiry: DateLike, today: Optional[DateLike] = None) -> ExpiryStatus:
    return evaluate_expiry(expiry, today).status


def is_expired(expiry: DateLike, today: Optional[DateLike] = None) -> bool:
    return days_until_expiry(expiry, today) < 0


# ==================== Batch helpers ====================

def _valid_batches(batches: Iterable) -> list:
    valid = []
    for batch in batches or []:
        try:
            parse_expiry_date(batch.expiry_date)
        except InvalidExpiryDateError:
            continue
        valid.append(batch)
    return valid


def sort_by_expiry(batches: Iterable) -> List:
    """Batches ordered soonest expiry first; unparseable dates are dropped."""
    return sorted(_valid_batches(batches), key=lambda b: parse_expiry_date(b.expiry_date))


def earliest_batch(product) -> Optional[object]:
    """The product's batch that expires first, or None without batches."""
    ordered = sort_by_expiry(product.batches)
    return ordered[0] if ordered else None


def earliest_expiry_date(product) -> Optional[date]:
    batch = earliest_batch(product)
    return parse_expiry_date(batch.expiry_date) if batch is not None else None


def total_quantity(product) -> int:
    """Sum of batch quantities; a batch without a quantity counts as 0."""
    return sum((batch.quantity or 0) for batch in (product.batches or []))
