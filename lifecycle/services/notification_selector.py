"""
Aggregation & notification selector.

Given one tenant's products (each with its batches) this module produces:
- the daily alert list: every batch within the tenant's alert threshold,
  expired batches included, most urgent first
- the weekly report: recently expired and expiring-soon lists capped for
  display, plus summary statistics computed over all batches

Everything here is read-only and side-effect free, so it can be called any
number of times for the same tenant and instant. Deciding whether to send,
and remembering what was sent, is the dispatch job's responsibility.

Malformed batches (missing or unparseable expiry date) are logged and
skipped; they never fail the tenant.
"""
import logging
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional

from lifecycle.models.settings import DEFAULT_ALERT_THRESHOLD
from lifecycle.services.expiry import (
    ExpiryStatus,
    InvalidExpiryDateError,
    evaluate_expiry,
    parse_expiry_date,
)

logger = logging.getLogger(__name__)

WEEKLY_DISPLAY_LIMIT = 5


@dataclass(frozen=True)
class BatchAlert:
    """A batch with the product context needed by the notification templates."""
    product_id: Optional[uuid.UUID]
    product_name: str
    category: str
    batch_id: Optional[uuid.UUID]
    batch_number: Optional[str]
    expiry_date: date
    quantity: int
    days_until_expiry: int
    status: ExpiryStatus
    supplier: Optional[str] = None
    location: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "product_id": str(self.product_id) if self.product_id else None,
            "product_name": self.product_name,
            "category": self.category,
            "batch_id": str(self.batch_id) if self.batch_id else None,
            "batch_number": self.batch_number,
            "expiry_date": self.expiry_date.isoformat(),
            "quantity": self.quantity,
            "days_until_expiry": self.days_until_expiry,
            "status": self.status.value,
            "supplier": self.supplier,
            "location": self.location,
        }


@dataclass(frozen=True)
class CategoryCount:
    category: str
    count: int


@dataclass
class WeeklyStats:
    total_products: int = 0
    expired_count: int = 0
    expiring_soon_count: int = 0
    category_breakdown: List[CategoryCount] = field(default_factory=list)

    def top_categories(self, limit: int = WEEKLY_DISPLAY_LIMIT) -> List[CategoryCount]:
        return self.category_breakdown[:limit]


@dataclass
class WeeklyReport:
    stats: WeeklyStats
    recently_expired: List[BatchAlert] = field(default_factory=list)
    expiring_soon: List[BatchAlert] = field(default_factory=list)


def _daily_sort_key(alert: BatchAlert):
    return (alert.days_until_expiry, alert.product_name.lower(), alert.batch_number or "")


def flatten_batches(products: Iterable, today: Optional[date] = None) -> List[BatchAlert]:
    """
    Every valid batch across all products, with its computed status.
    Products without batches contribute nothing.
    """
    alerts: List[BatchAlert] = []
    for product in products:
        for batch in product.batches or []:
            try:
                expiry_date = parse_expiry_date(batch.expiry_date)
            except InvalidExpiryDateError as e:
                logger.warning(
                    f"Skipping batch {getattr(batch, 'id', None)} of product "
                    f"'{product.name}': {e}"
                )
                continue

            result = evaluate_expiry(expiry_date, today)
            alerts.append(
                BatchAlert(
                    product_id=getattr(product, "id", None),
                    product_name=product.name,
                    category=product.category,
                    batch_id=getattr(batch, "id", None),
                    batch_number=batch.batch_number,
                    expiry_date=expiry_date,
                    quantity=batch.quantity or 0,
                    days_until_expiry=result.days_until_expiry,
                    status=result.status,
                    supplier=getattr(product, "supplier", None),
                    location=getattr(product, "location", None),
                )
            )
    return alerts


def select_daily_alerts(
    products: Iterable,
    preference=None,
    today: Optional[date] = None,
) -> List[BatchAlert]:
    """
    Batches due for the daily alert.

    A batch qualifies when days_until_expiry <= alert_threshold (inclusive),
    which includes already expired batches.
    """
    threshold = DEFAULT_ALERT_THRESHOLD
    if preference is not None and preference.alert_threshold is not None:
        threshold = int(preference.alert_threshold)

    selected = [
        alert for alert in flatten_batches(products, today)
        if alert.days_until_expiry <= threshold
    ]
    return sorted(selected, key=_daily_sort_key)


def build_weekly_report(
    products: Iterable,
    today: Optional[date] = None,
    display_limit: int = WEEKLY_DISPLAY_LIMIT,
) -> WeeklyReport:
    """
    Weekly digest content.

    Counts are batch counts across all products (one product can have
    batches in different states); total_products counts distinct products.
    """
    products = list(products)
    alerts = flatten_batches(products, today)

    expired = [a for a in alerts if a.status == ExpiryStatus.EXPIRED]
    expiring = [a for a in alerts if a.status in (ExpiryStatus.URGENT, ExpiryStatus.WARNING)]

    # Most recently expired first
    expired.sort(key=lambda a: (-a.days_until_expiry, a.product_name.lower(), a.batch_number or ""))
    expiring.sort(key=_daily_sort_key)

    category_counts = Counter(alert.category for alert in alerts)
    breakdown = [
        CategoryCount(category=category, count=count)
        for category, count in sorted(category_counts.items(), key=lambda item: (-item[1], item[0]))
    ]

    stats = WeeklyStats(
        total_products=len(products),
        expired_count=len(expired),
        expiring_soon_count=len(expiring),
        category_breakdown=breakdown,
    )

    return WeeklyReport(
        stats=stats,
        recently_expired=expired[:display_limit],
        expiring_soon=expiring[:display_limit],
    )


def summarize_statuses(alerts: Iterable[BatchAlert]) -> dict:
    """Batch counts per status, every status present."""
    counts = Counter(alert.status for alert in alerts)
    return {status.value: counts.get(status, 0) for status in ExpiryStatus}
