"""Stock ledger: one row per blood group holding the current bag count."""

from __future__ import annotations

import logging
from typing import List, Optional

from django.db import DEFAULT_DB_ALIAS, DatabaseError, transaction

from blood.choices import BLOOD_GROUPS
from blood.exceptions import NotFound, TransientFailure, ValidationFailed
from blood.models import ActionAuditLog, Stock, StockStatus

from . import audit


logger = logging.getLogger(__name__)


def normalize_bloodgroup(raw) -> str:
    return str(raw or "").strip().upper().replace(" ", "")


def ensure_stock_rows(using: Optional[str] = None) -> int:
    """Create any missing ledger rows with zero bags. Returns how many were created."""

    manager = Stock.objects.db_manager(using or DEFAULT_DB_ALIAS)
    created = 0
    for bloodgroup in BLOOD_GROUPS:
        _, was_created = manager.get_or_create(bloodgroup=bloodgroup)
        if was_created:
            created += 1
    return created


def list_stocks() -> List[Stock]:
    rows = {stock.bloodgroup: stock for stock in Stock.objects.all()}
    return [rows[group] for group in BLOOD_GROUPS if group in rows]


def get_stock(bloodgroup) -> Stock:
    bloodgroup = normalize_bloodgroup(bloodgroup)
    try:
        return Stock.objects.get(bloodgroup=bloodgroup)
    except Stock.DoesNotExist:
        raise NotFound(f"No stock record for blood group {bloodgroup or '?'}.") from None


def critical_stocks() -> List[Stock]:
    return [stock for stock in list_stocks() if stock.status == StockStatus.CRITICAL]


def low_stocks() -> List[Stock]:
    """Critical and Low rows together, the way the dashboards warn about them."""

    return [stock for stock in list_stocks() if stock.status in (StockStatus.CRITICAL, StockStatus.LOW)]


def set_stock_quantity(bloodgroup, new_count, *, actor=None) -> Stock:
    bloodgroup = normalize_bloodgroup(bloodgroup)
    if bloodgroup not in BLOOD_GROUPS:
        raise NotFound(f"No stock record for blood group {bloodgroup or '?'}.")
    if isinstance(new_count, bool) or not isinstance(new_count, int) or new_count < 0:
        raise ValidationFailed("Bag count must be a non-negative integer.", {"bag_count": ["Must be 0 or greater."]})

    try:
        with transaction.atomic():
            try:
                stock = Stock.objects.select_for_update().get(bloodgroup=bloodgroup)
            except Stock.DoesNotExist:
                raise NotFound(f"No stock record for blood group {bloodgroup}.") from None

            previous = stock.unit
            stock.unit = new_count
            stock.save(update_fields=["unit", "updated_at"])
            audit.record(
                ActionAuditLog.Action.SET_STOCK,
                ActionAuditLog.EntityType.STOCK,
                stock.pk,
                bloodgroup=bloodgroup,
                units=new_count - previous,
                status_before=Stock.status_for(previous),
                status_after=stock.status,
                actor=actor,
                payload={"before": previous, "after": new_count},
            )
    except DatabaseError as exc:
        logger.error("Stock update for %s failed: %s", bloodgroup, exc)
        raise TransientFailure() from exc

    logger.info("Stock %s set from %s to %s bags", bloodgroup, previous, new_count)
    return stock
