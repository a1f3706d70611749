# Overview: Read-side report computation over already-loaded transactions.

"""
Reporting Service

The aggregation functions here are pure: they take in-memory collections
(dicts shaped like Sale.to_dict() / PurchaseInvoice.to_dict(), or the
model objects themselves), never touch the database, never mutate their
input, and always return new lists. Empty input gives an empty result.

load_report_data() is the only function that reads storage; routes call
it once and hand the collections to the aggregators.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, tzinfo
from decimal import Decimal
from typing import Any, Iterable, Union

from sqlalchemy.orm import Session

from ..config import Config
from ..models import Employee, Product, PurchaseInvoice, Sale
from ..validation import CENT, ValidationError
from shoppos.time_utils import local_date, parse_iso_date
from .concurrency import resolve_session

DateLike = Union[str, date, None]
TzLike = Union[str, tzinfo, None]

# Routes pass REPORT_TOP_N from the app config; this is only the fallback
# for direct callers.
DEFAULT_TOP_N = Config.REPORT_TOP_N


def _get(record: Any, key: str, default: Any = None) -> Any:
    if isinstance(record, Mapping):
        return record.get(key, default)
    return getattr(record, key, default)


def _amount(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def _to_number(value: Decimal) -> float:
    return float(value.quantize(CENT))


def _bound(value: DateLike, name: str) -> date | None:
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{name} must be a date (YYYY-MM-DD)")


def _day(record: Any, tz: TzLike) -> date:
    return local_date(_get(record, "created_at"), tz)


def filter_by_date_range(
    transactions: Iterable[Any],
    date_from: DateLike = None,
    date_to: DateLike = None,
    *,
    tz: TzLike = None,
) -> list:
    """
    Keep transactions created within [date_from 00:00:00, date_to 23:59:59]
    in the reporting timezone. A missing bound is open-ended.
    """
    start = _bound(date_from, "from")
    end = _bound(date_to, "to")
    kept = []
    for txn in transactions:
        day = _day(txn, tz)
        if start is not None and day < start:
            continue
        if end is not None and day > end:
            continue
        kept.append(txn)
    return kept


def group_by_date(transactions: Iterable[Any], *, tz: TzLike = None) -> list[dict]:
    """
    One bucket per calendar day, ascending:
    {date, count, total_amount, item_quantity}.
    """
    buckets: dict[date, dict] = {}
    for txn in transactions:
        day = _day(txn, tz)
        bucket = buckets.setdefault(day, {"count": 0, "total": Decimal("0"), "items": 0})
        bucket["count"] += 1
        bucket["total"] += _amount(_get(txn, "total_amount"))
        bucket["items"] += sum(int(_get(item, "quantity", 0) or 0) for item in _get(txn, "items") or [])

    return [
        {
            "date": day.isoformat(),
            "count": bucket["count"],
            "total_amount": _to_number(bucket["total"]),
            "item_quantity": bucket["items"],
        }
        for day, bucket in sorted(buckets.items())
    ]


def total_salaries(employees: Iterable[Any]) -> Decimal:
    return sum((_amount(_get(e, "salary")) for e in employees), Decimal("0"))


def compute_profit(
    sales_by_date: Iterable[Mapping],
    purchases_by_date: Iterable[Mapping],
    total_fixed_salaries: Any,
) -> list[dict]:
    """
    Per-date {sales, purchases, salaries, profit}.

    NOTE: the full salary total is charged against every date bucket; it
    is not prorated over the period.
    """
    salaries = _amount(total_fixed_salaries)
    days: dict[str, dict[str, Decimal]] = {}
    for row in sales_by_date:
        entry = days.setdefault(row["date"], {"sales": Decimal("0"), "purchases": Decimal("0")})
        entry["sales"] += _amount(row["total_amount"])
    for row in purchases_by_date:
        entry = days.setdefault(row["date"], {"sales": Decimal("0"), "purchases": Decimal("0")})
        entry["purchases"] += _amount(row["total_amount"])

    return [
        {
            "date": day,
            "sales": _to_number(entry["sales"]),
            "purchases": _to_number(entry["purchases"]),
            "salaries": _to_number(salaries),
            "profit": _to_number(entry["sales"] - entry["purchases"] - salaries),
        }
        for day, entry in sorted(days.items())
    ]


def rank_by_quantity(transactions: Iterable[Any], top_n: int = DEFAULT_TOP_N) -> list[dict]:
    """
    Flatten line items, group by product, sort by total quantity descending.

    Ties keep first-encountered order (sorted() is stable). Rows carry the
    most recent product_name snapshot seen for the product.
    """
    if top_n is not None and top_n < 0:
        raise ValidationError("limit must be >= 0")

    products: dict[Any, dict] = {}
    for txn in transactions:
        for item in _get(txn, "items") or []:
            product_id = _get(item, "product_id")
            row = products.setdefault(
                product_id,
                {"product_id": product_id, "name": None, "quantity": 0, "amount": Decimal("0")},
            )
            row["name"] = _get(item, "product_name")
            row["quantity"] += int(_get(item, "quantity", 0) or 0)
            row["amount"] += _amount(_get(item, "total_price"))

    ranked = sorted(products.values(), key=lambda r: -r["quantity"])
    if top_n is not None:
        ranked = ranked[:top_n]
    return [
        {
            "product_id": r["product_id"],
            "name": r["name"],
            "total_quantity": r["quantity"],
            "total_amount": _to_number(r["amount"]),
        }
        for r in ranked
    ]


def sold_items_with_stock(
    sales: Iterable[Any],
    products: Iterable[Any],
    top_n: int = DEFAULT_TOP_N,
) -> list[dict]:
    """Top sold products with the product's current stock counter as remaining."""
    stock = {_get(p, "id"): int(_get(p, "stock", 0) or 0) for p in products}
    return [
        {
            "product_id": row["product_id"],
            "name": row["name"],
            "total_quantity": row["total_quantity"],
            "remaining": stock.get(row["product_id"], 0),
        }
        for row in rank_by_quantity(sales, top_n)
    ]


def summarize(sales: Iterable[Any], purchases: Iterable[Any], employees: Iterable[Any]) -> dict:
    sales = list(sales)
    purchases = list(purchases)
    sales_total = sum((_amount(_get(s, "total_amount")) for s in sales), Decimal("0"))
    purchases_total = sum((_amount(_get(p, "total_amount")) for p in purchases), Decimal("0"))
    salaries = total_salaries(employees)
    return {
        "sales_count": len(sales),
        "sales_total": _to_number(sales_total),
        "purchases_count": len(purchases),
        "purchases_total": _to_number(purchases_total),
        "salaries_total": _to_number(salaries),
        "net": _to_number(sales_total - purchases_total - salaries),
    }


# ---------------------------------------------------------------------------
# Data loading
# ---------------------------------------------------------------------------

@dataclass
class ReportData:
    sales: list[dict] = field(default_factory=list)
    purchases: list[dict] = field(default_factory=list)
    employees: list[dict] = field(default_factory=list)
    products: list[dict] = field(default_factory=list)


def load_report_data(session: Session | None = None) -> ReportData:
    """Fetch every collection the reports need, serialized once."""
    session = resolve_session(session)
    return ReportData(
        sales=[s.to_dict() for s in session.query(Sale).order_by(Sale.created_at.asc()).all()],
        purchases=[
            p.to_dict()
            for p in session.query(PurchaseInvoice).order_by(PurchaseInvoice.created_at.asc()).all()
        ],
        employees=[e.to_dict() for e in session.query(Employee).order_by(Employee.id.asc()).all()],
        products=[p.to_dict() for p in session.query(Product).order_by(Product.id.asc()).all()],
    )


REPORTS = ("sales", "purchases", "profit", "top-products", "purchased-products", "sold-items", "summary")


def build_report(
    name: str,
    data: ReportData,
    *,
    date_from: DateLike = None,
    date_to: DateLike = None,
    top_n: int = DEFAULT_TOP_N,
    tz: TzLike = None,
) -> dict:
    if name not in REPORTS:
        raise ValidationError(f"Unknown report: {name}")

    sales = filter_by_date_range(data.sales, date_from, date_to, tz=tz)
    purchases = filter_by_date_range(data.purchases, date_from, date_to, tz=tz)

    if name == "sales":
        rows = group_by_date(sales, tz=tz)
    elif name == "purchases":
        rows = group_by_date(purchases, tz=tz)
    elif name == "profit":
        rows = compute_profit(
            group_by_date(sales, tz=tz),
            group_by_date(purchases, tz=tz),
            total_salaries(data.employees),
        )
    elif name == "top-products":
        rows = rank_by_quantity(sales, top_n)
    elif name == "purchased-products":
        rows = rank_by_quantity(purchases, top_n)
    elif name == "sold-items":
        rows = sold_items_with_stock(sales, data.products, top_n)
    else:
        return {
            "report": name,
            "from": str(date_from) if date_from else None,
            "to": str(date_to) if date_to else None,
            **summarize(sales, purchases, data.employees),
        }

    return {
        "report": name,
        "from": str(date_from) if date_from else None,
        "to": str(date_to) if date_to else None,
        "rows": rows,
    }
