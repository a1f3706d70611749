"""
Transaction Service - atomic recording of sales and purchase invoices.

WHY: A header without its items (or items without a header) would corrupt
every report built on top of them. Each call writes one header plus all
of its line items inside a single unit of work: either every row is
committed or none is.

Sales and purchase invoices share one recorder; a TransactionKind
describes the tables and counterparty rules of each.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import (
    Category,
    Employee,
    LineKey,
    Product,
    PurchaseInvoice,
    PurchaseItem,
    Sale,
    SaleItem,
)
from ..validation import CENT, ConflictError, NotFoundError, ValidationError, coerce_int, coerce_money
from shoppos.time_utils import utcnow
from .catalog_service import build_product, find_product, get_product
from .concurrency import resolve_session, unit_of_work
from .employee_service import commission_price

logger = logging.getLogger(__name__)


class TransactionError(Exception):
    """Generic persistence failure while recording; nothing was written."""


class DuplicateInvoiceError(ConflictError):
    """Invoice number already taken; caller should pick a new one and retry."""

    def __init__(self, invoice_number: str, suggested: str | None = None):
        super().__init__("Invoice number already exists")
        self.invoice_number = invoice_number
        self.suggested = suggested


@dataclass(frozen=True)
class TransactionKind:
    name: str
    header_model: type
    item_model: type
    header_fk: str
    invoice_prefix: str
    # Purchases may introduce products that are not in the catalog yet
    creates_products: bool


SALE = TransactionKind(
    name="sale",
    header_model=Sale,
    item_model=SaleItem,
    header_fk="sale_id",
    invoice_prefix="INV",
    creates_products=False,
)

PURCHASE = TransactionKind(
    name="purchase",
    header_model=PurchaseInvoice,
    item_model=PurchaseItem,
    header_fk="purchase_id",
    invoice_prefix="PUR",
    creates_products=True,
)


@dataclass
class LineRequest:
    quantity: int
    unit_price: Decimal | None
    product_id: int | None = None
    product_name: str | None = None
    barcode: str | None = None
    sale_price: Decimal | None = None
    category: str | None = None


@dataclass
class TransactionRequest:
    invoice_number: str
    total_amount: Decimal
    lines: list[LineRequest]
    counterparty: dict[str, Any] = field(default_factory=dict)


_EPOCH = datetime(1970, 1, 1)


def new_header_id() -> str:
    return str(uuid.uuid4())


def line_total(quantity: int, unit_price: Decimal) -> Decimal:
    return (Decimal(unit_price) * quantity).quantize(CENT)


# ---------------------------------------------------------------------------
# Request validation (no database access)
# ---------------------------------------------------------------------------

def _clean_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_line(kind: TransactionKind, index: int, raw: Any) -> LineRequest:
    label = f"items[{index}]"
    if not isinstance(raw, dict):
        raise ValidationError(f"{label} must be an object")

    quantity = coerce_int(raw.get("quantity"), f"{label}.quantity") if raw.get("quantity") is not None else None
    if quantity is None or quantity <= 0:
        raise ValidationError(f"{label}.quantity must be greater than zero")

    unit_price = None
    if raw.get("unit_price") is not None:
        unit_price = coerce_money(raw["unit_price"], f"{label}.unit_price")
        if unit_price <= 0:
            raise ValidationError(f"{label}.unit_price must be greater than zero")
    elif kind is PURCHASE:
        raise ValidationError(f"{label}.unit_price is required")

    product_id = None
    if raw.get("product_id") is not None:
        product_id = coerce_int(raw["product_id"], f"{label}.product_id")

    line = LineRequest(
        quantity=quantity,
        unit_price=unit_price,
        product_id=product_id,
        product_name=_clean_str(raw.get("product_name")),
    )

    if kind.creates_products:
        line.barcode = _clean_str(raw.get("barcode"))
        line.category = _clean_str(raw.get("category"))
        if raw.get("sale_price") is not None:
            line.sale_price = coerce_money(raw["sale_price"], f"{label}.sale_price")
            if line.sale_price < 0:
                raise ValidationError(f"{label}.sale_price must be >= 0")
        if line.product_id is None and line.barcode is None and line.product_name is None:
            raise ValidationError(f"{label} needs product_id, barcode or product_name")
    elif line.product_id is None:
        raise ValidationError(f"{label}.product_id is required")

    return line


def parse_request(kind: TransactionKind, payload: Any) -> TransactionRequest:
    """
    Validate and normalize a {header..., items: [...]} payload.

    Fails fast with ValidationError before any database interaction.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    invoice_number = _clean_str(payload.get("invoice_number"))
    if invoice_number is None:
        raise ValidationError("invoice_number is required")
    if len(invoice_number) > 50:
        raise ValidationError("invoice_number exceeds max length 50")

    if payload.get("total_amount") is None:
        raise ValidationError("total_amount is required")
    total_amount = coerce_money(payload["total_amount"], "total_amount")
    if total_amount <= 0:
        raise ValidationError("total_amount must be greater than zero")

    if kind is SALE:
        if payload.get("employee_id") is None:
            raise ValidationError("employee_id is required")
        counterparty = {
            "employee_id": coerce_int(payload["employee_id"], "employee_id"),
            "employee_name": _clean_str(payload.get("employee_name")),
            "seller_user": _clean_str(payload.get("seller_user")),
        }
    else:
        supplier_name = _clean_str(payload.get("supplier_name"))
        if supplier_name is None:
            raise ValidationError("supplier_name is required")
        counterparty = {"supplier_name": supplier_name}

    items = payload.get("items")
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")

    lines = [_parse_line(kind, i, raw) for i, raw in enumerate(items)]

    seen: set[int] = set()
    for line in lines:
        if line.product_id is None:
            continue
        if line.product_id in seen:
            raise ValidationError(f"Duplicate product in items: {line.product_id}")
        seen.add(line.product_id)

    return TransactionRequest(
        invoice_number=invoice_number,
        total_amount=total_amount,
        lines=lines,
        counterparty=counterparty,
    )


# ---------------------------------------------------------------------------
# Invoice numbers
# ---------------------------------------------------------------------------

def invoice_number_exists(kind: TransactionKind, invoice_number: str, session: Session | None = None) -> bool:
    model = kind.header_model
    return (
        resolve_session(session).query(model.id)
        .filter(model.invoice_number == invoice_number)
        .first()
        is not None
    )


def default_invoice_number(kind: TransactionKind, now=None) -> str:
    """INV-YYYYMMDD-NNNN for sales, PUR-<epoch ms> for purchases."""
    now = now or utcnow()
    epoch_ms = int((now - _EPOCH).total_seconds() * 1000)
    if kind is SALE:
        return f"{kind.invoice_prefix}-{now:%Y%m%d}-{str(epoch_ms)[-4:]}"
    return f"{kind.invoice_prefix}-{epoch_ms}"


def suggest_invoice_number(
    kind: TransactionKind,
    *,
    base: str | None = None,
    now=None,
    session: Session | None = None,
) -> str:
    """First free number among base, base-1, base-2, ..."""
    base = base or default_invoice_number(kind, now)
    candidate = base
    counter = 1
    while invoice_number_exists(kind, candidate, session):
        candidate = f"{base}-{counter}"
        counter += 1
    return candidate


def _is_invoice_conflict(exc: IntegrityError) -> bool:
    return "invoice_number" in str(exc.orig).lower()


def _safe_suggestion(kind: TransactionKind, invoice_number: str, session: Session) -> str | None:
    try:
        return suggest_invoice_number(kind, base=invoice_number, session=session)
    except SQLAlchemyError:
        session.rollback()
        logger.warning("Could not compute a free %s invoice number", kind.name)
        return None


# ---------------------------------------------------------------------------
# Recording
# ---------------------------------------------------------------------------

def _resolve_product(kind: TransactionKind, session: Session, line: LineRequest) -> Product:
    if line.product_id is not None:
        return get_product(line.product_id, session)

    product = find_product(barcode=line.barcode, name=line.product_name, session=session)
    if product is not None:
        return product

    if not kind.creates_products or line.product_name is None:
        raise NotFoundError("Product not found")

    category_id = None
    if line.category:
        category = session.query(Category).filter(Category.name == line.category).first()
        category_id = category.id if category else None

    return build_product(
        session,
        {
            "name": line.product_name,
            "price": line.sale_price if line.sale_price else line.unit_price,
            "barcode": line.barcode,
            "category_id": category_id,
        },
    )


def _header_counterparty(kind: TransactionKind, session: Session, request: TransactionRequest):
    """Returns (header column values, employee or None)."""
    if kind is not SALE:
        return dict(request.counterparty), None

    employee = session.get(Employee, request.counterparty["employee_id"])
    if employee is None:
        raise NotFoundError("Employee not found")
    values = dict(request.counterparty)
    values["employee_name"] = values.get("employee_name") or employee.name
    return values, employee


def _write(kind: TransactionKind, session: Session, header_id: str, request: TransactionRequest):
    if invoice_number_exists(kind, request.invoice_number, session):
        raise DuplicateInvoiceError(
            request.invoice_number,
            suggest_invoice_number(kind, base=request.invoice_number, session=session),
        )

    counterparty, employee = _header_counterparty(kind, session, request)
    header = kind.header_model(
        id=header_id,
        invoice_number=request.invoice_number,
        total_amount=request.total_amount,
        **counterparty,
    )
    session.add(header)
    session.flush()

    seen: set[LineKey] = set()
    items_sum = Decimal("0.00")
    for position, line in enumerate(request.lines):
        product = _resolve_product(kind, session, line)
        key = LineKey(header_id, product.id)
        if key in seen:
            raise ValidationError(f"Duplicate product in items: {product.id}")
        seen.add(key)

        unit_price = line.unit_price
        if unit_price is None:
            unit_price = commission_price(product.price, employee.commission if employee else None)

        total_price = line_total(line.quantity, unit_price)
        items_sum += total_price
        item = kind.item_model(
            product_id=product.id,
            position=position,
            product_name=line.product_name or product.name,
            quantity=line.quantity,
            unit_price=unit_price,
            total_price=total_price,
        )
        setattr(item, kind.header_fk, header_id)
        session.add(item)

    session.flush()

    if items_sum != request.total_amount:
        logger.warning(
            "%s %s declared total %s but items sum to %s",
            kind.name, request.invoice_number, request.total_amount, items_sum,
        )
    return header


def record_transaction(kind: TransactionKind, payload: Any, *, session: Session | None = None):
    """
    Validate, then persist header + items in one unit of work.

    Raises:
        ValidationError: bad input (nothing touched the database)
        NotFoundError: unknown employee / product
        DuplicateInvoiceError: invoice number already used
        TransactionError: any other storage failure (fully rolled back)
    """
    request = parse_request(kind, payload)
    session = resolve_session(session)
    header_id = new_header_id()

    try:
        with unit_of_work(session):
            header = _write(kind, session, header_id, request)
    except (ValidationError, NotFoundError, ConflictError):
        logger.warning("Rolled back %s %s", kind.name, request.invoice_number)
        raise
    except IntegrityError as exc:
        logger.warning("Rolled back %s %s: %s", kind.name, request.invoice_number, exc.orig)
        if _is_invoice_conflict(exc):
            raise DuplicateInvoiceError(
                request.invoice_number,
                _safe_suggestion(kind, request.invoice_number, session),
            ) from exc
        raise TransactionError(f"Failed to record {kind.name}") from exc
    except SQLAlchemyError as exc:
        logger.warning("Rolled back %s %s: %s", kind.name, request.invoice_number, exc)
        raise TransactionError(f"Failed to record {kind.name}") from exc

    return header


def record_sale(payload: Any, *, session: Session | None = None) -> Sale:
    return record_transaction(SALE, payload, session=session)


def record_purchase(payload: Any, *, session: Session | None = None) -> PurchaseInvoice:
    return record_transaction(PURCHASE, payload, session=session)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def list_transactions(kind: TransactionKind, session: Session | None = None) -> list:
    """All headers (items attached), newest first."""
    model = kind.header_model
    return (
        resolve_session(session).query(model)
        .order_by(model.created_at.desc(), model.invoice_number.desc())
        .all()
    )


def get_transaction(kind: TransactionKind, header_id: str, session: Session | None = None):
    header = resolve_session(session).get(kind.header_model, header_id)
    if header is None:
        raise NotFoundError(f"{kind.name.capitalize()} not found")
    return header


def get_transaction_by_invoice(kind: TransactionKind, invoice_number: str, session: Session | None = None):
    model = kind.header_model
    header = resolve_session(session).query(model).filter(model.invoice_number == invoice_number).first()
    if header is None:
        raise NotFoundError(f"{kind.name.capitalize()} not found")
    return header
