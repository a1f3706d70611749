# Overview: Service-layer operations for bulk export, import and clear of shop data.

from __future__ import annotations

from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models import (
    Category,
    Employee,
    Product,
    PurchaseInvoice,
    PurchaseItem,
    Sale,
    SaleItem,
)
from ..validation import ValidationError, coerce_int, coerce_money
from shoppos.time_utils import parse_iso_datetime, to_utc_z, utcnow
from .concurrency import resolve_session, unit_of_work

# Children before parents
DELETE_ORDER = (SaleItem, Sale, PurchaseItem, PurchaseInvoice, Employee, Product, Category)

# Tables whose integer ids come from a serial sequence on PostgreSQL
SERIAL_ID_MODELS = (Category, Product, Employee)


class DataImportError(ValidationError):
    """Raised when an import payload is malformed or inconsistent."""


def export_data(session: Session | None = None) -> dict:
    """Snapshot of catalog, staff and transactions (users are not exported)."""
    session = resolve_session(session)
    return {
        "categories": [c.to_dict() for c in session.query(Category).order_by(Category.name.asc()).all()],
        "products": [p.to_dict() for p in session.query(Product).order_by(Product.name.asc()).all()],
        "employees": [e.to_dict() for e in session.query(Employee).order_by(Employee.name.asc()).all()],
        "sales": [s.to_dict() for s in session.query(Sale).order_by(Sale.created_at.desc()).all()],
        "purchaseInvoices": [
            p.to_dict() for p in session.query(PurchaseInvoice).order_by(PurchaseInvoice.created_at.desc()).all()
        ],
        "exportedAt": to_utc_z(utcnow()),
    }


def _delete_all(session: Session) -> dict[str, int]:
    counts = {}
    for model in DELETE_ORDER:
        counts[model.__tablename__] = session.query(model).delete(synchronize_session=False)
    # Bulk deletes bypass the identity map; drop stale instances so
    # re-inserted rows with the same ids do not collide with them.
    session.expunge_all()
    return counts


def clear_data(session: Session | None = None) -> dict[str, int]:
    """Delete all catalog, staff and transaction rows in one unit of work."""
    session = resolve_session(session)
    with unit_of_work(session):
        counts = _delete_all(session)
    return counts


def sequence_reset_statements(dialect_name: str) -> list:
    """
    Statements that move each serial id sequence past the highest imported
    id. Only PostgreSQL needs them; SQLite derives the next id from the table.
    """
    if dialect_name != "postgresql":
        return []
    return [
        text(
            f"SELECT setval(pg_get_serial_sequence('{model.__tablename__}', 'id'), "
            f"COALESCE(MAX(id), 1), MAX(id) IS NOT NULL) FROM {model.__tablename__}"
        )
        for model in SERIAL_ID_MODELS
    ]


def _rows(payload: dict, key: str) -> list[dict]:
    rows = payload.get(key) or []
    if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
        raise DataImportError(f"{key} must be a list of objects")
    return rows


def _timestamps(row: dict) -> dict:
    values = {}
    for key in ("created_at", "updated_at"):
        raw = row.get(key)
        if raw is None:
            continue
        try:
            values[key] = parse_iso_datetime(raw)
        except (TypeError, ValueError):
            raise DataImportError(f"{key} must be an ISO-8601 datetime")
    return values


def _required(row: dict, key: str, entity: str) -> Any:
    value = row.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise DataImportError(f"{entity}.{key} is required")
    return value


def _items(header: dict, item_model, header_fk: str, entity: str) -> list:
    items = []
    for position, raw in enumerate(_rows(header, "items")):
        quantity = coerce_int(_required(raw, "quantity", entity), f"{entity}.quantity")
        unit_price = coerce_money(_required(raw, "unit_price", entity), f"{entity}.unit_price")
        total_price = raw.get("total_price")
        item = item_model(
            product_id=coerce_int(_required(raw, "product_id", entity), f"{entity}.product_id"),
            position=raw.get("position", position),
            product_name=_required(raw, "product_name", entity),
            quantity=quantity,
            unit_price=unit_price,
            total_price=(
                coerce_money(total_price, f"{entity}.total_price")
                if total_price is not None else unit_price * quantity
            ),
        )
        # Item ownership follows the enclosing header, whatever the item says
        setattr(item, header_fk, str(header["id"]))
        items.append(item)
    return items


def import_data(payload: Any, session: Session | None = None) -> dict[str, int]:
    """
    Replace ALL catalog, staff and transaction data with payload.

    Ids and timestamps are preserved. Runs as one unit of work: on any
    error the previous data is left untouched.
    """
    if not isinstance(payload, dict):
        raise DataImportError("Invalid JSON payload")

    categories = _rows(payload, "categories")
    products = _rows(payload, "products")
    employees = _rows(payload, "employees")
    sales = _rows(payload, "sales")
    purchases = _rows(payload, "purchaseInvoices")

    session = resolve_session(session)
    try:
        with unit_of_work(session):
            _delete_all(session)

            for row in categories:
                session.add(Category(
                    id=coerce_int(_required(row, "id", "category"), "category.id"),
                    name=_required(row, "name", "category"),
                    description=row.get("description"),
                    color=_required(row, "color", "category"),
                    **_timestamps(row),
                ))
            session.flush()

            for row in products:
                session.add(Product(
                    id=coerce_int(_required(row, "id", "product"), "product.id"),
                    name=_required(row, "name", "product"),
                    price=coerce_money(_required(row, "price", "product"), "product.price"),
                    barcode=row.get("barcode") or None,
                    category_id=row.get("category_id"),
                    stock=coerce_int(row.get("stock") or 0, "product.stock"),
                    **_timestamps(row),
                ))
            for row in employees:
                session.add(Employee(
                    id=coerce_int(_required(row, "id", "employee"), "employee.id"),
                    name=_required(row, "name", "employee"),
                    phone=_required(row, "phone", "employee"),
                    salary=coerce_money(row.get("salary") or 0, "employee.salary"),
                    commission=coerce_money(row.get("commission") or 0, "employee.commission"),
                    **_timestamps(row),
                ))
            session.flush()

            for row in sales:
                _required(row, "id", "sale")
                session.add(Sale(
                    id=str(row["id"]),
                    invoice_number=_required(row, "invoice_number", "sale"),
                    total_amount=coerce_money(_required(row, "total_amount", "sale"), "sale.total_amount"),
                    employee_id=row.get("employee_id"),
                    employee_name=row.get("employee_name"),
                    seller_user=row.get("seller_user"),
                    **_timestamps(row),
                ))
                session.add_all(_items(row, SaleItem, "sale_id", "sale_item"))

            for row in purchases:
                _required(row, "id", "purchase")
                session.add(PurchaseInvoice(
                    id=str(row["id"]),
                    invoice_number=_required(row, "invoice_number", "purchase"),
                    supplier_name=_required(row, "supplier_name", "purchase"),
                    total_amount=coerce_money(_required(row, "total_amount", "purchase"), "purchase.total_amount"),
                    **_timestamps(row),
                ))
                session.add_all(_items(row, PurchaseItem, "purchase_id", "purchase_item"))
            session.flush()

            for statement in sequence_reset_statements(session.get_bind().dialect.name):
                session.execute(statement)
    except IntegrityError as exc:
        raise DataImportError(f"Import rejected by database constraints: {exc.orig}") from exc

    return {
        "categories": len(categories),
        "products": len(products),
        "employees": len(employees),
        "sales": len(sales),
        "purchaseInvoices": len(purchases),
    }
