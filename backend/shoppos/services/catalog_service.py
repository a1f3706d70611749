# backend/shoppos/services/catalog_service.py
"""
Catalog Service - categories and products.

All writes take a validated patch dict (see validation.validate_payload)
and apply it field by field. Uniqueness (category name, product barcode)
is checked up front for a clear message and again by the database
constraint at commit time.
"""
from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models import Category, Product, SaleItem, PurchaseItem
from ..validation import ConflictError, NotFoundError, ReferentialIntegrityError, ValidationError
from .concurrency import resolve_session, unit_of_work

CATEGORY_MUTABLE_FIELDS = {"name", "description", "color"}
PRODUCT_MUTABLE_FIELDS = {"name", "price", "barcode", "category_id", "stock"}


def apply_patch(obj, patch: dict, mutable_fields: set[str]) -> None:
    for k, v in patch.items():
        if k not in mutable_fields:
            continue
        setattr(obj, k, v)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

def list_categories(session: Session | None = None) -> list[dict]:
    session = resolve_session(session)
    categories = session.query(Category).order_by(Category.name.asc()).all()
    return [c.to_dict() for c in categories]


def get_category(category_id: int, session: Session | None = None) -> Category:
    category = resolve_session(session).get(Category, category_id)
    if category is None:
        raise NotFoundError("Category not found")
    return category


def _ensure_category_name_free(session: Session, name: str, exclude_id: int | None = None) -> None:
    query = session.query(Category.id).filter(Category.name == name)
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first():
        raise ConflictError("Category name already exists")


def create_category(*, patch: dict, session: Session | None = None) -> dict:
    session = resolve_session(session)
    try:
        with unit_of_work(session):
            _ensure_category_name_free(session, patch["name"])
            category = Category()
            apply_patch(category, patch, CATEGORY_MUTABLE_FIELDS)
            session.add(category)
    except IntegrityError as exc:
        raise ConflictError("Category name already exists") from exc
    return category.to_dict()


def update_category(*, category_id: int, patch: dict, session: Session | None = None) -> dict:
    session = resolve_session(session)
    try:
        with unit_of_work(session):
            category = get_category(category_id, session)
            if "name" in patch and patch["name"] != category.name:
                _ensure_category_name_free(session, patch["name"], exclude_id=category.id)
            apply_patch(category, patch, CATEGORY_MUTABLE_FIELDS)
    except IntegrityError as exc:
        raise ConflictError("Category name already exists") from exc
    return category.to_dict()


def delete_category(*, category_id: int, session: Session | None = None) -> None:
    """Hard delete. Refused while any product still points at the category."""
    session = resolve_session(session)
    with unit_of_work(session):
        category = get_category(category_id, session)
        in_use = session.query(func.count(Product.id)).filter(Product.category_id == category.id).scalar()
        if in_use:
            raise ReferentialIntegrityError("Cannot delete category. It is being used by products.")
        session.delete(category)


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

def list_products(session: Session | None = None) -> list[dict]:
    session = resolve_session(session)
    products = session.query(Product).order_by(Product.name.asc(), Product.id.asc()).all()
    return [p.to_dict() for p in products]


def get_product(product_id: int, session: Session | None = None) -> Product:
    product = resolve_session(session).get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


def get_product_by_barcode(barcode: str, session: Session | None = None) -> Product:
    product = resolve_session(session).query(Product).filter(Product.barcode == barcode).first()
    if product is None:
        raise NotFoundError("Product not found")
    return product


def find_product(
    *,
    barcode: str | None = None,
    name: str | None = None,
    session: Session | None = None,
) -> Product | None:
    """Barcode match first, then exact name match."""
    session = resolve_session(session)
    if barcode:
        product = session.query(Product).filter(Product.barcode == barcode).first()
        if product is not None:
            return product
    if name:
        return session.query(Product).filter(Product.name == name).order_by(Product.id.asc()).first()
    return None


def _ensure_barcode_free(session: Session, barcode: str | None, exclude_id: int | None = None) -> None:
    if not barcode:
        return
    query = session.query(Product.id).filter(Product.barcode == barcode)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise ConflictError("Barcode already exists")


def _ensure_category_exists(session: Session, category_id: int | None) -> None:
    if category_id is not None and session.get(Category, category_id) is None:
        raise ValidationError("Category not found")


def build_product(session: Session, patch: dict) -> Product:
    """Create a product inside the caller's unit of work (no commit)."""
    _ensure_barcode_free(session, patch.get("barcode"))
    _ensure_category_exists(session, patch.get("category_id"))
    product = Product(stock=0)
    apply_patch(product, patch, PRODUCT_MUTABLE_FIELDS)
    session.add(product)
    session.flush()
    return product


def create_product(*, patch: dict, session: Session | None = None) -> dict:
    session = resolve_session(session)
    try:
        with unit_of_work(session):
            product = build_product(session, patch)
    except IntegrityError as exc:
        raise ConflictError("Barcode already exists") from exc
    return product.to_dict()


def update_product(*, product_id: int, patch: dict, session: Session | None = None) -> dict:
    session = resolve_session(session)
    try:
        with unit_of_work(session):
            product = get_product(product_id, session)
            if "barcode" in patch and patch["barcode"] != product.barcode:
                _ensure_barcode_free(session, patch["barcode"], exclude_id=product.id)
            if "category_id" in patch:
                _ensure_category_exists(session, patch["category_id"])
            apply_patch(product, patch, PRODUCT_MUTABLE_FIELDS)
    except IntegrityError as exc:
        raise ConflictError("Barcode already exists") from exc
    return product.to_dict()


def delete_product(*, product_id: int, session: Session | None = None) -> None:
    """Hard delete. Refused once the product appears on any sale or purchase."""
    session = resolve_session(session)
    with unit_of_work(session):
        product = get_product(product_id, session)
        sold = session.query(func.count()).select_from(SaleItem).filter(SaleItem.product_id == product.id).scalar()
        if sold:
            raise ReferentialIntegrityError("Cannot delete product. It has been used in sales.")
        purchased = (
            session.query(func.count()).select_from(PurchaseItem)
            .filter(PurchaseItem.product_id == product.id).scalar()
        )
        if purchased:
            raise ReferentialIntegrityError("Cannot delete product. It has been used in purchase invoices.")
        session.delete(product)
