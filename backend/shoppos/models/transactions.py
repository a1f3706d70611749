from __future__ import annotations

from typing import NamedTuple

from ..extensions import db
from shoppos.time_utils import to_utc_z, utcnow
from .catalog import money


class LineKey(NamedTuple):
    """
    Identity of a line item: (owning header id, product id).

    Stored as a composite primary key, so no delimiter is ever needed and
    one header can hold a given product at most once.
    """
    header_id: str
    product_id: int


class Sale(db.Model):
    """
    Sale header. Written once, together with all of its items, by the
    transaction recorder; never edited afterwards.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.UniqueConstraint("invoice_number", name="uq_sales_invoice_number"),
        db.Index("ix_sales_created_at", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True)
    invoice_number = db.Column(db.String(50), nullable=False)
    total_amount = db.Column(db.Numeric(10, 2), nullable=False)

    # Counterparty: the employee who made the sale (name snapshot kept)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=True, index=True)
    employee_name = db.Column(db.String(100), nullable=True)
    seller_user = db.Column(db.String(100), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    employee = db.relationship("Employee", backref=db.backref("sales", lazy=True))
    items = db.relationship(
        "SaleItem",
        backref="sale",
        order_by="SaleItem.position",
        lazy=True,
        cascade="all, delete-orphan",
    )

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "total_amount": money(self.total_amount),
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "seller_user": self.seller_user,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    """Individual line item on a sale."""
    __tablename__ = "sale_items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 1", name="ck_sale_items_quantity_positive"),
    )

    sale_id = db.Column(db.String(36), db.ForeignKey("sales.id"), primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), primary_key=True, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)

    product_name = db.Column(db.String(100), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)

    product = db.relationship("Product")

    @property
    def key(self) -> LineKey:
        return LineKey(self.sale_id, self.product_id)

    def to_dict(self) -> dict:
        return {
            "key": self.key._asdict(),
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "position": self.position,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": money(self.unit_price),
            "total_price": money(self.total_price),
        }


class PurchaseInvoice(db.Model):
    """Supplier invoice header; same write-once lifecycle as Sale."""
    __tablename__ = "purchase_invoices"
    __table_args__ = (
        db.UniqueConstraint("invoice_number", name="uq_purchase_invoices_invoice_number"),
        db.Index("ix_purchase_invoices_created_at", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True)
    invoice_number = db.Column(db.String(50), nullable=False)
    supplier_name = db.Column(db.String(100), nullable=False)
    total_amount = db.Column(db.Numeric(10, 2), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    items = db.relationship(
        "PurchaseItem",
        backref="purchase",
        order_by="PurchaseItem.position",
        lazy=True,
        cascade="all, delete-orphan",
    )

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "supplier_name": self.supplier_name,
            "total_amount": money(self.total_amount),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class PurchaseItem(db.Model):
    """Individual line item on a purchase invoice."""
    __tablename__ = "purchase_items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 1", name="ck_purchase_items_quantity_positive"),
    )

    purchase_id = db.Column(db.String(36), db.ForeignKey("purchase_invoices.id"), primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), primary_key=True, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)

    product_name = db.Column(db.String(100), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)

    product = db.relationship("Product")

    @property
    def key(self) -> LineKey:
        return LineKey(self.purchase_id, self.product_id)

    def to_dict(self) -> dict:
        return {
            "key": self.key._asdict(),
            "purchase_id": self.purchase_id,
            "product_id": self.product_id,
            "position": self.position,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": money(self.unit_price),
            "total_price": money(self.total_price),
        }
