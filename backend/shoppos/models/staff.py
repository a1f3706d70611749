from __future__ import annotations

from ..extensions import db
from shoppos.time_utils import to_utc_z, utcnow
from .catalog import money

USER_ROLES = frozenset({"admin", "manager", "employee"})


class Employee(db.Model):
    """
    Sales staff. commission is a percentage (0-100) added on top of the
    catalog price of everything the employee sells.
    """
    __tablename__ = "employees"
    __table_args__ = (
        db.UniqueConstraint("phone", name="uq_employees_phone"),
        db.CheckConstraint("commission >= 0 AND commission <= 100", name="ck_employees_commission_range"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, index=True)
    phone = db.Column(db.String(20), nullable=False)
    salary = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    commission = db.Column(db.Numeric(5, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Employee id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "salary": money(self.salary),
            "commission": money(self.commission),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class User(db.Model):
    """Back-office login account. Only the bcrypt hash is stored."""
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("username", name="uq_users_username"),
        db.UniqueConstraint("email", name="uq_users_email"),
        db.CheckConstraint("role IN ('admin', 'manager', 'employee')", name="ck_users_role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), nullable=False)
    email = db.Column(db.String(100), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default="employee")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r}>"

    def to_dict(self) -> dict:
        # password_hash never leaves the service layer
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
