# Overview: Service-layer operations for employees and commission pricing.

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models import Employee, Sale
from ..validation import CENT, ConflictError, NotFoundError, ReferentialIntegrityError
from .catalog_service import apply_patch
from .concurrency import resolve_session, unit_of_work

EMPLOYEE_MUTABLE_FIELDS = {"name", "phone", "salary", "commission"}


def commission_price(price: Decimal, commission_pct: Decimal | None) -> Decimal:
    """
    Price charged when an employee sells an item: catalog price plus the
    employee's commission percentage of it, rounded to cents.
    """
    price = Decimal(price)
    pct = Decimal(commission_pct or 0)
    return (price + price * pct / Decimal(100)).quantize(CENT, rounding=ROUND_HALF_UP)


def list_employees(session: Session | None = None) -> list[dict]:
    session = resolve_session(session)
    employees = session.query(Employee).order_by(Employee.name.asc(), Employee.id.asc()).all()
    return [e.to_dict() for e in employees]


def get_employee(employee_id: int, session: Session | None = None) -> Employee:
    employee = resolve_session(session).get(Employee, employee_id)
    if employee is None:
        raise NotFoundError("Employee not found")
    return employee


def _ensure_phone_free(session: Session, phone: str, exclude_id: int | None = None) -> None:
    query = session.query(Employee.id).filter(Employee.phone == phone)
    if exclude_id is not None:
        query = query.filter(Employee.id != exclude_id)
    if query.first():
        raise ConflictError("Phone number already exists")


def create_employee(*, patch: dict, session: Session | None = None) -> dict:
    session = resolve_session(session)
    try:
        with unit_of_work(session):
            _ensure_phone_free(session, patch["phone"])
            employee = Employee(salary=Decimal("0.00"), commission=Decimal("0.00"))
            apply_patch(employee, patch, EMPLOYEE_MUTABLE_FIELDS)
            session.add(employee)
    except IntegrityError as exc:
        raise ConflictError("Phone number already exists") from exc
    return employee.to_dict()


def update_employee(*, employee_id: int, patch: dict, session: Session | None = None) -> dict:
    session = resolve_session(session)
    try:
        with unit_of_work(session):
            employee = get_employee(employee_id, session)
            if "phone" in patch and patch["phone"] != employee.phone:
                _ensure_phone_free(session, patch["phone"], exclude_id=employee.id)
            apply_patch(employee, patch, EMPLOYEE_MUTABLE_FIELDS)
    except IntegrityError as exc:
        raise ConflictError("Phone number already exists") from exc
    return employee.to_dict()


def delete_employee(*, employee_id: int, session: Session | None = None) -> None:
    """Hard delete. Refused once the employee has any sales."""
    session = resolve_session(session)
    with unit_of_work(session):
        employee = get_employee(employee_id, session)
        sales = session.query(func.count(Sale.id)).filter(Sale.employee_id == employee.id).scalar()
        if sales:
            raise ReferentialIntegrityError("Cannot delete employee. They have sales records.")
        session.delete(employee)
