# Overview: Pytest coverage for payload validation and coercion helpers.

from decimal import Decimal

import pytest

from shoppos.models import Employee, Product, User
from shoppos.routes.employees import EMPLOYEE_POLICY
from shoppos.routes.products import PRODUCT_POLICY
from shoppos.routes.users import USER_POLICY
from shoppos.validation import (
    ValidationError,
    coerce_int,
    coerce_money,
    enforce_rules_employee,
    enforce_rules_product,
    enforce_rules_user,
    validate_payload,
)


class TestCoercion:
    def test_money_rounds_half_up(self):
        assert coerce_money("2.345", "price") == Decimal("2.35")
        assert coerce_money(10, "price") == Decimal("10.00")

    @pytest.mark.parametrize("value", [True, None, "", "abc", "NaN", "Infinity", "100000000"])
    def test_money_rejects(self, value):
        with pytest.raises(ValidationError):
            coerce_money(value, "price")

    def test_int(self):
        assert coerce_int("42", "stock") == 42
        assert coerce_int(3.0, "stock") == 3

    @pytest.mark.parametrize("value", [True, "1e3", "1.5", 1.5, "", "x"])
    def test_int_rejects(self, value):
        with pytest.raises(ValidationError):
            coerce_int(value, "stock")


class TestValidatePayload:
    def test_create_requires_fields(self):
        with pytest.raises(ValidationError, match="Missing required fields: price"):
            validate_payload(model=Product, payload={"name": "Tea"}, policy=PRODUCT_POLICY, partial=False)

    def test_rejects_unknown_fields(self):
        with pytest.raises(ValidationError, match="Field not allowed: id"):
            validate_payload(model=Product, payload={"id": 5}, policy=PRODUCT_POLICY, partial=True)

    def test_normalizes(self):
        patch = validate_payload(
            model=Product,
            payload={"name": "  Tea ", "price": "1.5", "barcode": "  ", "stock": "4"},
            policy=PRODUCT_POLICY,
            partial=False,
        )
        assert patch == {"name": "Tea", "price": Decimal("1.50"), "barcode": None, "stock": 4}

    def test_max_length(self):
        with pytest.raises(ValidationError, match="max length 50"):
            validate_payload(model=Product, payload={"barcode": "9" * 51}, policy=PRODUCT_POLICY, partial=True)

    def test_non_nullable_null(self):
        with pytest.raises(ValidationError, match="name cannot be null"):
            validate_payload(model=Product, payload={"name": None}, policy=PRODUCT_POLICY, partial=True)

    def test_partial_only_validates_given_keys(self):
        patch = validate_payload(model=Employee, payload={"salary": 10}, policy=EMPLOYEE_POLICY, partial=True)
        assert patch == {"salary": Decimal("10.00")}


class TestBusinessRules:
    def test_product(self):
        with pytest.raises(ValidationError):
            enforce_rules_product({"price": Decimal("-1.00")})
        with pytest.raises(ValidationError):
            enforce_rules_product({"stock": -1})

    def test_employee_commission_range(self):
        enforce_rules_employee({"commission": Decimal("100")})
        with pytest.raises(ValidationError):
            enforce_rules_employee({"commission": Decimal("100.01")})

    def test_user_role_and_email(self):
        patch = validate_payload(
            model=User,
            payload={"username": "x", "email": "x@y", "role": "owner"},
            policy=USER_POLICY,
            partial=False,
        )
        with pytest.raises(ValidationError, match="Invalid role"):
            enforce_rules_user(patch)
        with pytest.raises(ValidationError, match="email"):
            enforce_rules_user({"email": "nope"})
