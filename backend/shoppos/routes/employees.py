# Overview: Flask API routes for employee operations; parses input and returns JSON responses.

from flask import Blueprint, jsonify

from ..decorators import handle_service_errors, json_body
from ..models import Employee
from ..services import employee_service
from ..validation import ModelValidationPolicy, validate_payload, enforce_rules_employee

EMPLOYEE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "phone", "salary", "commission"},
    required_on_create={"name", "phone"},
)

employees_bp = Blueprint("employees", __name__, url_prefix="/api/employees")


@employees_bp.get("")
@handle_service_errors("fetch employees")
def list_employees():
    return jsonify(employee_service.list_employees()), 200


@employees_bp.get("/<int:employee_id>")
@handle_service_errors("fetch employee")
def get_employee_route(employee_id: int):
    return jsonify(employee_service.get_employee(employee_id).to_dict()), 200


@employees_bp.post("")
@handle_service_errors("add employee")
def create_employee_route():
    patch = validate_payload(model=Employee, payload=json_body(), policy=EMPLOYEE_POLICY, partial=False)
    enforce_rules_employee(patch)
    return jsonify(employee_service.create_employee(patch=patch)), 201


@employees_bp.put("/<int:employee_id>")
@handle_service_errors("update employee")
def update_employee_route(employee_id: int):
    patch = validate_payload(model=Employee, payload=json_body(), policy=EMPLOYEE_POLICY, partial=True)
    enforce_rules_employee(patch)
    return jsonify(employee_service.update_employee(employee_id=employee_id, patch=patch)), 200


@employees_bp.delete("/<int:employee_id>")
@handle_service_errors("delete employee")
def delete_employee_route(employee_id: int):
    employee_service.delete_employee(employee_id=employee_id)
    return jsonify({"message": "Employee deleted successfully"}), 200
