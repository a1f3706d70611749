# Overview: Flask API routes for category operations; parses input and returns JSON responses.

from flask import Blueprint, jsonify

from ..decorators import handle_service_errors, json_body
from ..models import Category
from ..services import catalog_service
from ..validation import ModelValidationPolicy, validate_payload

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "color"},
    required_on_create={"name", "color"},
)

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@handle_service_errors("fetch categories")
def list_categories():
    return jsonify(catalog_service.list_categories()), 200


@categories_bp.post("")
@handle_service_errors("add category")
def create_category_route():
    patch = validate_payload(model=Category, payload=json_body(), policy=CATEGORY_POLICY, partial=False)
    return jsonify(catalog_service.create_category(patch=patch)), 201


@categories_bp.put("/<int:category_id>")
@handle_service_errors("update category")
def update_category_route(category_id: int):
    patch = validate_payload(model=Category, payload=json_body(), policy=CATEGORY_POLICY, partial=True)
    return jsonify(catalog_service.update_category(category_id=category_id, patch=patch)), 200


@categories_bp.delete("/<int:category_id>")
@handle_service_errors("delete category")
def delete_category_route(category_id: int):
    catalog_service.delete_category(category_id=category_id)
    return jsonify({"message": "Category deleted successfully"}), 200
