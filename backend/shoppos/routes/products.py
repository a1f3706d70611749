# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/shoppos/routes/products.py
"""
Product catalog routes.

Deletes are hard deletes and are refused (400) once the product appears
on any sale or purchase invoice.
"""
from flask import Blueprint, jsonify

from ..decorators import handle_service_errors, json_body
from ..models import Product
from ..services import catalog_service
from ..validation import ModelValidationPolicy, validate_payload, enforce_rules_product

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "price", "barcode", "category_id", "stock"},
    required_on_create={"name", "price"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@handle_service_errors("fetch products")
def list_products():
    return jsonify(catalog_service.list_products()), 200


@products_bp.get("/<int:product_id>")
@handle_service_errors("fetch product")
def get_product_route(product_id: int):
    return jsonify(catalog_service.get_product(product_id).to_dict()), 200


@products_bp.get("/barcode/<barcode>")
@handle_service_errors("fetch product")
def get_product_by_barcode_route(barcode: str):
    return jsonify(catalog_service.get_product_by_barcode(barcode).to_dict()), 200


@products_bp.post("")
@handle_service_errors("add product")
def create_product_route():
    """Create a new product. name and price are required; barcode must be unique."""
    patch = validate_payload(model=Product, payload=json_body(), policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)
    return jsonify(catalog_service.create_product(patch=patch)), 201


@products_bp.put("/<int:product_id>")
@handle_service_errors("update product")
def update_product_route(product_id: int):
    patch = validate_payload(model=Product, payload=json_body(), policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product(patch)
    return jsonify(catalog_service.update_product(product_id=product_id, patch=patch)), 200


@products_bp.delete("/<int:product_id>")
@handle_service_errors("delete product")
def delete_product_route(product_id: int):
    catalog_service.delete_product(product_id=product_id)
    return jsonify({"message": "Product deleted successfully"}), 200
