# Overview: Flask API routes for sales and purchase invoices; parses input and returns JSON responses.

"""
Sales and purchase invoices share one recorder; each kind gets its own
blueprint built by make_transaction_blueprint().

Error mapping (see handle_service_errors):
- 400 bad payload (nothing written)
- 404 unknown employee / product / invoice
- 409 duplicate invoice number, with a suggested free number
"""

from flask import Blueprint, jsonify

from ..decorators import handle_service_errors, json_body
from ..services import transaction_service
from ..services.transaction_service import PURCHASE, SALE, TransactionKind


def make_transaction_blueprint(kind: TransactionKind, name: str, url_prefix: str) -> Blueprint:
    bp = Blueprint(name, __name__, url_prefix=url_prefix)

    @bp.get("")
    @handle_service_errors(f"fetch {name}")
    def list_route():
        headers = transaction_service.list_transactions(kind)
        return jsonify([h.to_dict() for h in headers]), 200

    @bp.get("/next-invoice-number")
    @handle_service_errors("suggest invoice number")
    def next_invoice_number_route():
        return jsonify({"invoice_number": transaction_service.suggest_invoice_number(kind)}), 200

    @bp.get("/invoice/<invoice_number>")
    @handle_service_errors(f"fetch {kind.name}")
    def get_by_invoice_route(invoice_number: str):
        header = transaction_service.get_transaction_by_invoice(kind, invoice_number)
        return jsonify(header.to_dict()), 200

    @bp.get("/<header_id>")
    @handle_service_errors(f"fetch {kind.name}")
    def get_route(header_id: str):
        return jsonify(transaction_service.get_transaction(kind, header_id).to_dict()), 200

    @bp.post("")
    @handle_service_errors(f"record {kind.name}")
    def create_route():
        header = transaction_service.record_transaction(kind, json_body())
        return jsonify(header.to_dict()), 201

    return bp


sales_bp = make_transaction_blueprint(SALE, "sales", "/api/sales")
purchases_bp = make_transaction_blueprint(PURCHASE, "purchases", "/api/purchases")
