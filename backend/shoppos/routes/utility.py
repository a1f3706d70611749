# Overview: Flask API routes for bulk data export, import and clear.

from flask import Blueprint, current_app, jsonify

from ..decorators import handle_service_errors, json_body
from ..services import data_service

utility_bp = Blueprint("utility", __name__, url_prefix="/api/utility")


@utility_bp.get("/export")
@handle_service_errors("export data")
def export_route():
    return jsonify(data_service.export_data()), 200


@utility_bp.post("/import")
@handle_service_errors("import data")
def import_route():
    counts = data_service.import_data(json_body())
    current_app.logger.info("Imported data: %s", counts)
    return jsonify({"message": "Data imported successfully", "imported": counts}), 200


@utility_bp.post("/clear")
@handle_service_errors("clear data")
def clear_route():
    counts = data_service.clear_data()
    current_app.logger.warning("Cleared all shop data: %s", counts)
    return jsonify({"message": "All data cleared successfully", "deleted": counts}), 200
