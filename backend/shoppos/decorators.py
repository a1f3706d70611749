# Overview: Request decorators for API routes.

from functools import wraps
from flask import current_app, jsonify, request

from .validation import (
    ConflictError,
    NotFoundError,
    ReferentialIntegrityError,
    ValidationError,
)
from .services.transaction_service import DuplicateInvoiceError, TransactionError


def error_response(message: str, kind: str, status: int, details: dict | None = None):
    """
    Uniform error body.

    kind is one of: validation, conflict, not_found, integrity, auth, server.
    """
    body = {"error": message, "kind": kind}
    if details:
        body["details"] = details
    return jsonify(body), status


def json_body() -> dict:
    """Request JSON as a dict; anything else is a 400."""
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


def handle_service_errors(action: str):
    """
    Map service exceptions onto HTTP responses.

    - ValidationError -> 400
    - ReferentialIntegrityError -> 400 (delete blocked)
    - NotFoundError -> 404
    - ConflictError / DuplicateInvoiceError -> 409
    - anything else -> 500, logged with traceback
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except DuplicateInvoiceError as e:
                return error_response(
                    str(e),
                    "conflict",
                    409,
                    {"invoice_number": e.invoice_number, "suggested_invoice_number": e.suggested},
                )
            except ConflictError as e:
                return error_response(str(e), "conflict", 409)
            except ReferentialIntegrityError as e:
                return error_response(str(e), "integrity", 400)
            except ValidationError as e:
                return error_response(str(e), "validation", 400)
            except NotFoundError as e:
                return error_response(str(e), "not_found", 404)
            except TransactionError as e:
                current_app.logger.exception("Failed to %s", action)
                return error_response(str(e), "server", 500)
            except Exception:
                current_app.logger.exception("Failed to %s", action)
                return error_response(f"Failed to {action}", "server", 500)

        return decorated_function

    return decorator
