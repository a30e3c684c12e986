# Overview: Flask API routes for customer operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..errors import ApiError, error_response
from ..models import Customer
from ..permissions import Action
from ..services import customers_service
from ..validation import ModelValidationPolicy, json_body, validate_payload
from ..decorators import require_auth, require_permission

CUSTOMER_POLICY = ModelValidationPolicy(
    fields={"name": "name", "phone": "phone", "address": "address", "notes": "notes"},
    required_on_create={"name"},
)

customers_bp = Blueprint("customers", __name__, url_prefix="/api/v1/customers")


@customers_bp.get("")
@require_auth
@require_permission(Action.VIEW_CUSTOMERS)
def list_customers():
    customers = customers_service.list_customers(request.args.get("q"))
    return jsonify([c.to_dict() for c in customers])


@customers_bp.get("/<int:customer_id>")
@require_auth
@require_permission(Action.VIEW_CUSTOMERS)
def get_customer(customer_id: int):
    try:
        customer = customers_service.get_customer(customer_id)
    except ApiError as e:
        return error_response(e)
    return jsonify(customer.to_dict())


@customers_bp.post("")
@require_auth
@require_permission(Action.MANAGE_CUSTOMERS)
def create_customer_route():
    try:
        payload = json_body()
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=False)
        customer = customers_service.create_customer(patch=patch)
    except ApiError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Customer creation failed")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(customer.to_dict()), 201


@customers_bp.put("/<int:customer_id>")
@require_auth
@require_permission(Action.MANAGE_CUSTOMERS)
def update_customer_route(customer_id: int):
    try:
        payload = json_body()
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=True)
        customer = customers_service.update_customer(customer_id, patch=patch)
    except ApiError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Customer update failed")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(customer.to_dict())


@customers_bp.delete("/<int:customer_id>")
@require_auth
@require_permission(Action.MANAGE_CUSTOMERS)
def delete_customer_route(customer_id: int):
    """Delete a customer; their sales are kept without a customer."""
    try:
        customers_service.delete_customer(customer_id)
    except ApiError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Customer delete failed")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"ok": True})
