# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/agrokasir/routes/products.py
"""
Product catalog routes.

SECURITY: All routes require authentication.
- Read operations require VIEW_CATALOG permission
- Write operations require MANAGE_PRODUCTS permission
- add-stock requires RECEIVE_STOCK permission
"""
from flask import Blueprint, request, g, jsonify, current_app

from ..errors import ApiError, error_response
from ..models import Product
from ..permissions import Action
from ..services import inventory_service, products_service
from ..validation import (
    ModelValidationPolicy,
    json_body,
    validate_payload,
    enforce_rules_product,
    optional_str,
    require_int,
)
from ..decorators import require_auth, require_permission

_PRODUCT_FIELDS = {
    "name": "name",
    "category": "category",
    "unit": "unit",
    "costPrice": "cost_price",
    "sellPrice": "sell_price",
    "expiryDate": "expiry_date",
    "imageUrl": "image_url",
    "minStock": "min_stock",
}

# stockQty is accepted once, as opening stock
PRODUCT_CREATE_POLICY = ModelValidationPolicy(
    fields={**_PRODUCT_FIELDS, "stockQty": "stock_qty"},
    required_on_create={"name", "category", "unit", "costPrice", "sellPrice"},
)

PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    fields={**_PRODUCT_FIELDS, "isActive": "is_active"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/v1/products")


def _internal_error(message: str):
    current_app.logger.exception(message)
    return jsonify({"error": "Internal server error"}), 500


@products_bp.get("")
@require_auth
@require_permission(Action.VIEW_CATALOG)
def list_products():
    """
    List active products.

    Query params:
    - q: str (optional) - case-insensitive name filter
    """
    products = products_service.list_products(request.args.get("q"))
    return jsonify([p.to_dict() for p in products])


@products_bp.get("/low-stock")
@require_auth
@require_permission(Action.VIEW_CATALOG)
def list_low_stock():
    """Active products at or below their minStock."""
    return jsonify([p.to_dict() for p in products_service.list_low_stock()])


@products_bp.get("/<int:product_id>")
@require_auth
@require_permission(Action.VIEW_CATALOG)
def get_product(product_id: int):
    try:
        product = products_service.get_product(product_id)
    except ApiError as e:
        return error_response(e)
    return jsonify(product.to_dict())


@products_bp.get("/<int:product_id>/movements")
@require_auth
@require_permission(Action.VIEW_CATALOG)
def list_product_movements(product_id: int):
    """
    Ledger history, newest first.

    Query params:
    - limit: int (optional)
    """
    limit = request.args.get("limit", type=int)
    try:
        movements = inventory_service.list_movements(product_id, limit=limit)
    except ApiError as e:
        return error_response(e)
    return jsonify([m.to_dict() for m in movements])


@products_bp.post("")
@require_auth
@require_permission(Action.MANAGE_PRODUCTS)
def create_product_route():
    """
    Create a new product.

    A positive stockQty is booked as opening stock in the ledger.
    """
    try:
        payload = json_body()
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_CREATE_POLICY, partial=False)
        enforce_rules_product(patch)
        created = products_service.create_product(patch=patch, actor=g.current_user.id)
    except ApiError as e:
        return error_response(e)
    except Exception:
        return _internal_error("Product creation failed")

    return jsonify(created.to_dict()), 201


@products_bp.put("/<int:product_id>")
@require_auth
@require_permission(Action.MANAGE_PRODUCTS)
def update_product_route(product_id: int):
    """
    Update a product.

    stockQty is not editable here; use add-stock.
    """
    try:
        payload = json_body()
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_UPDATE_POLICY, partial=True)
        enforce_rules_product(patch)
        updated = products_service.update_product(product_id, patch=patch)
    except ApiError as e:
        return error_response(e)
    except Exception:
        return _internal_error("Product update failed")

    return jsonify(updated.to_dict())


@products_bp.delete("/<int:product_id>")
@require_auth
@require_permission(Action.MANAGE_PRODUCTS)
def delete_product_route(product_id: int):
    """Soft delete: hides the product from listings and sales."""
    try:
        products_service.delete_product(product_id)
    except ApiError as e:
        return error_response(e)

    return jsonify({"ok": True})


@products_bp.post("/<int:product_id>/add-stock")
@require_auth
@require_permission(Action.RECEIVE_STOCK)
def add_stock_route(product_id: int):
    """
    Receive stock.

    Body: {qty: int > 0, unitCost?: int >= 0, note?: str}
    """
    try:
        payload = json_body()
        qty = require_int(payload, "qty", minimum=1)
        unit_cost = require_int(payload, "unitCost", minimum=0, required=False)
        note = optional_str(payload, "note", max_length=512)
        product = inventory_service.receive_stock(
            product_id,
            qty,
            unit_cost=unit_cost,
            note=note,
            actor=g.current_user.id,
        )
    except ApiError as e:
        return error_response(e)
    except Exception:
        return _internal_error("Stock receive failed")

    return jsonify(product.to_dict())
