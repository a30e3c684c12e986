# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/agrokasir/routes/sales.py
"""
Sales routes (POS checkout and invoice views).

POST /sales records header, lines, stock movements and the optional first
payment in one transaction. Prices always come from the catalog.
"""
from flask import Blueprint, request, g, jsonify, current_app

from ..errors import ApiError, error_response
from ..permissions import Action
from ..services import sales_service
from ..validation import json_body, optional_str
from ..decorators import require_auth, require_permission

sales_bp = Blueprint("sales", __name__, url_prefix="/api/v1/sales")


def _sale_with_lines(sale) -> dict:
    body = sale.to_dict()
    body["items"] = [item.to_dict() for item in sale.items]
    body["payments"] = [p.to_dict() for p in sale.payments]
    return body


@sales_bp.post("")
@require_auth
@require_permission(Action.CREATE_SALE)
def create_sale_route():
    """
    Create a sale.

    Body:
    {
        "customerId": int | null,
        "note": str | null,
        "items": [{"productId": int, "qty": int}, ...],
        "amountPaid": int (default 0),
        "method": "Tunai" | "Transfer" | "QRIS" (default Tunai)
    }

    Returns 201 with the sale, its lines and payments.
    """
    try:
        payload = json_body()
        sale = sales_service.create_sale(
            payload.get("items"),
            customer_id=payload.get("customerId"),
            note=optional_str(payload, "note", max_length=1000),
            amount_paid=payload.get("amountPaid", 0),
            method=payload.get("method"),
            actor=g.current_user.id,
        )
    except ApiError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Sale creation failed")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(_sale_with_lines(sale)), 201


@sales_bp.get("")
@require_auth
@require_permission(Action.VIEW_SALES)
def list_sales_route():
    """
    List sales, newest first.

    Query params:
    - status: "open" for Piutang/Sebagian; any other value for Lunas
    """
    sales = sales_service.list_sales(request.args.get("status"))
    result = []
    for sale in sales:
        body = sale.to_dict()
        body["customer"] = sale.customer.to_summary() if sale.customer else None
        result.append(body)
    return jsonify(result)


@sales_bp.get("/<int:sale_id>/detail")
@require_auth
@require_permission(Action.VIEW_SALES)
def sale_detail_route(sale_id: int):
    try:
        detail = sales_service.get_sale_detail(sale_id)
    except ApiError as e:
        return error_response(e)
    return jsonify(detail)
