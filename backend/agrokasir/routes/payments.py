# Overview: Flask API routes for payment operations; parses input and returns JSON responses.

from flask import Blueprint, g, jsonify, current_app

from ..errors import ApiError, error_response
from ..permissions import Action
from ..services import payment_service
from ..validation import json_body, optional_str
from ..decorators import require_auth, require_permission

payments_bp = Blueprint("payments", __name__, url_prefix="/api/v1/payments")


@payments_bp.post("")
@require_auth
@require_permission(Action.RECORD_PAYMENT)
def add_payment_route():
    """
    Record a payment against an open sale.

    Body: {saleId: int, amount: int > 0, method: Tunai|Transfer|QRIS, refNo?: str}

    Errors:
    - 404 sale not found
    - 400 amount exceeds the amount due
    """
    try:
        payload = json_body()
        payment = payment_service.add_payment(
            payload.get("saleId"),
            payload.get("amount"),
            payload.get("method"),
            ref_no=optional_str(payload, "refNo", max_length=128),
            actor=g.current_user.id,
        )
    except ApiError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Payment failed")
        return jsonify({"error": "Internal server error"}), 500

    body = payment.to_dict()
    body["sale"] = payment_service.payment_summary(payment.sale_id)
    return jsonify(body), 201


@payments_bp.get("/sale/<int:sale_id>")
@require_auth
@require_permission(Action.VIEW_SALES)
def sale_payments_route(sale_id: int):
    """Payments of one sale with the settlement summary."""
    try:
        summary = payment_service.payment_summary(sale_id)
        payments = payment_service.get_sale_payments(sale_id)
    except ApiError as e:
        return error_response(e)
    summary["payments"] = [p.to_dict() for p in payments]
    return jsonify(summary)
