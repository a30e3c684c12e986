# Overview: Flask API routes for reporting; parses input and returns JSON responses.

"""
Report endpoints.

Query params (all reports):
- from: YYYY-MM-DD (optional, UTC day, inclusive)
- to: YYYY-MM-DD (optional, UTC day, inclusive)
total-sales and profit also accept all=true for an all-time figure.
"""

from flask import Blueprint, request, jsonify

from ..errors import ApiError, error_response
from ..permissions import Action
from ..services import reporting_service
from ..decorators import require_auth, require_permission

reports_bp = Blueprint("reports", __name__, url_prefix="/api/v1/reports")


def _window_args() -> dict:
    return {"start": request.args.get("from"), "end": request.args.get("to")}


def _all_time() -> bool:
    return request.args.get("all", "false").lower() in ("1", "true", "yes")


@reports_bp.get("/sales")
@require_auth
@require_permission(Action.VIEW_REPORTS)
def sales_report_route():
    try:
        return jsonify(reporting_service.sales_report(**_window_args()))
    except ApiError as e:
        return error_response(e)


@reports_bp.get("/stock-in")
@require_auth
@require_permission(Action.VIEW_REPORTS)
def stock_in_report_route():
    try:
        return jsonify(reporting_service.stock_in_report(**_window_args()))
    except ApiError as e:
        return error_response(e)


@reports_bp.get("/total-sales")
@require_auth
@require_permission(Action.VIEW_REPORTS)
def total_sales_report_route():
    try:
        return jsonify(reporting_service.total_sales_report(**_window_args(), all_time=_all_time()))
    except ApiError as e:
        return error_response(e)


@reports_bp.get("/profit")
@require_auth
@require_permission(Action.VIEW_REPORTS)
def profit_report_route():
    try:
        return jsonify(reporting_service.profit_report(**_window_args(), all_time=_all_time()))
    except ApiError as e:
        return error_response(e)
