# Overview: Domain error taxonomy shared by services and routes.

"""
Every error a service can raise on purpose derives from ApiError and carries
the HTTP status it is reported with. Routes catch ApiError and answer
{"error": message, **details}; anything else is logged and answered 500.

Raising inside a write path always happens before commit, and run_with_retry
or the route rolls the session back, so no partial effect survives.
"""

from __future__ import annotations

from flask import jsonify


class ApiError(Exception):
    """Base class for errors that map to a JSON error response."""
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": self.message}
        body.update(self.details)
        return body


class ValidationError(ApiError, ValueError):
    """400-level input problem."""
    status_code = 400


class NotFoundError(ApiError):
    status_code = 404


class ProductNotFoundError(NotFoundError):
    """
    A sale referenced a missing or inactive product.

    Reported as 400: the request is invalid, the route itself exists.
    """
    status_code = 400


class SaleNotFoundError(NotFoundError):
    pass


class InsufficientStockError(ApiError):
    status_code = 400


class OverpaymentRejectedError(ApiError):
    status_code = 400


class ConflictError(ApiError):
    """409-level business rule conflict (e.g., duplicate username)."""
    status_code = 409


class InvoiceConflictError(ConflictError):
    """Two sales tried to take the same invoice number; the client may retry."""


class UnauthorizedError(ApiError):
    status_code = 401


class ForbiddenError(ApiError):
    status_code = 403


class ServerMisconfiguredError(ApiError):
    status_code = 500


def error_response(exc: ApiError):
    return jsonify(exc.to_dict()), exc.status_code
