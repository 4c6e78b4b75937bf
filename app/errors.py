"""Service-level exceptions and their JSON rendering."""

from __future__ import annotations

import logging
from typing import Any

from flask import Flask, jsonify
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base exception for caller-actionable service failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message}


class ValidationError(ServiceError):
    """Missing or invalid field, bad enum value or bad date ordering."""

    status_code = 400

    def __init__(
        self,
        message: str,
        field: str | None = None,
        allowed: list[str] | None = None,
        fields: list[str] | None = None,
    ):
        super().__init__(message)
        self.field = field
        self.allowed = allowed
        self.fields = fields

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        if self.field:
            payload["field"] = self.field
        if self.allowed is not None:
            payload["allowed"] = list(self.allowed)
        if self.fields is not None:
            payload["fields"] = list(self.fields)
        return payload


class NotFoundError(ServiceError):
    """An id that does not resolve to a live entity."""

    status_code = 404

    def __init__(self, resource: str, resource_id: Any):
        super().__init__(f"{resource} {resource_id} not found")
        self.resource = resource
        self.resource_id = resource_id

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["resource"] = self.resource
        payload["id"] = self.resource_id
        return payload


class ConflictError(ServiceError):
    """Duplicate key, duplicate membership or other unique-field clash."""

    status_code = 409


class ConsistencyError(ConflictError):
    """A verified write never converged on the requested value."""

    def __init__(self, message: str, requested: Any, observed: Any):
        super().__init__(message)
        self.requested = requested
        self.observed = observed

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["requested"] = self.requested
        payload["observed"] = self.observed
        return payload


class AuthenticationError(ServiceError):
    """No verified caller identity was forwarded with the request."""

    status_code = 401


def register_error_handlers(app: Flask) -> None:
    """Render service exceptions as JSON responses."""
    from app.extensions import db

    @app.errorhandler(ServiceError)
    def handle_service_error(error: ServiceError):
        if error.status_code >= 500:
            logger.error(f"Service error: {error.message}")
        else:
            logger.info(f"Rejected request ({error.status_code}): {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(error: IntegrityError):
        db.session.rollback()
        logger.warning(f"Unique constraint violation: {error.orig}")
        return jsonify({"error": "Duplicate value for a unique field"}), 409

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return jsonify({"error": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        if isinstance(error, HTTPException):
            return handle_http_error(error)
        db.session.rollback()
        logger.exception(f"Unhandled error: {error}")
        return jsonify({"error": "Internal server error"}), 500
