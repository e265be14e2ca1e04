"""Errores de dominio lanzados por los servicios y traducidos a HTTP por la API."""
from __future__ import annotations


class ServiceError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(ServiceError):
    status_code = 400


class Conflict(ServiceError):
    # horarios ocupados y solicitudes duplicadas responden 400
    status_code = 400


class NotFound(ServiceError):
    status_code = 404


class PermissionDenied(ServiceError):
    status_code = 403
