"""Domain errors raised by the service layer."""

from __future__ import annotations

from http import HTTPStatus


class PortalError(Exception):
    """Base class for rule violations; carries the HTTP status to report."""

    status_code = HTTPStatus.BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidTransition(PortalError):
    status_code = HTTPStatus.BAD_REQUEST


class ValidationFailed(PortalError):
    status_code = HTTPStatus.BAD_REQUEST


class PermissionDenied(PortalError):
    status_code = HTTPStatus.FORBIDDEN


class ResourceNotFound(PortalError):
    status_code = HTTPStatus.NOT_FOUND


class DuplicateResource(PortalError):
    status_code = HTTPStatus.CONFLICT
