# backend/residenthub/errors.py
"""
Service-layer error taxonomy.

Services raise these instead of HTTPException so they can be called from
jobs, scripts and tests without FastAPI in the loop. `main.py` renders them
as JSON: {"detail": <message>, "kind": <kind>}.
"""

from __future__ import annotations

from typing import Dict, Optional


class ServiceError(Exception):
    status_code: int = 400
    kind: str = "bad_request"
    default_message: str = "Request could not be processed"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None


class BadRequestError(ServiceError):
    status_code = 400
    kind = "bad_request"


class UnauthorizedError(ServiceError):
    status_code = 401
    kind = "unauthorized"
    default_message = "Could not validate credentials"

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class ForbiddenError(ServiceError):
    status_code = 403
    kind = "forbidden"
    default_message = "Insufficient permissions for this operation"


class NotFoundError(ServiceError):
    status_code = 404
    kind = "not_found"
    default_message = "Not found"


class ConflictError(ServiceError):
    status_code = 409
    kind = "conflict"
    default_message = "Conflicting change"
