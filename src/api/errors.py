"""HTTP mapping for lifecycle error kinds."""

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from src.domain.errors import LifecycleError

STATUS_BY_KIND: dict[str, int] = {
    "Unauthorized": 403,
    "CrossTenantAccessDenied": 403,
    "NotFound": 404,
    "InvalidTransition": 409,
    "DuplicateSlug": 409,
    "VersionConflict": 409,
    "MalformedPrincipal": 401,
    "SchemaValidationFailed": 422,
    "PurgeFailed": 500,
}


def status_for(error: LifecycleError) -> int:
    return STATUS_BY_KIND.get(error.kind, 400)


def error_body(error: LifecycleError) -> dict[str, Any]:
    return {
        "code": error.kind,
        "message": error.message,
        "field": error.field,
        "details": error.details,
    }


async def lifecycle_error_handler(request: Request, exc: LifecycleError) -> JSONResponse:
    return JSONResponse(status_code=status_for(exc), content={"detail": error_body(exc)})
