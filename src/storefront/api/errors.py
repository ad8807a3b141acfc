"""Map storefront exceptions to HTTP responses.

Covers the Protean exceptions the services raise plus the storefront's own
error types. Every body is ``{"error": ...}``.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import InvalidOperationError, InvalidStateError, ObjectNotFoundError, ValidationError

from storefront.domain import logger
from storefront.exceptions import (
    AccessDeniedError,
    GatewayError,
    InvariantViolationError,
    MalformedWebhookError,
    WebhookVerificationError,
)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422, content={"error": exc.messages})

    @app.exception_handler(ObjectNotFoundError)
    async def not_found(request: Request, exc: ObjectNotFoundError):
        return JSONResponse(status_code=404, content={"error": str(exc)})

    @app.exception_handler(InvalidStateError)
    async def invalid_state(request: Request, exc: InvalidStateError):
        return JSONResponse(status_code=409, content={"error": str(exc)})

    @app.exception_handler(InvalidOperationError)
    async def invalid_operation(request: Request, exc: InvalidOperationError):
        return JSONResponse(status_code=422, content={"error": str(exc)})

    @app.exception_handler(AccessDeniedError)
    async def access_denied(request: Request, exc: AccessDeniedError):
        return JSONResponse(status_code=403, content={"error": str(exc)})

    @app.exception_handler(GatewayError)
    async def gateway_error(request: Request, exc: GatewayError):
        logger.error("gateway_error", gateway=exc.gateway, error=exc.message, path=request.url.path)
        return JSONResponse(status_code=502, content={"error": f"Payment gateway unavailable: {exc.message}"})

    @app.exception_handler(WebhookVerificationError)
    async def webhook_unverified(request: Request, exc: WebhookVerificationError):
        logger.warning("webhook_rejected", reason=str(exc), path=request.url.path)
        return JSONResponse(status_code=400, content={"error": "Invalid webhook signature"})

    @app.exception_handler(MalformedWebhookError)
    async def webhook_malformed(request: Request, exc: MalformedWebhookError):
        logger.warning("webhook_malformed", reason=str(exc), path=request.url.path)
        return JSONResponse(status_code=400, content={"error": "Malformed webhook payload"})

    @app.exception_handler(InvariantViolationError)
    async def invariant_violation(request: Request, exc: InvariantViolationError):
        logger.error("invariant_violation", error=str(exc), path=request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal error"})
