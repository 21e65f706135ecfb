"""Application error taxonomy.

Every error carries the HTTP status it maps to, a machine-readable error code
and optional help text. ``register_exception_handlers`` renders them with the
same ``{"detail": {"error": ..., "message": ...}}`` envelope the route handlers
use for ``HTTPException``.
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

# Where a user can obtain a key for each provider
PROVIDER_KEY_HELP = {
    "openai": "Create an OpenAI API key at https://platform.openai.com/api-keys",
    "anthropic": "Create an Anthropic API key at https://console.anthropic.com/settings/keys",
    "gemini": "Get a free Gemini API key at https://aistudio.google.com/app/apikey",
    "cohere": "Get a free Cohere trial key at https://dashboard.cohere.com/api-keys",
}


class AppError(Exception):
    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str, help: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.help = help

    def to_detail(self) -> dict:
        detail = {"error": self.error_code, "message": self.message}
        if self.help:
            detail["help"] = self.help
        return detail


class IntegrityError(AppError):
    """A stored credential failed authentication: tampered, corrupted, or wrong key."""
    status_code = 422
    error_code = "credential_unreadable"

    def __init__(self, message: str = "Stored credential could not be decrypted"):
        super().__init__(
            message,
            help="The stored API key is unreadable. Delete it and enter the key again.",
        )


class InvalidInputError(AppError):
    status_code = 400
    error_code = "invalid_input"


class EncodingError(AppError):
    status_code = 422
    error_code = "encoding_error"


class NotFoundError(AppError):
    status_code = 404
    error_code = "not_found"


class NoProviderAvailableError(AppError):
    """
    Raised on the named-provider path only.

    ``reason`` is ``"missing_key"`` when neither the user nor the system has a key
    for the provider, or ``"unavailable"`` when the provider was called and did
    not return a usable response.
    """
    error_code = "no_provider_available"

    def __init__(self, provider: str, reason: str = "missing_key", message: Optional[str] = None):
        self.provider = provider
        self.reason = reason
        if message is None:
            if reason == "missing_key":
                message = (
                    f"No API key configured for provider '{provider}'. "
                    f"Add one in Settings before using this provider."
                )
            else:
                message = f"Provider '{provider}' did not return a usable response."
        super().__init__(message, help=PROVIDER_KEY_HELP.get(provider))

    @property
    def status_code(self) -> int:
        return 400 if self.reason == "missing_key" else 502


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        logger.warning(f"[{exc.error_code}] on {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.to_detail()},
        )
