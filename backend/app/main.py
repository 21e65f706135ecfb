from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

import app.models  # noqa: F401  registers every table on Base.metadata
from app.api import (
    analytics,
    api_keys,
    auth,
    collaborators,
    conversations,
    deployments,
    generation,
    health,
    marketplace,
    projects,
    prompt_templates,
    seo,
)
from app.core.config import settings
from app.core.errors import register_exception_handlers

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    logger.info(
        f"{settings.PROJECT_NAME} API starting up "
        f"(environment={settings.ENVIRONMENT}, providers={settings.PROVIDER_PRIORITY})"
    )
    if not settings.AUTH_SECRET:
        logger.warning("AUTH_SECRET is not set; authenticated routes will return 500")
    yield
    logger.info(f"{settings.PROJECT_NAME} API shutting down")


app = FastAPI(
    title=f"{settings.PROJECT_NAME} API",
    description="Backend API for the VirtuBuild project builder",
    version="0.1.0",
    lifespan=lifespan
)


# Log 422 errors with the offending body
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"[VALIDATION ERROR] on {request.url}: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"detail": exc.errors()},
    )


register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

api = settings.API_V1_STR

app.include_router(health.router, prefix=f"{api}/health", tags=["health"])
app.include_router(auth.router, prefix=api, tags=["auth"])
app.include_router(api_keys.router, prefix=f"{api}/api-keys", tags=["api-keys"])
app.include_router(projects.router, prefix=f"{api}/projects", tags=["projects"])
app.include_router(collaborators.router, prefix=f"{api}/projects", tags=["collaborators"])
app.include_router(deployments.project_router, prefix=f"{api}/projects", tags=["deployments"])
app.include_router(analytics.project_router, prefix=f"{api}/projects", tags=["analytics"])
app.include_router(marketplace.router, prefix=f"{api}/marketplace", tags=["marketplace"])
app.include_router(conversations.router, prefix=f"{api}/conversations", tags=["conversations"])
app.include_router(generation.router, prefix=f"{api}/ai", tags=["ai"])
app.include_router(deployments.router, prefix=f"{api}/deployments", tags=["deployments"])
app.include_router(seo.router, prefix=f"{api}/seo", tags=["seo"])
app.include_router(analytics.router, prefix=f"{api}/analytics", tags=["analytics"])
app.include_router(prompt_templates.router, prefix=f"{api}/prompt-templates", tags=["prompt-templates"])

# Paths used by earlier clients
app.include_router(api_keys.router, prefix=f"{api}/keys", tags=["api-keys"], include_in_schema=False)
app.include_router(generation.compat_router, prefix=f"{api}/generate", tags=["ai"])
