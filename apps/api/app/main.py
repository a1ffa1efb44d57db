from __future__ import annotations

import logging
from time import monotonic

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.trustedhost import TrustedHostMiddleware

from app.config import settings
from app.deps import NotAuthenticated
from app.errors import AccessDenied, field_errors
from app.logs import configure_logging
from app.metrics import runtime_metrics
from app.routers.audit import router as audit_router
from app.routers.auth import router as auth_router
from app.routers.projects import router as projects_router
from app.routers.system_status import router as system_status_router
from app.routers.tasks import router as tasks_router
from app.schemas import ActionResult

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
  title="Home Planner API",
  version="0.1.0",
  docs_url="/docs" if settings.api_docs_enabled else None,
  redoc_url="/redoc" if settings.api_docs_enabled else None,
  openapi_url="/openapi.json" if settings.api_docs_enabled else None,
)


@app.exception_handler(NotAuthenticated)
async def _not_authenticated_handler(_: Request, exc: NotAuthenticated) -> JSONResponse:
  return JSONResponse(status_code=401, content={"detail": exc.detail, "signInUrl": settings.sign_in_url})


@app.exception_handler(AccessDenied)
async def _access_denied_handler(_: Request, exc: AccessDenied) -> JSONResponse:
  return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
  errors = field_errors(exc.errors())
  logger.warning("Rejected %s %s: %s", request.method, request.url.path, errors)
  body = ActionResult(success=False, code="invalid", error="Invalid data provided.", errors=errors)
  return JSONResponse(status_code=422, content=body.model_dump(mode="json"))


app.add_middleware(
  CORSMiddleware,
  allow_origins=settings.cors_origin_list(),
  allow_origin_regex=settings.cors_origin_regex,
  allow_credentials=True,
  allow_methods=["*"],
  allow_headers=["*"],
)
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_host_list())

app.include_router(auth_router)
app.include_router(projects_router)
app.include_router(tasks_router)
app.include_router(audit_router)
app.include_router(system_status_router)


@app.middleware("http")
async def _request_metrics_middleware(request, call_next):
  start = monotonic()
  response = await call_next(request)
  elapsed_ms = (monotonic() - start) * 1000.0
  runtime_metrics.observe_request(response.status_code, elapsed_ms)
  response.headers.setdefault("X-Content-Type-Options", "nosniff")
  response.headers.setdefault("X-Frame-Options", "DENY")
  response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
  response.headers.setdefault("Permissions-Policy", "geolocation=(), microphone=(), camera=()")
  return response


@app.get("/health")
async def health() -> dict:
  return {"ok": True}


@app.get("/version")
async def version() -> dict:
  return {"version": settings.app_version, "buildSha": settings.build_sha}


def _is_test_db() -> bool:
  db_name = settings.database_url.rsplit("/", 1)[-1]
  return "test" in db_name


@app.on_event("startup")
async def _startup() -> None:
  if _is_test_db():
    return
  if not settings.app_secret or settings.app_secret.strip().lower() in {"dev-secret-change-me", "replace_with_strong_random_secret"}:
    logger.warning("APP_SECRET is a placeholder; set a real secret outside local development")
  logger.info("Home Planner API %s (%s) starting", settings.app_version, settings.build_sha)
