import logging
import time
import traceback
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException
from sqlmodel import Session

from crackcheck.api import (
    analysis,
    articles,
    chat,
    cracks,
    credits,
    pages,
    professionals,
    recommendations,
    service,
    uploads,
)
from crackcheck.core.config import is_kie_configured, is_openrouter_configured, settings
from crackcheck.core.database import engine, init_db
from crackcheck.core.rate_limit import limiter
from crackcheck.logging import setup_logging
from crackcheck.models import ErrorLog
from crackcheck.services.credits import CreditsNotInitialized, InsufficientCredits
from crackcheck.services.storage import storage_root

setup_logging(level=logging.INFO)
log = logging.getLogger("crackcheck")


def _cors_origins_list() -> list[str]:
    if not settings.cors_origins or settings.cors_origins.strip() == "*":
        return ["*"]
    return [o.strip() for o in settings.cors_origins.split(",") if o.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    log.info("OPENROUTER_API_KEY loaded: %s", "yes" if is_openrouter_configured() else "NO (set OPENROUTER_API_KEY in .env)")
    log.info("KIE_API_KEY loaded: %s", "yes" if is_kie_configured() else "no (image annotation disabled)")
    if not settings.admin_email:
        log.warning("ADMIN_EMAIL is not set: blog and credit administration are disabled")
    yield


app = FastAPI(
    title="CrackCheck API",
    description="AI crack analysis for homeowners",
    lifespan=lifespan,
)
app.state.limiter = limiter


def _error_response(request: Request, status_code: int, message: str, **extra) -> JSONResponse:
    rid = getattr(request.state, "request_id", None)
    body = {"error": message, "status_code": status_code, **extra}
    if rid:
        body["request_id"] = rid
    return JSONResponse(status_code=status_code, content=body)


def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    log.warning("Rate limit exceeded: path=%s limit=%s", request.url.path, exc.detail)
    return _error_response(request, 429, "Too many requests", detail=f"Rate limit exceeded: {exc.detail}")


def _validation_error_message(exc: RequestValidationError) -> str:
    errs = exc.errors()
    if not errs:
        return "Invalid request."
    first = errs[0]
    loc = list(first.get("loc") or [])
    field = str(loc[-1]) if loc else None
    if first.get("type") == "missing" and field and field != "body":
        return f"{field} is required"
    if first.get("type") == "missing":
        return "Request body is required"
    return first.get("msg") or "Invalid request."


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errs = exc.errors()
    log.warning(
        "Request validation error (422): path=%s method=%s detail=%s",
        request.url.path,
        request.method,
        errs,
    )
    return _error_response(request, 422, _validation_error_message(exc), detail=jsonable_encoder(errs))


app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)


@app.exception_handler(HTTPException)
def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    response = _error_response(
        request, exc.status_code, exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(InsufficientCredits)
def insufficient_credits_handler(request: Request, exc: InsufficientCredits) -> JSONResponse:
    return _error_response(
        request,
        402,
        "Insufficient credits",
        requiredCredits=exc.required,
        currentCredits=exc.current,
    )


@app.exception_handler(CreditsNotInitialized)
def credits_not_initialized_handler(request: Request, exc: CreditsNotInitialized) -> JSONResponse:
    return _error_response(request, 402, "User credits not initialized")


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unhandled exception: path=%s %s", request.url.path, exc, exc_info=exc)
    try:
        with Session(engine) as db:
            db.add(
                ErrorLog(
                    user_id=None,
                    endpoint=request.url.path,
                    method=request.method,
                    error_message=str(exc)[:2000],
                    stack_trace="".join(traceback.format_exception(exc))[:10000],
                )
            )
            db.commit()
    except Exception as e:
        log.warning("ErrorLog write failed: %s", e)
    return JSONResponse(status_code=500, content={"error": "Unexpected server error."})


@app.middleware("http")
async def request_id_and_latency(request: Request, call_next):
    request.state.request_id = str(uuid.uuid4())
    start = time.perf_counter()
    response = await call_next(request)
    latency_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Request-ID"] = request.state.request_id
    log.info(
        "request_id=%s method=%s path=%s status=%s latency_ms=%.2f",
        request.state.request_id,
        request.method,
        request.url.path,
        response.status_code,
        latency_ms,
    )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(service.router)
app.include_router(credits.router)
app.include_router(analysis.router)
app.include_router(chat.router)
app.include_router(cracks.router)
app.include_router(articles.router)
app.include_router(uploads.router)
app.include_router(professionals.router)
app.include_router(recommendations.router)
app.include_router(pages.router)

# Uploaded images are public; put_object returns URLs under this mount
_storage_dir = storage_root()
_storage_dir.mkdir(parents=True, exist_ok=True)
app.mount("/storage", StaticFiles(directory=str(_storage_dir)), name="storage")
