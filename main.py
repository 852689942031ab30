from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import CORS_ORIGINS, MAX_BODY_BYTES, logger  # type: ignore
from core.exceptions import SignupServiceError, InvalidInput, InternalFailure, PayloadTooLarge
from routers import early_access  # type: ignore
from utils.rate_limit import create_signup_limiter
from utils.request_context import log_suspicious_proxy_chain

app = FastAPI(title="Early Access API")

# Injected into the signup route via routers.early_access.get_signup_limiter
app.state.signup_limiter = create_signup_limiter()

# ---- CORS setup ----
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

SECURITY_HEADERS = {
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains; preload",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
    "Content-Security-Policy": (
        "default-src 'self'; "
        "style-src 'self' 'unsafe-inline'; "
        "script-src 'self'; "
        "img-src 'self' data: https:; "
        "object-src 'none'; "
        "base-uri 'self'; "
        "frame-ancestors 'none'"
    ),
}


def apply_security_headers(response):
    for name, value in SECURITY_HEADERS.items():
        response.headers[name] = value
    return response


# --- Body size limit ---
@app.middleware("http")
async def limit_body_size(request: Request, call_next):
    length = request.headers.get("content-length")
    try:
        too_large = length is not None and int(length) > MAX_BODY_BYTES
    except ValueError:
        too_large = True
    if too_large:
        return apply_security_headers(early_access.error_response(PayloadTooLarge()))
    return await call_next(request)


# --- Security headers ---
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    log_suspicious_proxy_chain(request)
    response = await call_next(request)
    return apply_security_headers(response)


# --- Error handling: every failure is a {success, message} body, never exception text ---
@app.exception_handler(SignupServiceError)
async def signup_error_handler(request: Request, exc: SignupServiceError):
    if exc.status_code >= 500:
        logger.error(f"Signup error on {request.url.path}: {exc.detail}", exc_info=exc)
    elif isinstance(exc, InvalidInput):
        logger.warning(f"Validation failed on {request.url.path}: {exc.detail}")
    return early_access.error_response(exc)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    messages = {404: "Not found", 405: "Method not allowed"}
    message = messages.get(exc.status_code, "Request failed")
    return JSONResponse({"success": False, "message": message}, status_code=exc.status_code, headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    response = early_access.error_response(InternalFailure())
    return apply_security_headers(response)


app.include_router(early_access.router)


@app.on_event("startup")
async def _init_schema():
    from core.database import init_db
    init_db()
