from fastapi import APIRouter, Request, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from core.config import API_PREFIX, MAX_BODY_BYTES, logger
from core.database import get_db
from core.exceptions import SignupServiceError, InternalFailure, InvalidInput, PayloadTooLarge
from utils.hashing import hash_ip
from utils.rate_limit import SignupRateLimiter
from utils.request_context import get_attribution, get_client_ip, get_user_agent
from utils.signup_store import SignupStore, mask_email
from utils.validation import validate_email


SIGNUP_OK_MESSAGE = "Thank you for your interest! You're on the early access list."


class SignupPayload(BaseModel):
    email: str


router = APIRouter(prefix=API_PREFIX, tags=["early-access"])  # e.g. POST /api/early-access/signup


def get_signup_limiter(request: Request) -> SignupRateLimiter:
    return request.app.state.signup_limiter


def get_signup_store(db: Session = Depends(get_db)) -> SignupStore:
    return SignupStore(db)


def error_response(err: SignupServiceError) -> JSONResponse:
    headers = {}
    retry_after = getattr(err, "retry_after", None)
    if retry_after:
        headers["Retry-After"] = str(retry_after)
    return JSONResponse(err.to_dict(), status_code=err.status_code, headers=headers or None)


async def read_payload(request: Request) -> SignupPayload:
    """
    Parse the JSON body by hand so it only happens after the rate limit gate.
    Bytes are counted as they arrive: chunked bodies carry no Content-Length
    for the middleware to check.
    """
    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > MAX_BODY_BYTES:
            raise PayloadTooLarge(f"signup body over {MAX_BODY_BYTES} bytes")
    try:
        return SignupPayload.model_validate_json(bytes(body))
    except (ValueError, ValidationError) as ex:
        raise InvalidInput(f"unreadable signup body: {ex.__class__.__name__}") from ex


@router.post("/signup")
async def signup(
    request: Request,
    limiter: SignupRateLimiter = Depends(get_signup_limiter),
    signup_store: SignupStore = Depends(get_signup_store),
):
    client_ip = get_client_ip(request)
    limiter.check(client_ip)

    payload = await read_payload(request)
    email = validate_email(payload.email)

    # bcrypt and DB calls block; keep them off the event loop
    try:
        ip_hash = await run_in_threadpool(hash_ip, client_ip)
        attribution = get_attribution(request)
        result = await run_in_threadpool(
            signup_store.submit,
            email,
            ip_hash,
            user_agent=get_user_agent(request),
            source=attribution["source"],
            campaign=attribution["campaign"],
        )
    except SignupServiceError:
        raise
    except Exception as ex:
        raise InternalFailure(f"signup failed: {ex}") from ex

    if result.created:
        logger.info(f"New early access signup: {mask_email(email)}")

    # Same response for new and already-registered emails
    return {"success": True, "message": SIGNUP_OK_MESSAGE}


@router.get("/health")
async def health():
    return {"status": "OK"}
