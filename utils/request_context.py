"""
Request context helpers - client IP, user agent and attribution metadata
"""
from fastapi import Request

from core.config import TRUST_PROXY, MAX_PROXY_HOPS, logger


def get_client_ip(request: Request, trust_proxy: bool = TRUST_PROXY) -> str:
    """Extract client IP from request, honouring proxy headers only when trusted."""
    if trust_proxy:
        # Check X-Forwarded-For header (when behind proxy/load balancer)
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip.strip()
    return request.client.host if request.client else "unknown"


def get_user_agent(request: Request) -> str | None:
    """Extract user agent from request."""
    ua = request.headers.get("User-Agent")
    return ua[:512] if ua else None  # Limit to 512 chars


def get_attribution(request: Request) -> dict:
    """Signup source (referrer) and campaign (utm_campaign query param)."""
    source = (request.headers.get("Referer") or "").strip()[:2048] or "direct"
    # Only the first value counts when the parameter is repeated
    campaigns = request.query_params.getlist("utm_campaign")
    campaign = (campaigns[0].strip()[:255] or None) if campaigns else None
    return {"source": source, "campaign": campaign}


def is_suspicious_proxy_chain(request: Request, max_hops: int = MAX_PROXY_HOPS) -> bool:
    forwarded = request.headers.get("X-Forwarded-For") or ""
    return bool(forwarded) and len(forwarded.split(",")) > max_hops


def log_suspicious_proxy_chain(request: Request) -> None:
    if is_suspicious_proxy_chain(request):
        ip = request.client.host if request.client else "unknown"
        logger.warning(f"Suspicious proxy chain detected from IP: {ip}")
