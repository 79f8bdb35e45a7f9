from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from shortlink_app.config import settings
from shortlink_app.exceptions import NotFound
from shortlink_app.services.redirect_service import RedirectResolver
from shortlink_app.dependencies import get_redirect_resolver

router = APIRouter(tags=["redirect"])

FALLBACK_IP = "127.0.0.1"


def get_client_ip(request: Request) -> str:
    """
    Real client IP, honouring common proxy headers.

    X-Forwarded-For may list several hops; the first one is the client.
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    for header in ("x-real-ip", "cf-connecting-ip"):
        value = request.headers.get(header)
        if value:
            return value.strip()

    if request.client and request.client.host:
        return request.client.host
    return FALLBACK_IP


@router.get("/{identifier}")
async def redirect_to_original_url(
    identifier: str,
    request: Request,
    resolver: RedirectResolver = Depends(get_redirect_resolver)
):
    """
    Redirect to the original URL.
    
    The click (event + counter) is stored before the response is sent, so a
    302 always means the visit was counted.
    """
    if identifier in settings.reserved_paths:
        raise NotFound()

    original_url = await resolver.resolve_and_record(
        identifier,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
        referrer=request.headers.get("referer"),
    )
    return RedirectResponse(url=original_url, status_code=status.HTTP_302_FOUND)
