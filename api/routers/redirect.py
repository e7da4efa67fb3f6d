"""
UID Redirect Endpoint.

Target of every display tap or scan: records the scan, then sends the shopper
on with a 302.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse

from api.dependencies import get_container
from services.container import ServiceContainer
from services.redirect_service import ScanContext

router = APIRouter()


def _client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.client.host if request.client else None


@router.get("/uid-redirect", summary="Redirect Display Scan", response_class=RedirectResponse)
def uid_redirect(
    request: Request,
    u: Optional[str] = None,
    container: ServiceContainer = Depends(get_container),
):
    """
    Redirect a scanned UID.

    - Claimed with an affiliate URL -> `302` to the affiliate URL
    - Unknown, unclaimed or without a URL -> `302` to `/claim?u=<uid>`
    """
    if not u or not u.strip():
        return JSONResponse(status_code=400, content={"error": "Missing UID"})

    scan = ScanContext(
        ip_address=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
        location=request.headers.get("x-vercel-ip-city") or request.headers.get("cf-ipcity"),
    )
    target = container.redirects.resolve(u, scan)
    return RedirectResponse(url=target, status_code=302)
