"""
api/middleware.py
-----------------
Per-request tenant scoping for FastAPI / Starlette applications.

TenantContextMiddleware reads the tenant header (settings.TENANT_HEADER,
X-Tenant-ID by default) and runs the rest of the request inside
with_tenant(), so every plan built while handling it is scoped to that
tenant. Requests without the header run unscoped.

Endpoints that must never run unscoped depend on require_tenant_id:

    @router.get("/orders")
    async def list_orders(tenant_id: Annotated[str, Depends(require_tenant_id)]):
        ...

The header is trusted as-is: authenticating that the caller may act for the
tenant is the application's job.
"""

from typing import Any, Optional

from fastapi import HTTPException, status
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Receive, Scope, Send

from multitenant_sql.core.config import settings
from multitenant_sql.core.context import current_tenant_id, with_tenant
from multitenant_sql.core.logging import get_logger

logger = get_logger(__name__)


class TenantContextMiddleware:
    """Pure ASGI middleware, so the tenant ContextVar is set in the request's own task."""

    def __init__(self, app: ASGIApp, header_name: Optional[str] = None) -> None:
        self.app = app
        self.header_name = header_name or settings.TENANT_HEADER

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        tenant_id = Headers(scope=scope).get(self.header_name) or None
        with with_tenant(tenant_id):
            await self.app(scope, receive, send)


async def require_tenant_id() -> Any:
    """FastAPI dependency: the current tenant id, or 400 when none is set."""
    tenant_id = current_tenant_id()
    if tenant_id is None:
        logger.warning("Request rejected: no tenant in scope")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Missing {settings.TENANT_HEADER} header",
        )
    return tenant_id
