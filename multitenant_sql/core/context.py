"""
core/context.py
---------------
Call-scoped tenant state.

Both values live in ContextVars, so every thread and every asyncio task sees
its own copy: two concurrent requests for different tenants can never observe
each other's tenant id. Nothing here is a process-wide mutable global.

  current tenant id  → value the enforcement clauses bind
  write-only mode    → when enabled, no tenant predicate is injected at all
"""

from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Any, Iterator, Optional

import structlog

from multitenant_sql.core.config import settings

_current_tenant_id: ContextVar[Optional[Any]] = ContextVar(
    "multitenant_current_tenant_id", default=None
)
_write_only_mode: ContextVar[Optional[bool]] = ContextVar(
    "multitenant_write_only_mode", default=None
)


def current_tenant_id() -> Optional[Any]:
    """Return the tenant id for the current call, or None when unscoped."""
    return _current_tenant_id.get()


def set_current_tenant_id(tenant_id: Optional[Any]) -> Token:
    return _current_tenant_id.set(tenant_id)


def reset_current_tenant_id(token: Token) -> None:
    _current_tenant_id.reset(token)


@contextmanager
def with_tenant(tenant_id: Optional[Any]) -> Iterator[Optional[Any]]:
    """
    Scope a block to one tenant.

    The tenant id is also bound into structlog's context so every log line
    emitted inside the block carries it.

    Usage:
        with with_tenant(account.id):
            stmt = scope_statement(plan)
    """
    token = _current_tenant_id.set(tenant_id)
    try:
        with structlog.contextvars.bound_contextvars(tenant_id=tenant_id):
            yield tenant_id
    finally:
        _current_tenant_id.reset(token)


@contextmanager
def without_tenant() -> Iterator[None]:
    token = _current_tenant_id.set(None)
    try:
        yield
    finally:
        _current_tenant_id.reset(token)


def write_only_mode_enabled() -> bool:
    value = _write_only_mode.get()
    if value is None:
        return settings.WRITE_ONLY_MODE
    return value


@contextmanager
def with_write_only_mode(enabled: bool = True) -> Iterator[None]:
    token = _write_only_mode.set(enabled)
    try:
        yield
    finally:
        _write_only_mode.reset(token)
