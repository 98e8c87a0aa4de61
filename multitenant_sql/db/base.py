"""
db/base.py
----------
Declarative base and the tenant-scoping mixin.

TenantScopedMixin: marks an ORM model as tenant-scoped and adds the
                   partition-key column. TenantRegistry.register_declarative()
                   picks up every mapped class carrying it.

Override __partition_key__ on a model whose tenant column is not tenant_id
(e.g. an accounts table partitioned by its own id).
"""

from sqlalchemy import String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


class TenantScopedMixin:
    """Adds the tenant_id partition key and flags the model as tenant-scoped."""

    __partition_key__ = "tenant_id"

    tenant_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        index=True,
    )
