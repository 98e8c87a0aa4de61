"""
db/registry.py
--------------
Tenant registry: table name → partition-key column.

The registry is the single source of truth for "is this table tenant-scoped".
It is written at startup (explicit register() calls or discovery from the
declarative models) and only read while queries are built, so one instance
can be shared by every concurrent request.
"""

import threading
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy.orm import DeclarativeBase

from multitenant_sql.core.config import settings
from multitenant_sql.core.logging import get_logger
from multitenant_sql.db.base import TenantScopedMixin

logger = get_logger(__name__)


@dataclass(frozen=True)
class TenantModel:
    table_name: str
    partition_key: str = "tenant_id"
    primary_key: Optional[str] = "id"
    model: Optional[type] = None


class TenantRegistry:

    def __init__(self) -> None:
        self._models: Dict[str, TenantModel] = {}
        self._lock = threading.Lock()

    def register(
        self,
        table_name: str,
        partition_key: Optional[str] = None,
        primary_key: Optional[str] = "id",
        model: Optional[type] = None,
    ) -> TenantModel:
        """Mark a table as tenant-scoped. Re-registering replaces the entry."""
        tenant_model = TenantModel(
            table_name=table_name,
            partition_key=partition_key or settings.DEFAULT_PARTITION_KEY,
            primary_key=primary_key,
            model=model,
        )
        with self._lock:
            self._models[table_name] = tenant_model
        logger.debug(
            "Registered tenant-scoped table",
            table=table_name,
            partition_key=tenant_model.partition_key,
        )
        return tenant_model

    def register_declarative(self, base: type[DeclarativeBase]) -> List[TenantModel]:
        """
        Register every mapped class of `base` that uses TenantScopedMixin.

        Returns the TenantModel entries created, in mapper order.
        """
        registered = []
        for mapper in base.registry.mappers:
            cls = mapper.class_
            if not issubclass(cls, TenantScopedMixin):
                continue
            primary_key = mapper.primary_key[0].name if mapper.primary_key else None
            registered.append(
                self.register(
                    mapper.local_table.name,
                    partition_key=cls.__partition_key__,
                    primary_key=primary_key,
                    model=cls,
                )
            )
        return registered

    def unregister(self, table_name: str) -> None:
        with self._lock:
            self._models.pop(table_name, None)

    def clear(self) -> None:
        with self._lock:
            self._models.clear()

    def lookup(self, table_name: Optional[str]) -> Optional[TenantModel]:
        if table_name is None:
            return None
        return self._models.get(table_name)

    def __contains__(self, table_name: object) -> bool:
        return table_name in self._models

    def __len__(self) -> int:
        return len(self._models)


default_registry = TenantRegistry()
