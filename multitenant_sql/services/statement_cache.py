"""
services/statement_cache.py
---------------------------
Point lookups (find / find_by) with a per-shape statement cache.

A lookup statement only depends on which columns are matched, so it is cached
under (table, *columns) and executed with bind parameters:

    stmt = lookups.find_by("countries", "code")
    session.execute(stmt, {"code": "DE"})

Tenant-scoped tables break that assumption: the tenant predicate is bound
into the statement when it is built, so the same column shape maps to a
different statement for every tenant. For those tables the statement is
built fresh on every call and never stored, so no cache entry is ever bound
to a tenant.
"""

import threading
from collections import OrderedDict
from contextlib import contextmanager
from typing import Any, Callable, Hashable, Iterator, Optional, Tuple

from multitenant_sql.core.config import settings
from multitenant_sql.core.logging import get_logger
from multitenant_sql.db.registry import TenantRegistry, default_registry
from multitenant_sql.plan.manager import select_from
from multitenant_sql.plan.nodes import BindParam, Table
from multitenant_sql.plan.render import to_sqlalchemy
from multitenant_sql.rewriter.mutations import scope_statement

logger = get_logger(__name__)

CacheKey = Tuple[Hashable, ...]


class StatementCache:
    """Thread-safe LRU of built statements. Callers needing several steps to be atomic use synchronize()."""

    def __init__(self, maxsize: Optional[int] = None) -> None:
        self.maxsize = maxsize or settings.STATEMENT_CACHE_SIZE
        self._entries: "OrderedDict[CacheKey, Any]" = OrderedDict()
        self._lock = threading.RLock()

    @contextmanager
    def synchronize(self) -> Iterator["StatementCache"]:
        with self._lock:
            yield self

    def get(self, key: CacheKey) -> Optional[Any]:
        with self._lock:
            return self._entries.get(key)

    def get_or_build(self, key: CacheKey, build: Callable[[], Any]) -> Any:
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
                return self._entries[key]
            statement = build()
            self._entries[key] = statement
            if len(self._entries) > self.maxsize:
                self._entries.popitem(last=False)
            return statement

    def invalidate(self, key: CacheKey) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class IdentityLookup:

    def __init__(
        self,
        registry: Optional[TenantRegistry] = None,
        cache: Optional[StatementCache] = None,
    ) -> None:
        self.registry = registry if registry is not None else default_registry
        self.cache = cache if cache is not None else StatementCache()

    def find(self, table_name: str, primary_key: Optional[str] = None):
        """Statement selecting one row by primary key, bound as :<primary_key>."""
        if primary_key is None:
            model = self.registry.lookup(table_name)
            primary_key = model.primary_key if model is not None and model.primary_key else "id"
        return self._statement(table_name, (primary_key,))

    def find_by(self, table_name: str, *columns: str):
        """Statement matching every column by equality, each bound as :<column>."""
        if not columns:
            raise ValueError("find_by() needs at least one column")
        return self._statement(table_name, tuple(sorted(columns)))

    def _statement(self, table_name: str, columns: Tuple[str, ...]):
        key = (table_name,) + columns

        def build():
            return self._build(table_name, columns)

        if self.registry.lookup(table_name) is None:
            return self.cache.get_or_build(key, build)

        with self.cache.synchronize():
            # Statements bound to a tenant are never stored
            self.cache.invalidate(key)
            logger.debug("Bypassing statement cache for tenant-scoped lookup", table=table_name)
            return build()

    def _build(self, table_name: str, columns: Tuple[str, ...]):
        table = Table(table_name)
        query = select_from(table)
        for column in columns:
            query.where(table[column].eq(BindParam(column)))
        return to_sqlalchemy(scope_statement(query.ast, registry=self.registry))
