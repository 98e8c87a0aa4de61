import pytest

from multitenant_sql.db.registry import TenantRegistry
from multitenant_sql.plan import to_sql


@pytest.fixture
def registry():
    """orders / items / customers / regions on tenant_id, projects on account_id; countries is shared."""
    registry = TenantRegistry()
    registry.register("orders", partition_key="tenant_id")
    registry.register("items", partition_key="tenant_id")
    registry.register("customers", partition_key="tenant_id")
    registry.register("regions", partition_key="tenant_id")
    registry.register("projects", partition_key="account_id")
    return registry


@pytest.fixture
def render():
    """Render a plan to single-line SQL with literal values inlined."""

    def _render(plan, dialect=None):
        return " ".join(to_sql(plan, dialect=dialect).split())

    return _render
