"""
rewriter/clauses.py
-------------------
Synthetic predicates injected by the rewriter.

TenantEnforcementClause       relation.partition_key = <current tenant id>
TenantJoinEnforcementClause   relation.partition_key = other.partition_key

Both render exactly like the equivalent Equality, and the discovery visitor
treats them as "already handled" markers, which is what makes a second
rewrite pass over the same plan a no-op.
"""

from dataclasses import dataclass
from typing import Any, Optional, Tuple

from multitenant_sql.core.context import current_tenant_id
from multitenant_sql.plan.nodes import Attribute, Equality, Node, Quoted, SyntheticClause
from multitenant_sql.rewriter.context import RelationFingerprint

_UNSET: Any = object()


@dataclass(eq=False)
class TenantEnforcementClause(SyntheticClause):
    tenant_attribute: Attribute
    tenant_id: Any = _UNSET

    def __post_init__(self) -> None:
        # Bound once, when the clause is built; later tenant switches do not
        # change an already-built plan.
        if self.tenant_id is _UNSET:
            self.tenant_id = current_tenant_id()

    def to_equality(self) -> Equality:
        return Equality(self.tenant_attribute, Quoted(self.tenant_id))


@dataclass(eq=False)
class TenantJoinEnforcementClause(SyntheticClause):
    tenant_attribute: Attribute
    other_attribute: Attribute

    @classmethod
    def between(
        cls,
        relation: Node,
        partition_key: str,
        other_relation: Node,
        other_partition_key: str,
    ) -> "TenantJoinEnforcementClause":
        return cls(
            Attribute(relation, partition_key),
            Attribute(other_relation, other_partition_key),
        )

    def fingerprints(self) -> Tuple[Optional[RelationFingerprint], Optional[RelationFingerprint]]:
        return (
            RelationFingerprint.of(self.tenant_attribute.relation),
            RelationFingerprint.of(self.other_attribute.relation),
        )

    def to_equality(self) -> Equality:
        return Equality(self.tenant_attribute, self.other_attribute)
