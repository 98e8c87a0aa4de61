from multitenant_sql.rewriter.clauses import TenantEnforcementClause, TenantJoinEnforcementClause
from multitenant_sql.rewriter.context import RelationFingerprint, ScopeContext
from multitenant_sql.rewriter.mutations import build_statement, scope_mutation, scope_statement
from multitenant_sql.rewriter.rewriter import TenantQueryRewriter, nested_joins, rewrite
from multitenant_sql.rewriter.visitor import TenantDiscoveryVisitor

__all__ = [
    "RelationFingerprint",
    "ScopeContext",
    "TenantDiscoveryVisitor",
    "TenantEnforcementClause",
    "TenantJoinEnforcementClause",
    "TenantQueryRewriter",
    "build_statement",
    "nested_joins",
    "rewrite",
    "scope_mutation",
    "scope_statement",
]
