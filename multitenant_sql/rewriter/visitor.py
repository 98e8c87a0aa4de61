"""
rewriter/visitor.py
-------------------
Discovery pass: find every tenant-scoped relation and decide which ones are
already constrained. The plan is never modified here.

Traversal rules (depth-first):
  SelectCore     new scope; source visited with discovery on, then the
                 select list, WHERE, GROUP BY, WINDOW and HAVING with it off
  OuterJoin      new scope (left/right/full); both sides with discovery on
  InnerJoin      no scope of its own, feeds the enclosing select-core
  Table / alias  recorded as discovered (only while discovering)
  Equality       `tbl.partition_key = ...` marks tbl as handled
  Synthetic      clauses built by an earlier rewrite mark their relation handled
  Attribute      ignored outside any scope (e.g. UPDATE ... SET targets)
  anything else  children visited unchanged

The discovery flag and the scope stack are passed down explicitly, so leaving
a subtree restores both without any manual save/restore.
"""

from typing import List, Optional

from multitenant_sql.core.logging import get_logger
from multitenant_sql.db.registry import TenantRegistry, default_registry
from multitenant_sql.plan.nodes import (
    Attribute,
    Equality,
    Node,
    OuterJoin,
    SelectCore,
    Table,
    TableAlias,
    relation_table_name,
)
from multitenant_sql.rewriter.clauses import TenantEnforcementClause, TenantJoinEnforcementClause
from multitenant_sql.rewriter.context import ScopeContext

logger = get_logger(__name__)

ScopeStack = List[ScopeContext]


class TenantDiscoveryVisitor:

    def __init__(self, registry: Optional[TenantRegistry] = None) -> None:
        self.registry = registry if registry is not None else default_registry
        self.contexts: List[ScopeContext] = []

    def discover(self, root: Node) -> List[ScopeContext]:
        """Return one populated ScopeContext per select-core / outer join, in visit order."""
        self.contexts = []
        self._visit(root, [], False)
        logger.debug("Discovered tenant scopes", scopes=len(self.contexts))
        return self.contexts

    # ── Dispatch ──────────────────────────────────────────────────────────

    def _visit(self, node: Node, stack: ScopeStack, discovering: bool) -> None:
        if isinstance(node, SelectCore):
            self._visit_select_core(node, stack)
        elif isinstance(node, OuterJoin):
            self._visit_outer_join(node, stack)
        elif isinstance(node, (TenantEnforcementClause, TenantJoinEnforcementClause)):
            self._visit_synthetic_clause(node, stack)
        elif isinstance(node, Table):
            self._visit_relation(node, stack, discovering)
        elif isinstance(node, TableAlias):
            self._visit_table_alias(node, stack, discovering)
        elif isinstance(node, Equality):
            self._visit_equality(node, stack, discovering)
        elif isinstance(node, Attribute):
            self._visit_attribute(node, stack, discovering)
        else:
            self._visit_children(node, stack, discovering)

    def _visit_children(self, node: Node, stack: ScopeStack, discovering: bool) -> None:
        for child in node.children():
            self._visit(child, stack, discovering)

    # ── Scopes ────────────────────────────────────────────────────────────

    def _push(self, node: Node, stack: ScopeStack) -> ScopeStack:
        context = ScopeContext(node)
        self.contexts.append(context)
        return stack + [context]

    def _visit_select_core(self, node: SelectCore, stack: ScopeStack) -> None:
        inner = self._push(node, stack)
        self._visit(node.source, inner, True)
        for clause_list in (node.projections, node.wheres, node.groups, node.windows, node.havings):
            for child in clause_list:
                self._visit(child, inner, False)

    def _visit_outer_join(self, node: OuterJoin, stack: ScopeStack) -> None:
        inner = self._push(node, stack)
        self._visit(node.left, inner, True)
        if node.right is not None:
            self._visit(node.right, inner, True)

    # ── Relations / predicates ────────────────────────────────────────────

    def _is_tenant_relation(self, relation: Node) -> bool:
        return self.registry.lookup(relation_table_name(relation)) is not None

    def _visit_relation(self, node: Node, stack: ScopeStack, discovering: bool) -> None:
        if stack and self._is_tenant_relation(node):
            stack[-1].visited_relation(node, discovering)

    def _visit_table_alias(self, node: TableAlias, stack: ScopeStack, discovering: bool) -> None:
        if isinstance(node.relation, Table):
            self._visit_relation(node, stack, discovering)
        else:
            # Derived table: its select-core opens a scope of its own.
            self._visit(node.relation, stack, discovering)

    def _visit_attribute(self, node: Attribute, stack: ScopeStack, discovering: bool) -> None:
        if not stack:
            return
        if isinstance(node.relation, (Table, TableAlias)):
            # A reference only; never descend into a derived table from here.
            if relation_table_name(node.relation) is not None:
                self._visit_relation(node.relation, stack, discovering)

    def _visit_equality(self, node: Equality, stack: ScopeStack, discovering: bool) -> None:
        left = node.left
        if stack and isinstance(left, Attribute):
            model = self.registry.lookup(relation_table_name(left.relation))
            if model is not None and left.name == model.partition_key:
                stack[-1].visited_handled_relation(left.relation)
        self._visit_children(node, stack, discovering)

    def _visit_synthetic_clause(self, node, stack: ScopeStack) -> None:
        # Already-satisfied constraint, whatever the discovery flag says.
        if stack:
            stack[-1].visited_handled_relation(node.tenant_attribute.relation)
