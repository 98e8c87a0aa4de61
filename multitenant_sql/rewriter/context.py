"""
rewriter/context.py
-------------------
Bookkeeping shared by the discovery visitor and the rewriter.

RelationFingerprint: identity of "the same table reference", i.e. the pair
                     (table name, alias). Two Table("orders") nodes are the
                     same relation; orders AS o and orders AS p are not.

ScopeContext:        one per select-core or outer-join node. Records the
                     tenant-scoped relations found in the node's FROM tree
                     (discovered) and the ones already constrained by a
                     tenant predicate (handled).
"""

import weakref
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from multitenant_sql.plan.nodes import Node, Table, TableAlias


@dataclass(frozen=True)
class RelationFingerprint:
    table_name: str
    alias: Optional[str] = None

    @classmethod
    def of(cls, relation: Node) -> Optional["RelationFingerprint"]:
        if isinstance(relation, Table):
            return cls(relation.name, None)
        if isinstance(relation, TableAlias) and isinstance(relation.relation, Table):
            return cls(relation.relation.name, relation.name)
        return None


class ScopeContext:
    """
    Relations discovered vs. handled inside one select-core or join node.

    The context holds only a weak reference to its node: it lives for a
    single discovery + rewrite pass and never keeps a plan alive.
    """

    def __init__(self, node: Node) -> None:
        self._node_ref = weakref.ref(node)
        self.discovered: Dict[RelationFingerprint, Node] = {}
        self.handled: Set[RelationFingerprint] = set()

    @property
    def owning_node(self) -> Optional[Node]:
        return self._node_ref()

    def visited_relation(self, relation: Node, discovering: bool) -> None:
        if not discovering:
            return
        fingerprint = RelationFingerprint.of(relation)
        if fingerprint is not None and fingerprint not in self.discovered:
            self.discovered[fingerprint] = relation

    def visited_handled_relation(self, relation: Node) -> None:
        fingerprint = RelationFingerprint.of(relation)
        if fingerprint is not None:
            self.handled.add(fingerprint)

    def unhandled(self) -> List[Node]:
        """Discovered relations with no tenant predicate yet, in discovery order."""
        return [
            relation
            for fingerprint, relation in self.discovered.items()
            if fingerprint not in self.handled
        ]

    def __repr__(self) -> str:
        node = self.owning_node
        kind = type(node).__name__ if node is not None else "<gone>"
        return (
            f"<ScopeContext node={kind} discovered={list(self.discovered)} "
            f"handled={sorted(self.handled, key=repr)}>"
        )
