"""
plan/__init__.py
----------------
Re-export the node model and builders so callers need a single import:

    from multitenant_sql.plan import Table, select_from
"""

from multitenant_sql.plan.manager import SelectManager, delete_from, select_from, update
from multitenant_sql.plan.nodes import (
    And,
    Ascending,
    Assignment,
    Attribute,
    BindParam,
    DeleteStatement,
    Descending,
    Equality,
    Exists,
    FullOuterJoin,
    GreaterThan,
    Grouping,
    In,
    InnerJoin,
    Join,
    JoinSource,
    LessThan,
    NamedFunction,
    Node,
    Not,
    NotEqual,
    On,
    Or,
    OuterJoin,
    Quoted,
    RightOuterJoin,
    SelectCore,
    SelectStatement,
    SqlLiteral,
    SyntheticClause,
    Table,
    TableAlias,
    Union,
    UnionAll,
    UpdateStatement,
    relation_table_name,
)
from multitenant_sql.plan.render import to_sql, to_sqlalchemy

__all__ = [
    "And",
    "Ascending",
    "Assignment",
    "Attribute",
    "BindParam",
    "DeleteStatement",
    "Descending",
    "Equality",
    "Exists",
    "FullOuterJoin",
    "GreaterThan",
    "Grouping",
    "In",
    "InnerJoin",
    "Join",
    "JoinSource",
    "LessThan",
    "NamedFunction",
    "Node",
    "Not",
    "NotEqual",
    "On",
    "Or",
    "OuterJoin",
    "Quoted",
    "RightOuterJoin",
    "SelectCore",
    "SelectManager",
    "SelectStatement",
    "SqlLiteral",
    "SyntheticClause",
    "Table",
    "TableAlias",
    "Union",
    "UnionAll",
    "UpdateStatement",
    "delete_from",
    "relation_table_name",
    "select_from",
    "to_sql",
    "to_sqlalchemy",
    "update",
]
