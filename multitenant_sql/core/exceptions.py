"""
core/exceptions.py
------------------
Exception hierarchy for the tenant rewriting engine.

A missing tenant id and a relation the registry does not know are NOT
errors: both simply suppress injection. Only broken invariants raise.
"""


class MultiTenantError(Exception):
    """Base class for all errors raised by multitenant_sql."""


class UnrecognizedContextKind(MultiTenantError):
    """
    A scope context is owned by something other than a select-core or a join.

    Contexts are only ever created for those two node kinds, so this signals a
    bug in the discovery visitor and aborts the rewrite.
    """

    def __init__(self, node: object) -> None:
        self.node = node
        super().__init__(f"Unrecognized context kind: {type(node).__name__}")


class PlanRenderError(MultiTenantError):
    """A plan node cannot be expressed with SQLAlchemy Core."""
