"""Audit trail: models, storage, logger, and CLI for lifecycle changes."""

from product_orders.audit.cli import build_parser
from product_orders.audit.logger import AuditLogger
from product_orders.audit.models import AuditEntry, EventType
from product_orders.audit.store import (
    init_audit_table,
    insert_audit_entry,
    query_audit_trail,
)

__all__ = [
    "AuditEntry",
    "AuditLogger",
    "EventType",
    "build_parser",
    "init_audit_table",
    "insert_audit_entry",
    "query_audit_trail",
]
