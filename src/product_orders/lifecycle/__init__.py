"""Participation lifecycle service and the collaborator contracts it needs."""

from product_orders.lifecycle.protocols import Notifier, Repository, UserDirectory
from product_orders.lifecycle.service import ProductOrderLifecycle, payload_kind
from product_orders.lifecycle.validation import check_batch, unique_ids

__all__ = [
    "Notifier",
    "ProductOrderLifecycle",
    "Repository",
    "UserDirectory",
    "check_batch",
    "payload_kind",
    "unique_ids",
]
