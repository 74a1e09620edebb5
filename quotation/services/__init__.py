"""Service layer: audited entity operations, edit locks and change history."""

from quotation.services import (
    audit_service,
    history_service,
    lock_service,
    auth_service,
    article_service,
    block_service,
    sales_opportunity_service,
    quote_service,
)

__all__ = [
    "audit_service",
    "history_service",
    "lock_service",
    "auth_service",
    "article_service",
    "block_service",
    "sales_opportunity_service",
    "quote_service",
]
